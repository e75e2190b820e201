"""
MatrixAccessAudit

Reconciles permission matrices against Active Directory and produces one
access workbook plus one review mail per responsible owner.
"""

__version__ = "1.0.0"
