"""
e_flatten_access_list.py

Turns a matrix's principal list into AccessList rows:
  - user or group without members => 1 row, member columns empty
  - group with members             => 1 row per member, in member order
  - unresolved name                => no row, one warning
"""

from MatrixAccessAudit.models import AccessRow


def flatten_principal(name, obj):
    if not obj.members:
        return [AccessRow(name, obj.display_name, obj.object_class)]
    return [
        AccessRow(
            name,
            obj.display_name,
            obj.object_class,
            member_display_name=member.display_name,
            member_principal_name=member.principal_name,
        )
        for member in obj.members
    ]


def flatten_access_list(matrix_file_name, principal_names, resolved):
    """Returns (rows, warnings) for one matrix."""
    rows = []
    warnings = []
    for name in principal_names:
        obj = resolved.get(name)
        if obj is None:
            warnings.append(
                f"Matrix '{matrix_file_name}': principal '{name}' not found in the directory"
            )
            continue
        rows.extend(flatten_principal(name, obj))
    return rows, warnings
