"""
models.py

Immutable records passed between the audit phases.

  MatrixEntry         one row of the FormData sheet
  PrincipalReference  one row of the AdObjectNames sheet
  DirectoryUser /
  DirectoryGroup      a resolved directory identity (never None-as-object;
                      an unresolved principal is simply absent)
  LookupOutcome       success or failure of a single directory lookup
  AccessRow /
  ManagerRow          flattened report rows
  MatrixReport        everything exported and mailed for one matrix
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

USER = "user"
GROUP = "group"


@dataclass(frozen=True)
class MatrixEntry:
    file_name: str
    responsible: Tuple[str, ...] = ()
    folder_path: str = ""
    folder_display_name: str = ""
    file_path: str = ""
    category: str = ""
    sub_category: str = ""


@dataclass(frozen=True)
class PrincipalReference:
    matrix_file_name: str
    principal_name: str


@dataclass(frozen=True)
class DirectoryMember:
    display_name: str
    principal_name: str


@dataclass(frozen=True)
class DirectoryUser:
    display_name: str
    managed_by: Optional[str] = None
    object_class: str = field(default=USER, init=False)

    @property
    def members(self):
        return ()


@dataclass(frozen=True)
class DirectoryGroup:
    display_name: str
    managed_by: Optional[str] = None
    members: Tuple[DirectoryMember, ...] = ()
    object_class: str = field(default=GROUP, init=False)


DirectoryObject = Union[DirectoryUser, DirectoryGroup]


@dataclass(frozen=True)
class LookupOutcome:
    """Result of one lookup: `error` is set on failure, otherwise `value` (None = not found)."""
    key: str
    value: Optional[DirectoryObject] = None
    error: Optional[str] = None

    @property
    def failed(self):
        return self.error is not None


@dataclass(frozen=True)
class AccessRow:
    principal_name: str
    display_name: str
    object_class: str
    member_display_name: Optional[str] = None
    member_principal_name: Optional[str] = None


@dataclass(frozen=True)
class ManagerRow:
    group_display_name: str
    manager_display_name: Optional[str] = None
    manager_class: Optional[str] = None
    manager_member_display_name: Optional[str] = None


@dataclass(frozen=True)
class MatrixReport:
    matrix: MatrixEntry
    access_rows: Tuple[AccessRow, ...]
    manager_rows: Tuple[ManagerRow, ...] = ()
    unique_user_count: int = 0
    unique_group_count: int = 0
