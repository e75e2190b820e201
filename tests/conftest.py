"""Shared fixtures: an in-memory directory and matrix workbook builders."""

import threading

import pandas as pd
import pytest

from MatrixAccessAudit.models import DirectoryGroup, DirectoryMember, DirectoryUser


class FakeDirectory:
    """Answers lookups from dicts and records every request."""

    def __init__(self, by_name=None, by_identity=None, failing=()):
        self.by_name = by_name or {}
        self.by_identity = by_identity or {}
        self.failing = set(failing)
        self.calls = []
        self._lock = threading.Lock()

    def lookup(self, key, mode="name"):
        with self._lock:
            self.calls.append((key, mode))
        if key in self.failing:
            raise RuntimeError(f"server down while looking up {key}")
        source = self.by_name if mode == "name" else self.by_identity
        return source.get(key)


def members(*names):
    return tuple(DirectoryMember(n.title(), n) for n in names)


@pytest.fixture
def bond_directory():
    return FakeDirectory(
        by_name={
            "craig": DirectoryUser("Daniel Craig"),
            "group1": DirectoryGroup("Group 1", "CN=Mgr,DC=c", members("connery", "dalton", "craig")),
            "group4": DirectoryGroup("Group 4", None, members("moore")),
        },
        by_identity={
            "CN=Mgr,DC=c": DirectoryGroup("Managers", None, members("m")),
        },
    )


def write_matrix_workbook(path, form_rows, name_rows):
    form = pd.DataFrame(form_rows, columns=[
        "MatrixFileName", "MatrixResponsible", "MatrixFolderPath", "MatrixFolderDisplayName",
        "MatrixFilePath", "MatrixCategoryName", "MatrixSubCategoryName",
    ])
    names = pd.DataFrame(name_rows, columns=["MatrixFileName", "SamAccountName"])
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        form.to_excel(writer, sheet_name="FormData", index=False)
        names.to_excel(writer, sheet_name="AdObjectNames", index=False)
    return path


@pytest.fixture
def bond_workbook(tmp_path):
    return write_matrix_workbook(
        tmp_path / "Matrix.xlsx",
        [
            ["M1", "o1@example.com", r"\\srv\share\m1", "M1 folder", r"\\srv\matrix\M1.xlsx", "Finance", "Ledger"],
            ["M2", "", r"\\srv\share\m2", "M2 folder", r"\\srv\matrix\M2.xlsx", "HR", ""],
        ],
        [["M1", "craig"], ["M1", "group1"], ["M2", "group4"]],
    )
