"""Tests for the deduplicated, all-or-nothing lookup batch."""

import pytest

from conftest import FakeDirectory
from MatrixAccessAudit.c_resolve_principals import (
    BY_IDENTITY,
    distinct_keys,
    resolve_batch,
    resolve_principals,
)
from MatrixAccessAudit.errors import ResolutionBatchError
from MatrixAccessAudit.models import DirectoryUser, MatrixEntry, PrincipalReference


def test_distinct_keys_trims_and_is_case_sensitive() -> None:
    assert distinct_keys([" a", "a ", "A", "", None, "b", "a"]) == ["a", "A", "b"]


def test_each_name_is_looked_up_once(bond_directory) -> None:
    matrices = [MatrixEntry(f"M{i}", ("o@x.com",)) for i in range(5)]
    references = [PrincipalReference(f"M{i}", name) for i in range(5) for name in ("craig", "group1")]

    resolved = resolve_principals(bond_directory, references, matrices, max_workers=3)

    assert sorted(bond_directory.calls) == [("craig", "name"), ("group1", "name")]
    assert resolved["craig"].display_name == "Daniel Craig"


def test_matrices_outside_the_batch_are_not_looked_up(bond_directory) -> None:
    matrices = [MatrixEntry("M1", ("o@x.com",))]
    references = [PrincipalReference("M1", "craig"), PrincipalReference("M2", "group4")]

    resolve_principals(bond_directory, references, matrices)

    assert ("group4", "name") not in bond_directory.calls


def test_missing_principal_is_a_none_value() -> None:
    resolved = resolve_batch(FakeDirectory(), ["ghost"])

    assert resolved == {"ghost": None}


def test_result_keeps_request_order() -> None:
    directory = FakeDirectory(by_name={k: DirectoryUser(k) for k in "abcdef"})

    assert list(resolve_batch(directory, list("fedcba"), max_workers=4)) == list("fedcba")


def test_any_failure_fails_the_whole_batch_with_all_reasons() -> None:
    directory = FakeDirectory(by_name={"ok": DirectoryUser("Ok")}, failing={"bad1", "bad2"})

    with pytest.raises(ResolutionBatchError) as excinfo:
        resolve_batch(directory, ["ok", "bad1", "bad2"], max_workers=2)

    assert list(excinfo.value.failures) == ["bad1", "bad2"]
    assert "bad1: server down" in str(excinfo.value)
    assert "bad2: server down" in str(excinfo.value)


def test_identity_mode_is_passed_through() -> None:
    directory = FakeDirectory(by_identity={"CN=x": DirectoryUser("X")})

    resolved = resolve_batch(directory, ["CN=x"], BY_IDENTITY)

    assert directory.calls == [("CN=x", "identity")]
    assert resolved["CN=x"].display_name == "X"


def test_empty_batch_does_no_lookup() -> None:
    directory = FakeDirectory()

    assert resolve_batch(directory, []) == {}
    assert directory.calls == []
