"""Tests for the GroupManagers rows."""

from conftest import FakeDirectory, members
from MatrixAccessAudit.f_expand_group_managers import (
    expand_group_managers,
    manager_identities,
    resolve_managers,
)
from MatrixAccessAudit.models import DirectoryGroup, DirectoryUser, ManagerRow


def test_group_without_manager_gives_one_empty_row() -> None:
    resolved = {"g": DirectoryGroup("G")}

    assert expand_group_managers(["g"], resolved, {}) == [ManagerRow("G")]


def test_unresolved_manager_gives_one_empty_row() -> None:
    resolved = {"g": DirectoryGroup("G", "CN=gone")}

    assert expand_group_managers(["g"], resolved, {"CN=gone": None}) == [ManagerRow("G")]


def test_manager_without_members_gives_one_row() -> None:
    resolved = {"g": DirectoryGroup("G", "CN=boss")}
    managers = {"CN=boss": DirectoryUser("The Boss")}

    assert expand_group_managers(["g"], resolved, managers) == [ManagerRow("G", "The Boss", "user")]


def test_manager_group_members_give_one_row_each() -> None:
    resolved = {"g": DirectoryGroup("G", "CN=mgrs")}
    managers = {"CN=mgrs": DirectoryGroup("Managers", None, members("x", "y"))}

    assert expand_group_managers(["g"], resolved, managers) == [
        ManagerRow("G", "Managers", "group", "X"),
        ManagerRow("G", "Managers", "group", "Y"),
    ]


def test_users_and_unresolved_principals_are_skipped() -> None:
    resolved = {"u": DirectoryUser("U", "CN=boss"), "ghost": None}

    assert expand_group_managers(["u", "ghost"], resolved, {}) == []


def test_groups_sharing_a_manager_each_repeat_its_rows() -> None:
    resolved = {"g1": DirectoryGroup("G1", "CN=m"), "g2": DirectoryGroup("G2", "CN=m")}
    managers = {"CN=m": DirectoryGroup("M", None, members("x"))}

    rows = expand_group_managers(["g1", "g2"], resolved, managers)

    assert [r.group_display_name for r in rows] == ["G1", "G2"]
    assert {r.manager_member_display_name for r in rows} == {"X"}


def test_managers_are_resolved_once_by_identity() -> None:
    resolved = {
        "g1": DirectoryGroup("G1", "CN=m"),
        "g2": DirectoryGroup("G2", "CN=m"),
        "g3": DirectoryGroup("G3"),
        "u": DirectoryUser("U", "CN=other"),
    }
    principals = {"A": ["g1", "u"], "B": ["g2", "g3"]}
    directory = FakeDirectory(by_identity={"CN=m": DirectoryUser("Boss")})

    assert manager_identities(principals, resolved) == ["CN=m"]
    managers = resolve_managers(directory, principals, resolved)

    assert directory.calls == [("CN=m", "identity")]
    assert managers["CN=m"].display_name == "Boss"
