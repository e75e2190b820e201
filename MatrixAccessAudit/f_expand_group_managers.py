"""
f_expand_group_managers.py

For every group a matrix references, reports who manages it:

  1. no managedBy, or manager not found  => 1 row, manager columns empty
  2. manager without (filtered) members  => 1 row, manager name/type only
  3. manager with members                => 1 row per manager member

Groups sharing a manager each repeat the manager's rows; the sheet is a
per-group view, not a manager roster.

Managers are resolved in their own batch, keyed by distinguished name.
"""

from MatrixAccessAudit.c_resolve_principals import BY_IDENTITY, distinct_keys, resolve_batch
from MatrixAccessAudit.models import GROUP, ManagerRow


def referenced_groups(principal_names, resolved):
    for name in principal_names:
        obj = resolved.get(name)
        if obj is not None and obj.object_class == GROUP:
            yield obj


def manager_identities(principals, resolved):
    """Distinct managedBy references of all groups in `principals` (a {matrix: names} map)."""
    return distinct_keys(
        group.managed_by
        for names in principals.values()
        for group in referenced_groups(names, resolved)
    )


def resolve_managers(directory, principals, resolved, max_workers=6):
    identities = manager_identities(principals, resolved)
    return resolve_batch(directory, identities, BY_IDENTITY, max_workers, desc="Resolving group managers")


def manager_rows_for_group(group, managers):
    manager = managers.get(group.managed_by) if group.managed_by else None
    if manager is None:
        return [ManagerRow(group.display_name)]
    if not manager.members:
        return [ManagerRow(group.display_name, manager.display_name, manager.object_class)]
    return [
        ManagerRow(
            group.display_name,
            manager.display_name,
            manager.object_class,
            manager_member_display_name=member.display_name,
        )
        for member in manager.members
    ]


def expand_group_managers(principal_names, resolved, managers):
    rows = []
    for group in referenced_groups(principal_names, resolved):
        rows.extend(manager_rows_for_group(group, managers))
    return rows
