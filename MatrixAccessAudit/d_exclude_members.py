"""
d_exclude_members.py

Drops configured placeholder/service accounts from every resolved member list.
Only membership is filtered: an excluded name referenced directly by a matrix
still resolves and still gets its own row.
"""

import dataclasses

from MatrixAccessAudit.models import DirectoryGroup


def exclude_members(resolved, excluded_names):
    """
    Returns a new {key: DirectoryObject or None} map with members whose
    principal name is in `excluded_names` removed. Running it twice is a no-op.
    """
    excluded = {name.strip() for name in excluded_names if name and name.strip()}
    if not excluded:
        return dict(resolved)

    filtered = {}
    for key, obj in resolved.items():
        if isinstance(obj, DirectoryGroup) and obj.members:
            kept = tuple(m for m in obj.members if m.principal_name not in excluded)
            if len(kept) != len(obj.members):
                obj = dataclasses.replace(obj, members=kept)
        filtered[key] = obj
    return filtered
