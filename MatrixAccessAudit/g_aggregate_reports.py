"""
g_aggregate_reports.py

Builds one MatrixReport per reportable matrix and derives its two counts:

  unique users  = principal names of user rows + every member principal name
  unique groups = distinct display names of group rows

Both are recomputed from the rows alone so the exported sheet and the mail
subject can never disagree.
"""

from MatrixAccessAudit.e_flatten_access_list import flatten_access_list
from MatrixAccessAudit.f_expand_group_managers import expand_group_managers
from MatrixAccessAudit.models import GROUP, USER, MatrixReport


def count_unique_users(rows):
    users = {r.principal_name for r in rows if r.object_class == USER and r.principal_name}
    users.update(r.member_principal_name for r in rows if r.member_principal_name)
    return len(users)


def count_unique_groups(rows):
    return len({r.display_name for r in rows if r.object_class == GROUP and r.display_name})


def build_reports(matrices, principals, resolved, managers=None):
    """
    Returns (reports, warnings). `managers` is None for the baseline variant;
    when given, every report also carries its GroupManagers rows.
    """
    reports = []
    warnings = []
    for matrix in matrices:
        names = principals.get(matrix.file_name, [])
        access_rows, matrix_warnings = flatten_access_list(matrix.file_name, names, resolved)
        warnings.extend(matrix_warnings)

        manager_rows = []
        if managers is not None:
            manager_rows = expand_group_managers(names, resolved, managers)

        reports.append(MatrixReport(
            matrix=matrix,
            access_rows=tuple(access_rows),
            manager_rows=tuple(manager_rows),
            unique_user_count=count_unique_users(access_rows),
            unique_group_count=count_unique_groups(access_rows),
        ))
    return reports, warnings
