"""
h_export_reports.py

Writes one workbook per reportable matrix:
    <log_folder>/<run prefix>- <matrix name>.xlsx
      - AccessList     (always, headers only when the matrix produced no rows)
      - GroupManagers  (only when manager rows exist)

and the run summary:
    <log_folder>/<run prefix>- summary.json
"""

import os
import json

import pandas as pd

from MatrixAccessAudit.helpers import sanitize_filename

ACCESS_LIST_SHEET = "AccessList"
GROUP_MANAGERS_SHEET = "GroupManagers"

ACCESS_LIST_COLUMNS = ["SamAccountName", "Name", "Type", "MemberName", "MemberSamAccountName"]
GROUP_MANAGERS_COLUMNS = ["GroupName", "ManagerName", "ManagerType", "ManagerMemberName"]


def export_file_name(run_prefix, matrix_file_name):
    stem = os.path.splitext(os.path.basename(matrix_file_name))[0]
    return sanitize_filename(f"{run_prefix}- {stem}.xlsx")


def access_list_frame(rows):
    return pd.DataFrame(
        [
            [r.principal_name, r.display_name, r.object_class,
             r.member_display_name, r.member_principal_name]
            for r in rows
        ],
        columns=ACCESS_LIST_COLUMNS,
    )


def group_managers_frame(rows):
    return pd.DataFrame(
        [
            [r.group_display_name, r.manager_display_name,
             r.manager_class, r.manager_member_display_name]
            for r in rows
        ],
        columns=GROUP_MANAGERS_COLUMNS,
    )


def unique_export_paths(reports, folder, run_prefix):
    """
    {matrix file name: workbook path}. Names that sanitize to the same file
    ("Finance.xlsx" / "Finance.xlsm", "A:B" / "A_B") get " (2)", " (3)", ...
    """
    paths = {}
    used = set()
    for report in reports:
        name = export_file_name(run_prefix, report.matrix.file_name)
        base, ext = os.path.splitext(name)
        counter = 1
        while name.lower() in used:
            counter += 1
            name = f"{base} ({counter}){ext}"
        used.add(name.lower())
        paths[report.matrix.file_name] = os.path.join(folder, name)
    return paths


def export_report(report, path):
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        access_list_frame(report.access_rows).to_excel(writer, sheet_name=ACCESS_LIST_SHEET, index=False)
        if report.manager_rows:
            group_managers_frame(report.manager_rows).to_excel(
                writer, sheet_name=GROUP_MANAGERS_SHEET, index=False
            )
    return path


def export_reports(reports, folder, run_prefix):
    """Returns {matrix file name: exported workbook path}, one distinct file per matrix."""
    os.makedirs(folder, exist_ok=True)
    paths = unique_export_paths(reports, folder, run_prefix)
    return {r.matrix.file_name: export_report(r, paths[r.matrix.file_name]) for r in reports}


def build_run_summary(reports, exported, skipped, warnings):
    return {
        "reportable": [
            {
                "matrix": r.matrix.file_name,
                "folder": r.matrix.folder_path,
                "responsible": list(r.matrix.responsible),
                "unique_users": r.unique_user_count,
                "unique_groups": r.unique_group_count,
                "access_rows": len(r.access_rows),
                "manager_rows": len(r.manager_rows),
                "export_file": exported.get(r.matrix.file_name),
            }
            for r in reports
        ],
        "skipped_without_responsible": [m.file_name for m in skipped],
        "warnings": list(warnings),
    }


def write_run_summary(summary, folder, run_prefix):
    path = os.path.join(folder, sanitize_filename(f"{run_prefix}- summary.json"))
    with open(path, "w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2)
    return path
