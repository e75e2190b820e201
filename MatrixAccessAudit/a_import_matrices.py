"""
a_import_matrices.py

Reads the matrix workbook:
  - FormData       => one MatrixEntry per matrix
  - AdObjectNames  => one PrincipalReference per (matrix, principal) row

Cells are trimmed, empty cells become "". MatrixResponsible may hold several
addresses separated by commas, semicolons or whitespace.
"""

import os
import re

import pandas as pd

from MatrixAccessAudit.errors import InputValidationError
from MatrixAccessAudit.models import MatrixEntry, PrincipalReference

FORM_DATA_SHEET = "FormData"
AD_OBJECT_NAMES_SHEET = "AdObjectNames"

FORM_DATA_COLUMNS = {
    "MatrixFileName": "file_name",
    "MatrixResponsible": "responsible",
    "MatrixFolderPath": "folder_path",
    "MatrixFolderDisplayName": "folder_display_name",
    "MatrixFilePath": "file_path",
    "MatrixCategoryName": "category",
    "MatrixSubCategoryName": "sub_category",
}
AD_OBJECT_NAMES_COLUMNS = ["MatrixFileName", "SamAccountName"]


def split_addresses(value: str):
    return tuple(a for a in re.split(r"[,;\s]+", value or "") if a)


def read_sheet(xls, sheet_name, required_columns):
    if sheet_name not in xls.sheet_names:
        raise InputValidationError(
            f"Required sheet '{sheet_name}' is missing. Found sheets: {xls.sheet_names}"
        )
    df = pd.read_excel(xls, sheet_name=sheet_name, dtype=str).fillna("")
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in required_columns if c not in df.columns]
    if missing:
        raise InputValidationError(
            f"Sheet '{sheet_name}' is missing column(s): {', '.join(missing)}"
        )
    for column in df.columns:
        df[column] = df[column].astype(str).str.strip()
    return df


def rows_to_matrix_entries(df):
    entries = []
    for record in df.to_dict(orient="records"):
        if not record["MatrixFileName"]:
            continue
        values = {attr: record[col] for col, attr in FORM_DATA_COLUMNS.items()}
        values["responsible"] = split_addresses(values["responsible"])
        entries.append(MatrixEntry(**values))
    return entries


def rows_to_principal_references(df):
    return [
        PrincipalReference(record["MatrixFileName"], record["SamAccountName"])
        for record in df.to_dict(orient="records")
        if record["MatrixFileName"] and record["SamAccountName"]
    ]


def import_matrices(matrix_file):
    """
    Returns (matrix_entries, principal_references) in sheet order.
    Raises InputValidationError for a missing file, sheet or column.
    """
    if not os.path.isfile(matrix_file):
        raise InputValidationError(f"Matrix file not found: {matrix_file}")
    try:
        xls = pd.ExcelFile(matrix_file, engine="openpyxl")
    except Exception as e:
        raise InputValidationError(f"Failed to open workbook '{matrix_file}': {e}") from e

    with xls:
        form_data = read_sheet(xls, FORM_DATA_SHEET, list(FORM_DATA_COLUMNS))
        ad_object_names = read_sheet(xls, AD_OBJECT_NAMES_SHEET, AD_OBJECT_NAMES_COLUMNS)

    return rows_to_matrix_entries(form_data), rows_to_principal_references(ad_object_names)
