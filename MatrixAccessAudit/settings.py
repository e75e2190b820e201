"""
settings.py

Loads the JSON settings file and merges it over DEFAULT_SETTINGS.
Nested sections ("ldap", "mail") are merged key by key so a settings file
only needs the values that differ from the defaults.
"""

import os
import copy
import json

from MatrixAccessAudit.errors import InputValidationError

DEFAULT_SETTINGS_FILE = "settings.json"

DEFAULT_SETTINGS = {
    "matrix_file": os.path.join("input", "Matrix.xlsx"),
    "log_folder": "output",
    "exclude_principals": [],
    "max_concurrent_jobs": 6,
    "include_group_managers": True,
    "ldap": {
        "server": "",
        "port": 636,
        "use_ssl": True,
        "bind_dn": "",
        "base_dn": "",
        "password_env": "MATRIX_AUDIT_LDAP_PASSWORD",
    },
    "mail": {
        "send": True,
        "sender": "",
        "admin": "",
    },
}


def merge_settings(base, overrides, section="settings"):
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if key not in base:
            raise InputValidationError(f"Unknown key '{key}' in {section}")
        if isinstance(base[key], dict):
            if not isinstance(value, dict):
                raise InputValidationError(f"'{key}' in {section} must be an object")
            merged[key] = merge_settings(base[key], value, section=key)
        else:
            merged[key] = value
    return merged


def validate_settings(settings):
    jobs = settings["max_concurrent_jobs"]
    if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
        raise InputValidationError(
            f"max_concurrent_jobs must be a positive integer, got {jobs!r}"
        )
    if not isinstance(settings["exclude_principals"], list):
        raise InputValidationError("exclude_principals must be a list of names")
    return settings


def load_settings(path=None, overrides=None):
    """
    Read `path` (if it exists) and apply `overrides` (CLI values) on top.
    A path that was given explicitly but does not exist is an input error.
    """
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    settings_file = path or DEFAULT_SETTINGS_FILE
    if os.path.exists(settings_file):
        try:
            with open(settings_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise InputValidationError(f"Invalid JSON in settings file {settings_file}: {e}") from e
        if not isinstance(data, dict):
            raise InputValidationError(f"Settings file {settings_file} must hold a JSON object")
        settings = merge_settings(settings, data)
    elif path:
        raise InputValidationError(f"Settings file not found: {path}")

    if overrides:
        settings = merge_settings(settings, overrides)
    return validate_settings(settings)
