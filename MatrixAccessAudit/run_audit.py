#!/usr/bin/env python3
"""
run_audit.py

Orchestrator for the matrix access audit. Runs the phases in order:

  a_import_matrices        read FormData + AdObjectNames from the matrix workbook
  b_partition_matrices     skip matrices without a responsible
  c_resolve_principals     one directory lookup per distinct principal name
  d_exclude_members        drop excluded accounts from member lists
  f_expand_group_managers  one directory lookup per distinct managedBy (optional)
  e/g                      flatten access lists, count unique users and groups
  h_export_reports         one workbook per matrix + run summary
  i_mail_reports           one mail per matrix responsible + admin summary

Everything up to and including the exports happens before the first mail, so
a failing lookup or a bad input file stops the run without sending anything.

Usage:
  python -m MatrixAccessAudit.run_audit --settings settings.json
"""

import os
import sys
import argparse
from datetime import datetime

from MatrixAccessAudit.a_import_matrices import import_matrices
from MatrixAccessAudit.b_partition_matrices import partition_matrices, principals_by_matrix
from MatrixAccessAudit.c_resolve_principals import resolve_principals
from MatrixAccessAudit.d_exclude_members import exclude_members
from MatrixAccessAudit.directory import LdapDirectory
from MatrixAccessAudit.errors import MatrixAuditError
from MatrixAccessAudit.f_expand_group_managers import resolve_managers
from MatrixAccessAudit.g_aggregate_reports import build_reports
from MatrixAccessAudit.h_export_reports import build_run_summary, export_reports, write_run_summary
from MatrixAccessAudit.helpers import RunLog, sanitize_filename
from MatrixAccessAudit.i_mail_reports import GraphMailer, mail_admin_summary, mail_reports
from MatrixAccessAudit.settings import load_settings


def make_run_prefix(now=None):
    return (now or datetime.now()).strftime("%Y-%m-%d %H%M%S ")


def run_audit(settings, directory, mailer=None, log=None, run_prefix=None):
    """
    Runs one audit and returns the run summary dict.
    `mailer` None means no mail is sent (dry run).
    """
    log = log or RunLog()
    run_prefix = run_prefix or make_run_prefix()
    folder = settings["log_folder"]
    jobs = settings["max_concurrent_jobs"]
    excluded = settings["exclude_principals"]

    # 1) import
    matrices, references = import_matrices(settings["matrix_file"])
    log.info(f"Imported {len(matrices)} matrices and {len(references)} principal references")

    # 2) partition
    reportable, skipped = partition_matrices(matrices)
    for matrix in skipped:
        log.info(f"Matrix '{matrix.file_name}' has no responsible, skipped")
    principals = principals_by_matrix(reportable, references)

    # 3) resolve + filter (raises before anything is written)
    resolved = resolve_principals(directory, references, reportable, max_workers=jobs)
    resolved = exclude_members(resolved, excluded)

    managers = None
    if settings["include_group_managers"]:
        managers = resolve_managers(directory, principals, resolved, max_workers=jobs)
        managers = exclude_members(managers, excluded)

    # 4) flatten + count
    reports, warnings = build_reports(reportable, principals, resolved, managers)
    for w in warnings:
        log.warning(w)

    # 5) export
    exported = export_reports(reports, folder, run_prefix)
    summary = build_run_summary(reports, exported, skipped, warnings)
    summary_file = write_run_summary(summary, folder, run_prefix)
    log.info(f"Exported {len(exported)} workbooks, summary written to {summary_file}")

    # 6) mail
    if mailer is None:
        log.info("Mail disabled, no reports sent")
        return summary

    errors = mail_reports(reports, exported, mailer)
    for e in errors:
        log.error(e)
    log.info(f"Mailed {len(reports) - len(errors)} of {len(reports)} matrix reports")

    admin = settings["mail"]["admin"]
    if admin:
        try:
            mail_admin_summary(summary, admin, mailer, errors)
        except MatrixAuditError as e:
            log.error(f"Admin summary mail failed: {e}")
    summary["mail_errors"] = errors
    return summary


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Audit folder access matrices against Active Directory.")
    parser.add_argument("--settings", default=None, help="JSON settings file (default: settings.json if present)")
    parser.add_argument("--matrix-file", default=None, help="Matrix workbook with FormData and AdObjectNames sheets")
    parser.add_argument("--log-folder", default=None, help="Folder for exported workbooks, summary and run log")
    parser.add_argument("--max-concurrent-jobs", type=int, default=None, help="Parallel directory lookups")
    parser.add_argument("--no-managers", action="store_true", help="Skip the GroupManagers sheet")
    parser.add_argument("--no-mail", action="store_true", help="Export only, do not send any mail")
    return parser.parse_args(argv)


def cli_overrides(args):
    overrides = {}
    if args.matrix_file:
        overrides["matrix_file"] = args.matrix_file
    if args.log_folder:
        overrides["log_folder"] = args.log_folder
    if args.max_concurrent_jobs is not None:
        overrides["max_concurrent_jobs"] = args.max_concurrent_jobs
    if args.no_managers:
        overrides["include_group_managers"] = False
    if args.no_mail:
        overrides["mail"] = {"send": False}
    return overrides


def main(argv=None):
    args = parse_args(argv)
    log = RunLog()
    try:
        settings = load_settings(args.settings, cli_overrides(args))
        run_prefix = make_run_prefix()
        log = RunLog(os.path.join(settings["log_folder"], sanitize_filename(f"{run_prefix}- run.log")))
        log.info(f"Matrix file: {settings['matrix_file']}")

        mailer = GraphMailer(settings["mail"]["sender"]) if settings["mail"]["send"] else None
        directory = LdapDirectory.from_settings(settings["ldap"])
        try:
            run_audit(settings, directory, mailer, log, run_prefix)
        finally:
            directory.close()
    except MatrixAuditError as e:
        log.error(str(e))
        sys.exit(1)

    log.info("Matrix access audit completed.")


if __name__ == "__main__":
    main()
