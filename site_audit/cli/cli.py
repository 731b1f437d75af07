# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Command-line interface for Site Audit."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from ..config.config import Config
from ..core.check_factory import build_checklist
from ..core.checklist import Checklist
from ..core.checks.base import BaseCheck
from ..core.exceptions import CheckNotFoundError, ResultPersistenceError, SiteAuditError
from ..core.help_pages import check_help, format_timestamp, general_help
from ..core.models import AggregateStatus, BatchReport, CheckStatus
from ..core.reporters.json_reporter import JSONReporter
from ..core.reporters.markdown_reporter import MarkdownReporter

logger = logging.getLogger("site_audit.cli")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO if getattr(args, "verbose", False) else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load_config(args: argparse.Namespace) -> Config:
    """Build the config from ``--env-file`` / environment, then apply CLI overrides."""
    env_file = getattr(args, "env_file", None)
    config = Config.from_file(Path(env_file)) if env_file else Config.from_env()

    if getattr(args, "history", None):
        config.history_path = Path(args.history)
    if getattr(args, "skips", None):
        config.skip_path = Path(args.skips)
    if getattr(args, "log", None):
        config.log_path = Path(args.log)
    if getattr(args, "policy", None):
        config.policy_path = Path(args.policy)
    if getattr(args, "format", None):
        config.output_format = args.format
    return config


def _build_checklist(args: argparse.Namespace) -> tuple[Config, Checklist]:
    config = _load_config(args)
    return config, build_checklist(config)


def _resolve_check(checklist: Checklist, namespace: str, title: str) -> BaseCheck:
    check = checklist.get_check(namespace, title)
    if check is None:
        raise CheckNotFoundError(namespace, title)
    return check


def _generate_summary(report: BatchReport, checklist: Checklist) -> str:
    if report.aggregate is None:
        lines = [f"Overall status: UNKNOWN ({report.aggregate_error})", ""]
    else:
        lines = [f"Overall status: {report.aggregate.value}", ""]
    for outcome in report.outcomes:
        if not outcome.reportable:
            continue
        label = f"{outcome.namespace}: {outcome.title}"
        if outcome.skipped:
            label += " (skipped)"
        if not outcome.ran:
            lines.append(f"[NOT RUN] {label}")
            continue
        if outcome.result is None:
            lines.append(f"[ERROR] {label} - {outcome.error}")
            continue

        check = checklist.get_check(outcome.identity.namespace, outcome.identity.title)
        message = check.message(outcome.result.status) if check else ""
        lines.append(f"[{outcome.result.status.value}] {label} - {message}")
        if outcome.error:
            lines.append(f"  warning: {outcome.error}")
        if check is not None:
            plain = check.evaluate_plain(outcome.result)
            if plain:
                lines.extend("  " + line for line in plain.rstrip("\n").split("\n"))

    lines.append("")
    lines.append(f"{len(report.succeeded)} completed, {len(report.failed)} errored")
    return "\n".join(lines)


def _format_report(config: Config, report: BatchReport, checklist: Checklist, args: argparse.Namespace) -> str:
    fmt = config.output_format
    if fmt == "json":
        return JSONReporter(pretty=not getattr(args, "compact", False)).generate_report(report)
    if fmt == "markdown":
        return MarkdownReporter(checklist=checklist).generate_report(report)
    return _generate_summary(report, checklist)


def _write_output(args: argparse.Namespace, output: str) -> None:
    """Write *output* to a file or stdout."""
    if getattr(args, "output", None):
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(output)
        print(f"Report saved to: {args.output}")
    else:
        print(output)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def run_command(args: argparse.Namespace) -> int:
    """Handle the ``run`` command for all checks or one namespace."""
    config, checklist = _build_checklist(args)

    if args.namespace:
        if not checklist.get_namespace_checks(args.namespace):
            print(f"Error: No checks registered in namespace '{args.namespace}'", file=sys.stderr)
            return 1
        report = checklist.run_namespace(args.namespace)
    else:
        report = checklist.run_all()

    _write_output(args, _format_report(config, report, checklist, args))

    if report.failed or report.aggregate is None:
        return 1
    if args.fail_on_findings and report.aggregate == AggregateStatus.FAIL:
        return 1
    return 0


def run_check_command(args: argparse.Namespace) -> int:
    """Handle the ``run-check`` command for a single check."""
    config, checklist = _build_checklist(args)
    check = _resolve_check(checklist, args.namespace, args.title)

    try:
        result = checklist.run_check(check)
    except ResultPersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        result = e.result
        exit_code = 1
    else:
        exit_code = 0

    if config.output_format == "json":
        print(json.dumps({"id": check.identity.key, "result": result.to_dict()}, indent=2))
    else:
        print(f"[{result.status.value}] {check.get_namespace()}: {check.get_title()} - {check.message(result.status)}")
        plain = check.evaluate_plain(result)
        if plain:
            print(plain.rstrip("\n"))

    if exit_code == 0 and args.fail_on_findings and result.status == CheckStatus.FAIL:
        return 1
    return exit_code


def list_checks_command(args: argparse.Namespace) -> int:
    """Handle the ``list-checks`` command."""
    config, checklist = _build_checklist(args)

    rows = []
    for check in checklist.get_checks():
        result = checklist.last_result(check, skip_access_check=True)
        rows.append(
            {
                "id": check.identity.key,
                "namespace": check.get_namespace(),
                "title": check.get_title(),
                "skipped": checklist.is_skipped(check),
                "last_status": result.status.value if result else None,
            }
        )

    if config.output_format == "json":
        print(json.dumps({"checks": rows}, indent=2))
        return 0

    print("Registered checks:")
    print("")
    for row in rows:
        suffix = " [skipped]" if row["skipped"] else ""
        last = row["last_status"] or "never run"
        print(f"  {row['id']:<40} {last:<10}{suffix}")
    return 0


def skip_command(args: argparse.Namespace) -> int:
    """Handle the ``skip`` command."""
    config, checklist = _build_checklist(args)
    check = _resolve_check(checklist, args.namespace, args.title)
    state = checklist.skip(check, actor=args.actor or config.actor)
    print(f"Skipped {check.identity} on {format_timestamp(state.skipped_on)} by {state.actor or 'Anonymous'}")
    return 0


def unskip_command(args: argparse.Namespace) -> int:
    """Handle the ``unskip`` command."""
    _, checklist = _build_checklist(args)
    check = _resolve_check(checklist, args.namespace, args.title)
    checklist.unskip(check)
    print(f"Unskipped {check.identity}")
    return 0


def status_command(args: argparse.Namespace) -> int:
    """Handle the ``status`` command: print the aggregate status."""
    config, checklist = _build_checklist(args)
    aggregate = checklist.aggregate_status()

    if config.output_format == "json":
        print(json.dumps({"aggregate_status": aggregate.value}))
    else:
        print(f"Overall status: {aggregate.value}")

    if args.fail_on_findings and aggregate == AggregateStatus.FAIL:
        return 1
    return 0


def help_command(args: argparse.Namespace) -> int:
    """Handle the ``help`` command: general or check-specific help."""
    config, checklist = _build_checklist(args)

    if bool(args.namespace) != bool(args.title):
        print("Error: give both a namespace and a title, or neither", file=sys.stderr)
        return 1

    page = check_help(checklist, args.namespace, args.title) if args.namespace else general_help(checklist)

    if config.output_format == "json":
        print(json.dumps(page, indent=2))
        return 0

    if not args.namespace:
        for paragraph in page["paragraphs"]:
            print(paragraph)
            print("")
        for group in page["checks"].values():
            print(f"{group['namespace']}:")
            for entry in group["checks"]:
                print(f"  - {entry['title']} ({entry['path']})")
        return 0

    print(page["help"]["title"])
    print("")
    for paragraph in page["help"]["paragraphs"]:
        print(paragraph)
    if page["skipped"]:
        print("")
        print(page["skip_message"])
    elif "evaluation" in page:
        print("")
        print(f"Last result: {page['last_result']['status']} - {page['message']}")
        for paragraph in page["evaluation"]["paragraphs"]:
            print(paragraph)
        for item in page["evaluation"]["items"]:
            print(f"  - {item}")
    return 0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    """Flags shared by every sub-command."""
    parser.add_argument("--history", metavar="PATH", help="Result history JSON file (SITE_AUDIT_HISTORY_PATH)")
    parser.add_argument("--skips", metavar="PATH", help="Skip state JSON file (SITE_AUDIT_SKIP_PATH)")
    parser.add_argument("--log", metavar="PATH", help="Event log in JSON-lines format (SITE_AUDIT_LOG_PATH)")
    parser.add_argument("--policy", metavar="PATH", help="Audit policy YAML (SITE_AUDIT_POLICY)")
    parser.add_argument("--env-file", metavar="PATH", help="Load SITE_AUDIT_* settings from a .env file")
    parser.add_argument(
        "--format",
        choices=["summary", "json", "markdown"],
        default=None,
        help="Output format (default: summary)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable informational logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="site-audit",
        description="Site Audit - security audit checklist for application event logs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  site-audit run --log /var/log/app/events.jsonl
  site-audit run --namespace "Security Review" --format json
  site-audit run-check security_review failed_logins
  site-audit skip security_review query_errors --actor admin
  site-audit status --fail-on-findings
  site-audit help security_review failed_logins
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # -- run ---------------------------------------------------------------
    run_p = subparsers.add_parser("run", help="Run all checks (or one namespace)")
    run_p.add_argument("--namespace", help="Only run checks in this namespace")
    run_p.add_argument("--output", "-o", help="Write the report to a file")
    run_p.add_argument("--compact", action="store_true", help="Compact JSON output")
    run_p.add_argument("--fail-on-findings", action="store_true", help="Exit 1 if the overall status is FAIL")
    _add_common_flags(run_p)

    # -- run-check ---------------------------------------------------------
    rc_p = subparsers.add_parser("run-check", help="Run a single check")
    rc_p.add_argument("namespace")
    rc_p.add_argument("title")
    rc_p.add_argument("--fail-on-findings", action="store_true", help="Exit 1 if the check fails")
    _add_common_flags(rc_p)

    # -- list-checks -------------------------------------------------------
    lc_p = subparsers.add_parser("list-checks", help="List registered checks")
    _add_common_flags(lc_p)

    # -- skip / unskip -----------------------------------------------------
    skip_p = subparsers.add_parser("skip", help="Exclude a check from the overall status")
    skip_p.add_argument("namespace")
    skip_p.add_argument("title")
    skip_p.add_argument("--actor", help="Who is skipping the check (SITE_AUDIT_ACTOR)")
    _add_common_flags(skip_p)

    unskip_p = subparsers.add_parser("unskip", help="Include a skipped check again")
    unskip_p.add_argument("namespace")
    unskip_p.add_argument("title")
    _add_common_flags(unskip_p)

    # -- status ------------------------------------------------------------
    st_p = subparsers.add_parser("status", help="Show the aggregate status of the last results")
    st_p.add_argument("--fail-on-findings", action="store_true", help="Exit 1 if the overall status is FAIL")
    _add_common_flags(st_p)

    # -- help --------------------------------------------------------------
    help_p = subparsers.add_parser("help", help="Show general or check-specific help")
    help_p.add_argument("namespace", nargs="?")
    help_p.add_argument("title", nargs="?")
    _add_common_flags(help_p)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _configure_logging(args)

    dispatch = {
        "run": run_command,
        "run-check": run_check_command,
        "list-checks": list_checks_command,
        "skip": skip_command,
        "unskip": unskip_command,
        "status": status_command,
        "help": help_command,
    }
    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except (SiteAuditError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
