"""
Operator commands: migrate content between backends and mint admin tokens.

    council-migrate migrate --type events --source blob --target database
    council-migrate migrate --type all --mode replace --dry-run --json
    council-migrate issue-token --email admin@iitgn.ac.in
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from council.auth import issue_session_token
from council.config import get_settings
from council.content import CONTENT_TYPES, get_content_type
from council.dependencies import build_store
from council.errors import StorageUnavailable
from council.migration import MigrationReport, run_migration

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "file", "blob", "database")

EXIT_OK = 0
EXIT_RECORD_ERRORS = 1
EXIT_BATCH_FAILED = 2


def _print_report(report: MigrationReport) -> None:
    prefix = "[dry run] " if report.dry_run else ""
    print(
        f"{prefix}{report.content_type}: {report.source} -> {report.target} ({report.mode})"
    )
    if report.source_unavailable:
        print("  source unavailable, nothing migrated")
    print(
        f"  found {report.found}, migrated {report.migrated}, "
        f"skipped {report.skipped}, errors {len(report.errors)}"
    )
    print(f"  total in target: {report.total}")
    for category, count in report.breakdown.items():
        print(f"    {category}: {count}")
    for error in report.errors:
        print(f"  ! {error.record_id}: {error.reason}")


def migrate_command(args: argparse.Namespace) -> int:
    settings = get_settings()
    names = list(CONTENT_TYPES) if args.type == "all" else [args.type]
    reports = []
    exit_code = EXIT_OK
    for name in names:
        content_type = get_content_type(name)
        source_kind = args.source or settings.legacy_backend
        target_kind = args.target or settings.current_backend(name)
        if source_kind == target_kind:
            logger.error("Source and target for %s are both %s", name, source_kind)
            return EXIT_BATCH_FAILED
        try:
            source = build_store(source_kind, content_type, settings, seed_defaults=False)
            target = build_store(target_kind, content_type, settings, seed_defaults=False)
            report = run_migration(
                content_type, source, target, mode=args.mode, dry_run=args.dry_run
            )
        except (StorageUnavailable, ValueError) as exc:
            logger.error("Migration of %s failed: %s", name, exc)
            return EXIT_BATCH_FAILED
        if report.errors:
            exit_code = EXIT_RECORD_ERRORS
        reports.append(report)

    if args.json:
        print(json.dumps([report.as_dict() for report in reports], indent=2))
    else:
        for report in reports:
            _print_report(report)
    return exit_code


def issue_token_command(args: argparse.Namespace) -> int:
    settings = get_settings()
    if not settings.session_secret:
        logger.error("SESSION_SECRET must be set to issue tokens")
        return EXIT_BATCH_FAILED
    ttl = args.ttl if args.ttl is not None else settings.session_ttl_seconds
    print(issue_session_token(args.email, settings.session_secret, ttl_seconds=ttl))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Technical Council CMS operations")
    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate = subparsers.add_parser("migrate", help="Copy records from a legacy backend")
    migrate.add_argument(
        "--type",
        required=True,
        choices=sorted(CONTENT_TYPES) + ["all"],
        help="Content type to migrate, or 'all'",
    )
    migrate.add_argument(
        "--source",
        choices=BACKENDS,
        default=None,
        help="Legacy backend to read from (default: LEGACY_BACKEND)",
    )
    migrate.add_argument(
        "--target",
        choices=BACKENDS,
        default=None,
        help="Backend to write to (default: the configured current backend)",
    )
    migrate.add_argument("--mode", choices=("skip", "replace"), default="skip")
    migrate.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be migrated without writing",
    )
    migrate.add_argument("--json", action="store_true", help="Print reports as JSON")
    migrate.set_defaults(func=migrate_command)

    token = subparsers.add_parser("issue-token", help="Print a signed admin session token")
    token.add_argument("--email", required=True)
    token.add_argument("--ttl", type=int, default=None, help="Lifetime in seconds")
    token.set_defaults(func=issue_token_command)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=get_settings().log_level, format="%(levelname)s:%(name)s:%(message)s"
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
