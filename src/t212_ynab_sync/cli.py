"""Command-line interface for t212-ynab-sync."""

import argparse
import asyncio
import sys
import uuid
from collections import Counter
from pathlib import Path

from t212_ynab_sync import __version__
from t212_ynab_sync.config import get_settings
from t212_ynab_sync.container import Container
from t212_ynab_sync.domain.amounts import format_money
from t212_ynab_sync.exceptions import SyncError
from t212_ynab_sync.logging_config import LogContext, configure_logging, get_logger
from t212_ynab_sync.parsers.export_parser import Trading212ExportParser
from t212_ynab_sync.services.sync import SyncResult

logger = get_logger(__name__)


def _print_result(result: SyncResult) -> None:
    prefix = "Dry run: would create" if result.dry_run else "Created"
    print(f"Parsed {result.parsed_count} export rows")
    print(f"{prefix} {result.created_count} transactions")
    for entry in result.created:
        print(
            f"  + {entry.date.isoformat()} {format_money(entry.amount):>12} "
            f"{entry.payee_name or ''} {entry.memo or ''}".rstrip()
        )
    if result.updated:
        verb = "would update" if result.dry_run else "Updated"
        print(f"{verb} {result.updated_count} position adjustments")
        for entry in result.updated:
            print(f"  ~ {entry.id} {format_money(entry.amount):>12} {entry.memo or ''}")
    if result.skipped:
        print(f"Skipped {len(result.skipped)} transactions")
        for skip in result.skipped:
            print(f"  - {skip.transaction_id} ({skip.action}): {skip.reason.value}")


async def _run_sync(
    container: Container, export_file: Path | None, dry_run: bool
) -> SyncResult:
    async with container:
        return await container.orchestrator.run(export_file, dry_run=dry_run)


def cmd_sync(args: argparse.Namespace) -> int:
    settings = get_settings()
    configure_logging(settings)
    container = Container(settings)

    export_file = Path(args.export_file) if args.export_file else None
    if export_file is not None and not export_file.exists():
        print(f"Error: File not found: {export_file}")
        return 1

    try:
        container.require_credentials()
        run_id = uuid.uuid4().hex[:12]
        with LogContext(run_id=run_id, budget_id=settings.ynab_budget_id):
            result = asyncio.run(_run_sync(container, export_file, args.dry_run))
    except SyncError as e:
        logger.error("sync_failed", **e.to_dict())
        print(f"Error: {e.message}")
        return 1

    _print_result(result)
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    """Validate an export file offline and report malformed rows."""
    file_path = Path(args.file)
    if not file_path.exists():
        print(f"Error: File not found: {file_path}")
        return 1

    parser = Trading212ExportParser()
    text = file_path.read_text(encoding="utf-8")
    results = parser.validate(parser.iter_records(text))
    errors = [r for r in results if not r.ok]

    print(f"Rows: {len(results)}")
    print(f"Valid: {len(results) - len(errors)}")

    actions = Counter(r.transaction.action for r in results if r.transaction)
    if actions:
        print("  Transaction types:")
        for action, count in sorted(actions.items(), key=lambda kv: kv[0].value):
            print(f"    - {action.value}: {count}")

    if errors:
        print(f"Invalid: {len(errors)}")
        for r in errors[:10]:
            print(f"  - row {r.row_number}: {r.error}")
        if len(errors) > 10:
            print(f"  ... and {len(errors) - 10} more")
        return 1
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    print(f"t212-ynab-sync v{__version__}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="t212-sync",
        description="Reconcile a Trading212 account into a YNAB budget account",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # sync command
    sync_parser = subparsers.add_parser("sync", help="Run one sync")
    sync_parser.add_argument(
        "--export-file",
        "-f",
        default=None,
        help="Use a local Trading212 CSV export instead of requesting one",
    )
    sync_parser.add_argument(
        "--dry-run",
        "-n",
        action="store_true",
        help="Compute the changes without writing to YNAB",
    )
    sync_parser.set_defaults(func=cmd_sync)

    # parse command
    parse_parser = subparsers.add_parser(
        "parse", help="Validate a Trading212 CSV export file"
    )
    parse_parser.add_argument("file", help="Trading212 CSV export")
    parse_parser.set_defaults(func=cmd_parse)

    # version command
    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
