"""Import a grant CSV from the command line (upload + execute in one run).

Usage:
    grant-import grants.csv --category gpe --limit all
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from grant_importer.core.config import Settings
from grant_importer.core.db_factory import create_database
from grant_importer.core.models import ImportLimit, ImportSummary
from grant_importer.errors import GrantImportError
from grant_importer.staging import StagingStore
from grant_importer.workflow import ImportWorkflow


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="grant-import", description=__doc__.splitlines()[0])
    parser.add_argument("csv_file", type=Path, help="CSV file with grant rows")
    parser.add_argument("--category", required=True, help="Group program slug, e.g. gpe")
    parser.add_argument(
        "--limit",
        choices=[limit.value for limit in ImportLimit],
        default=ImportLimit.ALL.value,
        help="How many rows to import (default: all)",
    )
    return parser


def print_summary(summary: ImportSummary) -> None:
    print("Import Complete")
    print(f"  Grants Created:  {summary.grants_created}")
    print(f"  Grants Skipped:  {summary.grants_skipped}")
    print(f"  Users Created:   {summary.users_created}")
    print(f"  Users Skipped:   {summary.users_skipped}")
    if summary.errors:
        print("Errors:")
        for error in summary.errors:
            print(f"  {error}")


async def run_import(args: argparse.Namespace, settings: Settings | None = None) -> int:
    settings = settings or Settings()
    db = create_database(settings)
    await db.connect()
    try:
        workflow = ImportWorkflow(db, settings)
        staging = StagingStore(settings.staging_ttl_seconds)
        try:
            content = args.csv_file.read_bytes()
        except OSError as e:
            print(f"Cannot read {args.csv_file}: {e}", file=sys.stderr)
            return 2
        try:
            upload = workflow.upload(staging, args.csv_file.name, content, args.category)
            print(upload.message)
            summary = await workflow.execute(staging, args.limit)
        except GrantImportError as e:
            print(str(e), file=sys.stderr)
            return 2
        print_summary(summary)
        return 1 if summary.has_errors else 0
    finally:
        await db.close()


def main(argv: list[str] | None = None) -> None:
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    sys.exit(asyncio.run(run_import(args, settings)))


if __name__ == "__main__":
    main()
