#!/usr/bin/env python3
"""
Backfill serial numbers on donation records and disbursements that have none.

Why:
Records created before serial numbers existed (or imported from old exports)
have an empty serial_number. Reports and receipts need one.

Strategy (safe + idempotent):
- Select only records whose serial_number is NULL or empty, oldest first.
- Issue numbers from the regular serial counter in creation order, so the
  backfilled numbers never collide with numbers issued later.
- Records that already have a serial are never selected, so a second run
  changes nothing.

Usage:
  python3 scripts/backfill_serial_numbers.py --dry-run
  python3 scripts/backfill_serial_numbers.py --confirm --type donation
"""

import argparse
import asyncio
import logging
import sys

from relief_stock.core.config import settings
from relief_stock.core.database.session import async_session
from relief_stock.core.logging_config import configure_logging
from relief_stock.core.serials import SerialType
from relief_stock.modules.records.service import RECORD_MODELS, RecordService

logger = logging.getLogger("backfill_serial_numbers")


async def backfill(
    record_types: list[SerialType],
    *,
    dry_run: bool,
    session_factory=async_session,
) -> dict[str, list[str]]:
    results: dict[str, list[str]] = {}
    async with session_factory() as session:
        service = RecordService(session)
        for record_type in record_types:
            assigned = await service.backfill_serial_numbers(record_type, commit=False)
            results[record_type.value] = assigned
            for serial in assigned:
                logger.info("%s: assigned %s", record_type.value, serial)

        if dry_run:
            await session.rollback()
        else:
            await session.commit()
    return results


async def main() -> None:
    parser = argparse.ArgumentParser(description="Backfill missing serial numbers")
    parser.add_argument("--dry-run", action="store_true", help="Preview changes, rollback at end")
    parser.add_argument("--confirm", action="store_true", help="Apply changes (COMMIT)")
    parser.add_argument(
        "--type",
        choices=[t.value for t in RECORD_MODELS],
        default=None,
        help="Limit to one record type (default: all)",
    )
    args = parser.parse_args()

    if not args.dry_run and not args.confirm:
        print("ERROR: specify --dry-run or --confirm")
        sys.exit(1)
    if args.dry_run and args.confirm:
        print("ERROR: choose only one of --dry-run / --confirm")
        sys.exit(1)

    configure_logging()
    record_types = [SerialType(args.type)] if args.type else list(RECORD_MODELS)

    db_target = settings.database_url.split("@")[1] if "@" in settings.database_url else "unknown"
    logger.info("Environment: %s, DB: %s", settings.app_env, db_target)
    logger.info("Mode: %s", "DRY-RUN" if args.dry_run else "APPLY (COMMIT)")

    if args.confirm:
        print("\nThis will UPDATE serial numbers in the database. Make a backup first.")
        response = input("Type 'APPLY SERIAL BACKFILL' to continue: ")
        if response != "APPLY SERIAL BACKFILL":
            print("Cancelled by user")
            sys.exit(0)

    results = await backfill(record_types, dry_run=args.dry_run)
    total = sum(len(v) for v in results.values())
    verb = "would assign" if args.dry_run else "assigned"
    for record_type, assigned in results.items():
        logger.info("%s: %s %d serial numbers", record_type, verb, len(assigned))
    logger.info("Total: %s %d serial numbers", verb, total)


if __name__ == "__main__":
    asyncio.run(main())
