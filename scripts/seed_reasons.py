#!/usr/bin/env python3
"""
Seed the inventory change reason catalog.

Existing (reason, change_type) pairs are left alone, so the script can be run
repeatedly.

Usage:
    python3 scripts/seed_reasons.py --dry-run
    python3 scripts/seed_reasons.py --confirm
"""

import argparse
import asyncio
import logging
import sys

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from relief_stock.core.config import settings
from relief_stock.core.database.session import async_session
from relief_stock.core.logging_config import configure_logging
from relief_stock.modules.inventory.models import ChangeType, InventoryChangeReason

logger = logging.getLogger("seed_reasons")

DEFAULT_REASONS: list[tuple[str, ChangeType, int]] = [
    ("其他（請說明）", ChangeType.INCREASE, 1),
    ("過期", ChangeType.DECREASE, 1),
    ("損壞", ChangeType.DECREASE, 2),
    ("遺失", ChangeType.DECREASE, 3),
    ("其他（請說明）", ChangeType.DECREASE, 4),
]


async def run_seed(session: AsyncSession, *, dry_run: bool) -> int:
    created = 0
    for reason, change_type, sort_order in DEFAULT_REASONS:
        existing = await session.scalar(
            select(InventoryChangeReason).where(
                InventoryChangeReason.reason == reason,
                InventoryChangeReason.change_type == change_type.value,
            )
        )
        if existing is not None:
            continue
        session.add(
            InventoryChangeReason(
                reason=reason,
                change_type=change_type.value,
                sort_order=sort_order,
                is_active=True,
            )
        )
        created += 1
        logger.info("Adding reason %s / %s", reason, change_type.value)

    if dry_run:
        await session.rollback()
    else:
        await session.commit()
    return created


async def main() -> None:
    parser = argparse.ArgumentParser(description="Seed inventory change reasons")
    parser.add_argument("--dry-run", action="store_true", help="Do not commit")
    parser.add_argument("--confirm", action="store_true", help="Commit changes")
    args = parser.parse_args()
    if not args.dry_run and not args.confirm:
        print("Use --dry-run or --confirm")
        sys.exit(1)

    configure_logging()
    logger.info("Database: %s", settings.database_url.split("@")[-1] if "@" in settings.database_url else "?")
    logger.info("Mode: %s", "DRY-RUN" if args.dry_run else "CONFIRM")
    async with async_session() as session:
        created = await run_seed(session, dry_run=args.dry_run)
    logger.info("Done, %d reasons %s", created, "to add" if args.dry_run else "added")


if __name__ == "__main__":
    asyncio.run(main())
