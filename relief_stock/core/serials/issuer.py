import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from relief_stock.core.config import settings
from relief_stock.core.database.statements import insert_ignoring_conflict
from relief_stock.core.exceptions import InvalidStateError, ValidationError
from relief_stock.core.serials.models import SerialNumberCounter, SerialType

logger = logging.getLogger(__name__)


class SerialNumberIssuer:
    """
    Issues sequential serial numbers in format: PREFIX + zero-padded counter

    Examples:
        A00001   (donation)
        B00042   (disbursement)
        00007    (report, empty prefix)

    The counter lives in serial_number_counters and is only ever changed by a
    single UPDATE ... SET counter = counter + 1 RETURNING statement, so two
    concurrent transactions can never read the same value. Numbers are issued
    inside the caller's transaction; the caller commits.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _normalize_type(serial_type: SerialType | str) -> str:
        value = str(serial_type).strip().lower()
        if value not in settings.serial_prefixes:
            allowed = ", ".join(sorted(settings.serial_prefixes))
            raise ValidationError(
                f"Unknown serial number type '{serial_type}'. Allowed: {allowed}",
                field="serial_type",
            )
        return value

    @staticmethod
    def format(prefix: str, counter: int) -> str:
        return f"{prefix}{counter:0{settings.serial_number_width}d}"

    async def _increment(self, serial_type: str) -> tuple[str, int] | None:
        stmt = (
            update(SerialNumberCounter)
            .where(SerialNumberCounter.serial_type == serial_type)
            .values(counter=SerialNumberCounter.counter + 1)
            .returning(SerialNumberCounter.prefix, SerialNumberCounter.counter)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return row[0], int(row[1])

    def _insert_counter_stmt(self, serial_type: str):
        values = {
            "serial_type": serial_type,
            "prefix": settings.serial_prefixes[serial_type],
            "counter": 0,
        }
        return insert_ignoring_conflict(self.session, SerialNumberCounter, values, ["serial_type"])

    async def issue(self, serial_type: SerialType | str) -> str:
        """Increment the counter for serial_type and return the formatted number.

        Creates the counter row (counter = 0) on first use.
        """
        normalized = self._normalize_type(serial_type)

        issued = await self._increment(normalized)
        if issued is None:
            # Concurrent first issuances both reach here; ON CONFLICT keeps one row.
            await self.session.execute(self._insert_counter_stmt(normalized))
            logger.info("Created serial number counter for type '%s'", normalized)
            issued = await self._increment(normalized)
            if issued is None:
                raise InvalidStateError(f"Serial number counter for '{normalized}' could not be created")

        prefix, counter = issued
        return self.format(prefix, counter)

    async def backfill_missing(
        self,
        serial_type: SerialType | str,
        records: Sequence[Any],
    ) -> list[str]:
        """
        Assign serial numbers to legacy records that have none.

        Records are numbered in creation order (created_at, then id). Every
        record must still lack a serial: callers select only rows with an empty
        serial_number, so running the backfill again finds nothing to do.
        Numbers come from the same counter as issue(), so they never collide
        with numbers issued afterwards.
        """
        normalized = self._normalize_type(serial_type)

        already_numbered = [r for r in records if r.serial_number]
        if already_numbered:
            ids = ", ".join(str(r.id) for r in already_numbered)
            raise ValidationError(
                f"Records already have serial numbers: {ids}", field="serial_number"
            )

        ordered = sorted(records, key=lambda r: (r.created_at, r.id))
        issued: list[str] = []
        for record in ordered:
            record.serial_number = await self.issue(normalized)
            issued.append(record.serial_number)

        await self.session.flush()
        if issued:
            logger.info(
                "Backfilled %d %s serial numbers (%s .. %s)",
                len(issued),
                normalized,
                issued[0],
                issued[-1],
            )
        return issued


async def get_serial_number(session: AsyncSession, serial_type: SerialType | str) -> str:
    """Convenience function to issue a serial number."""
    issuer = SerialNumberIssuer(session)
    return await issuer.issue(serial_type)
