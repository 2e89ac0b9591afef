"""Tests for the change reason catalog."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from relief_stock.core.exceptions import ValidationError
from relief_stock.modules.inventory.models import ChangeType, InventoryChangeReason
from relief_stock.modules.inventory.reasons import ReasonCatalogGuard


class TestReasonCatalogGuard:
    async def test_valid_pair(self, db_session: AsyncSession, reasons):
        entry = await ReasonCatalogGuard(db_session).validate("過期", ChangeType.DECREASE)
        assert entry.reason == "過期"
        assert entry.change_type == ChangeType.DECREASE.value

    async def test_reason_is_trimmed(self, db_session: AsyncSession, reasons):
        entry = await ReasonCatalogGuard(db_session).validate("  損壞 ", "DECREASE")
        assert entry.reason == "損壞"

    async def test_same_text_allowed_for_both_directions(self, db_session: AsyncSession, reasons):
        guard = ReasonCatalogGuard(db_session)
        increase = await guard.validate("其他（請說明）", ChangeType.INCREASE)
        decrease = await guard.validate("其他（請說明）", ChangeType.DECREASE)
        assert increase.id != decrease.id

    async def test_wrong_direction_rejected(self, db_session: AsyncSession, reasons):
        with pytest.raises(ValidationError) as exc_info:
            await ReasonCatalogGuard(db_session).validate("遺失", ChangeType.INCREASE)
        assert exc_info.value.details["field"] == "reason"

    async def test_empty_reason_rejected(self, db_session: AsyncSession, reasons):
        with pytest.raises(ValidationError):
            await ReasonCatalogGuard(db_session).validate("   ", ChangeType.DECREASE)

    async def test_invalid_change_type_rejected(self, db_session: AsyncSession, reasons):
        with pytest.raises(ValidationError) as exc_info:
            await ReasonCatalogGuard(db_session).validate("過期", "TRANSFER")
        assert exc_info.value.details["field"] == "change_type"

    async def test_stocktake_reason_reserved_even_if_cataloged(self, db_session: AsyncSession, reasons):
        db_session.add(InventoryChangeReason(reason="盤點調整", change_type=ChangeType.DECREASE.value))
        await db_session.commit()

        with pytest.raises(ValidationError):
            await ReasonCatalogGuard(db_session).validate("盤點調整", ChangeType.DECREASE)

    async def test_inactive_reason_rejected(self, db_session: AsyncSession, reasons):
        reasons[1].is_active = False
        await db_session.commit()

        with pytest.raises(ValidationError):
            await ReasonCatalogGuard(db_session).validate("過期", ChangeType.DECREASE)

    async def test_list_reasons(self, db_session: AsyncSession, reasons):
        guard = ReasonCatalogGuard(db_session)

        all_reasons = await guard.list_reasons()
        assert len(all_reasons) == 5

        decrease = await guard.list_reasons(ChangeType.DECREASE)
        assert [r.reason for r in decrease] == ["過期", "損壞", "遺失", "其他（請說明）"]
