"""Tests for Records module."""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from relief_stock.core.config import settings
from relief_stock.core.exceptions import (
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from relief_stock.core.serials import SerialNumberCounter, get_serial_number
from relief_stock.modules.inventory.models import ChangeType, InventoryLog, ItemStock
from relief_stock.modules.inventory.reversal import ReversalService
from relief_stock.modules.inventory.service import InventoryService
from relief_stock.modules.records.models import Disbursement, DonationRecord
from relief_stock.modules.records.schemas import (
    DisbursementCreate,
    DisbursementItemCreate,
    DonationItemCreate,
    DonationRecordCreate,
)
from relief_stock.modules.records.service import RecordService
from tests.conftest import ACTOR_ID


def _donation(*items: tuple[str, str, int], donor: str = "Red Cross") -> DonationRecordCreate:
    return DonationRecordCreate(
        donor_name=donor,
        items=[
            DonationItemCreate(item_category=category, item_name=name, item_unit="箱", quantity=qty)
            for category, name, qty in items
        ],
    )


def _disbursement(*items: tuple[str, str, int], unit: str = "Shelter 3") -> DisbursementCreate:
    return DisbursementCreate(
        recipient_unit_name=unit,
        items=[
            DisbursementItemCreate(item_category=category, item_name=name, quantity=qty)
            for category, name, qty in items
        ],
    )


async def _stock(db_session: AsyncSession, category: str, name: str) -> ItemStock | None:
    return await db_session.scalar(
        select(ItemStock)
        .where(ItemStock.category == category, ItemStock.name == name)
        .execution_options(populate_existing=True)
    )


async def _count(db_session: AsyncSession, model) -> int:
    return await db_session.scalar(select(func.count()).select_from(model))


class TestDonations:
    """Donations add their items to stock."""

    async def test_create_donation_creates_item_on_first_reference(self, db_session: AsyncSession):
        service = RecordService(db_session)

        record = await service.create_donation_record(_donation(("Food", "Rice", 10)), ACTOR_ID)

        assert record.serial_number == "A00001"
        assert record.donor_name == "Red Cross"
        assert len(record.items) == 1
        stock = await _stock(db_session, "Food", "Rice")
        assert stock.total_stock == 10
        assert stock.unit == "箱"
        assert record.items[0].item_stock_id == stock.id

    async def test_second_donation_adds_to_existing_item(self, db_session: AsyncSession):
        service = RecordService(db_session)
        await service.create_donation_record(_donation(("Food", "Rice", 10)), ACTOR_ID)

        record = await service.create_donation_record(
            _donation(("Food", "Rice", 5), ("Food", " Rice ", 1), ("Hygiene", "Soap", 3)), ACTOR_ID
        )

        assert record.serial_number == "A00002"
        assert (await _stock(db_session, "Food", "Rice")).total_stock == 16
        assert (await _stock(db_session, "Hygiene", "Soap")).total_stock == 3
        assert await _count(db_session, ItemStock) == 2

    async def test_donation_writes_tagged_ledger_entries(self, db_session: AsyncSession):
        record = await RecordService(db_session).create_donation_record(
            _donation(("Food", "Rice", 10)), ACTOR_ID
        )

        logs, total = await InventoryService(db_session).list_logs()
        assert total == 1
        assert logs[0].record_serial == record.serial_number
        assert logs[0].reason == settings.donation_reason
        assert logs[0].change_type == ChangeType.INCREASE.value
        assert logs[0].previous_quantity == 0
        assert logs[0].new_quantity == 10
        assert logs[0].is_absolute is False

    async def test_record_entries_cannot_be_reversed_directly(self, db_session: AsyncSession):
        await RecordService(db_session).create_donation_record(_donation(("Food", "Rice", 10)), ACTOR_ID)
        logs, _ = await InventoryService(db_session).list_logs()

        with pytest.raises(InvalidStateError):
            await ReversalService(db_session).reverse(logs[0].id, ACTOR_ID)

        assert (await _stock(db_session, "Food", "Rice")).total_stock == 10

    async def test_blank_item_name_rejected(self, db_session: AsyncSession):
        with pytest.raises(ValidationError):
            await RecordService(db_session).create_donation_record(
                _donation(("Food", "   ", 1)), ACTOR_ID
            )
        assert await _count(db_session, DonationRecord) == 0
        assert await _count(db_session, SerialNumberCounter) == 0

    async def test_delete_donation_removes_stock(self, db_session: AsyncSession):
        service = RecordService(db_session)
        record = await service.create_donation_record(_donation(("Food", "Rice", 10)), ACTOR_ID)

        await service.delete_donation_record(record.id, ACTOR_ID)

        assert (await _stock(db_session, "Food", "Rice")).total_stock == 0
        assert await _count(db_session, DonationRecord) == 0
        with pytest.raises(NotFoundError):
            await service.get_donation_record(record.id)

    async def test_delete_donation_already_distributed_is_refused(self, db_session: AsyncSession):
        service = RecordService(db_session)
        record = await service.create_donation_record(_donation(("Food", "Rice", 10)), ACTOR_ID)
        await service.create_disbursement(_disbursement(("Food", "Rice", 8)), ACTOR_ID)

        with pytest.raises(InsufficientStockError):
            await service.delete_donation_record(record.id, ACTOR_ID)
        await db_session.rollback()

        assert (await _stock(db_session, "Food", "Rice")).total_stock == 2
        assert await _count(db_session, DonationRecord) == 1


class TestDisbursements:
    """Disbursements take their items off stock."""

    async def test_create_disbursement(self, db_session: AsyncSession):
        service = RecordService(db_session)
        await service.create_donation_record(_donation(("Food", "Rice", 10), ("Food", "Water", 4)), ACTOR_ID)

        record = await service.create_disbursement(
            _disbursement(("Food", "Rice", 6), ("Food", "Water", 4)), ACTOR_ID
        )

        assert record.serial_number == "B00001"
        assert record.actor_id == ACTOR_ID
        assert [item.quantity for item in record.items] == [6, 4]
        assert (await _stock(db_session, "Food", "Rice")).total_stock == 4
        assert (await _stock(db_session, "Food", "Water")).total_stock == 0

        logs, _ = await InventoryService(db_session).list_logs(change_type=ChangeType.DECREASE)
        assert {log.record_serial for log in logs} == {"B00001"}
        assert {log.reason for log in logs} == {settings.disbursement_reason}

    async def test_low_stock_leaves_no_trace(self, db_session: AsyncSession):
        service = RecordService(db_session)
        await service.create_donation_record(_donation(("Food", "Rice", 10), ("Food", "Water", 2)), ACTOR_ID)

        with pytest.raises(InsufficientStockError) as exc_info:
            await service.create_disbursement(
                _disbursement(("Food", "Rice", 5), ("Food", "Water", 3)), ACTOR_ID
            )

        assert exc_info.value.details["requested"] == 3
        assert exc_info.value.details["available"] == 2
        assert await _count(db_session, Disbursement) == 0
        assert (await _stock(db_session, "Food", "Rice")).total_stock == 10
        assert (await _stock(db_session, "Food", "Water")).total_stock == 2
        assert await get_serial_number(db_session, "disbursement") == "B00001"

    async def test_repeated_item_is_checked_against_the_sum(self, db_session: AsyncSession):
        service = RecordService(db_session)
        await service.create_donation_record(_donation(("Food", "Rice", 5)), ACTOR_ID)

        with pytest.raises(InsufficientStockError):
            await service.create_disbursement(
                _disbursement(("Food", "Rice", 3), ("Food", "Rice", 3)), ACTOR_ID
            )
        assert (await _stock(db_session, "Food", "Rice")).total_stock == 5

    async def test_unknown_item_rejected(self, db_session: AsyncSession):
        with pytest.raises(InsufficientStockError) as exc_info:
            await RecordService(db_session).create_disbursement(
                _disbursement(("Food", "Caviar", 1)), ACTOR_ID
            )
        assert exc_info.value.details["item_id"] == "Food/Caviar"
        assert await _count(db_session, ItemStock) == 0
        assert await _count(db_session, SerialNumberCounter) == 0

    async def test_delete_disbursement_returns_stock(self, db_session: AsyncSession):
        service = RecordService(db_session)
        await service.create_donation_record(_donation(("Food", "Rice", 10)), ACTOR_ID)
        record = await service.create_disbursement(_disbursement(("Food", "Rice", 7)), ACTOR_ID)

        await service.delete_disbursement(record.id, ACTOR_ID)

        assert (await _stock(db_session, "Food", "Rice")).total_stock == 10
        assert await _count(db_session, Disbursement) == 0
        logs, total = await InventoryService(db_session).list_logs()
        assert total == 3
        assert logs[0].change_type == ChangeType.INCREASE.value
        assert logs[0].record_serial == "B00001"

    async def test_ledger_chain_stays_consistent(self, db_session: AsyncSession, reasons):
        service = RecordService(db_session)
        await service.create_donation_record(_donation(("Food", "Rice", 10)), ACTOR_ID)
        stock = await _stock(db_session, "Food", "Rice")
        await InventoryService(db_session).apply_relative_change(
            stock.id, ChangeType.DECREASE, 1, "過期", ACTOR_ID
        )
        await service.create_disbursement(_disbursement(("Food", "Rice", 4)), ACTOR_ID)

        logs, _ = await InventoryService(db_session).list_logs(item_stock_id=stock.id)
        chronological = list(reversed(logs))
        for earlier, later in zip(chronological, chronological[1:]):
            assert later.previous_quantity == earlier.new_quantity
        assert chronological[-1].new_quantity == 5


class TestRecordSerials:
    async def test_generate_report_id(self, db_session: AsyncSession):
        service = RecordService(db_session)
        assert await service.generate_report_id() == "00001"
        assert await service.generate_report_id() == "00002"

    async def test_unknown_record_type(self, db_session: AsyncSession):
        with pytest.raises(ValidationError):
            await RecordService(db_session).backfill_serial_numbers("report")

    async def test_backfill_then_rerun_assigns_nothing(self, db_session: AsyncSession):
        await RecordService(db_session).create_donation_record(_donation(("Food", "Rice", 3)), ACTOR_ID)
        db_session.add_all(
            [
                Disbursement(recipient_unit_name="Legacy 1", actor_id="import"),
                Disbursement(recipient_unit_name="Legacy 2", actor_id="import", serial_number=""),
            ]
        )
        await db_session.commit()
        service = RecordService(db_session)

        assigned = await service.backfill_serial_numbers("disbursement")
        assert assigned == ["B00001", "B00002"]
        assert await service.list_missing_serial("disbursement") == []

        assert await service.backfill_serial_numbers("disbursement") == []

        record = await service.create_disbursement(_disbursement(("Food", "Rice", 1)), ACTOR_ID)
        assert record.serial_number == "B00003"

    async def test_backfill_leaves_numbered_records_alone(self, db_session: AsyncSession):
        service = RecordService(db_session)
        numbered = await service.create_donation_record(_donation(("Food", "Rice", 1)), ACTOR_ID)
        legacy = DonationRecord(donor_name="Legacy", actor_id="import")
        db_session.add(legacy)
        await db_session.commit()

        assigned = await service.backfill_serial_numbers("DONATION")

        assert assigned == ["A00002"]
        assert numbered.serial_number == "A00001"
        assert legacy.serial_number == "A00002"


class TestRecordsApi:
    async def test_donation_and_disbursement_flow(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/records/donations",
            json={
                "donor_name": "Temple",
                "items": [{"item_category": "Food", "item_name": "Rice", "quantity": 12}],
            },
        )
        assert response.status_code == 201
        donation = response.json()["data"]
        assert donation["serial_number"] == "A00001"
        assert donation["actor_id"] == ACTOR_ID
        assert donation["items"][0]["item_unit"] == "個"
        item_stock_id = donation["items"][0]["item_stock_id"]

        response = await client.post(
            "/api/v1/records/disbursements",
            json={
                "recipient_unit_name": "School gym",
                "items": [{"item_category": "Food", "item_name": "Rice", "quantity": 5}],
            },
        )
        assert response.status_code == 201
        disbursement = response.json()["data"]
        assert disbursement["serial_number"] == "B00001"

        response = await client.get(f"/api/v1/inventory/stock/{item_stock_id}")
        assert response.json()["data"]["total_stock"] == 7

        response = await client.delete(f"/api/v1/records/disbursements/{disbursement['id']}")
        assert response.status_code == 200
        response = await client.get(f"/api/v1/inventory/stock/{item_stock_id}")
        assert response.json()["data"]["total_stock"] == 12

        response = await client.get(f"/api/v1/records/disbursements/{disbursement['id']}")
        assert response.status_code == 404

    async def test_disbursement_over_stock_returns_400(self, client: AsyncClient):
        await client.post(
            "/api/v1/records/donations",
            json={"donor_name": "Temple", "items": [{"item_category": "Food", "item_name": "Rice", "quantity": 2}]},
        )

        response = await client.post(
            "/api/v1/records/disbursements",
            json={
                "recipient_unit_name": "School gym",
                "items": [{"item_category": "Food", "item_name": "Rice", "quantity": 3}],
            },
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_donation_requires_items(self, client: AsyncClient):
        response = await client.post("/api/v1/records/donations", json={"donor_name": "Temple", "items": []})
        assert response.status_code == 422

    async def test_generate_report_id(self, client: AsyncClient):
        response = await client.post("/api/v1/records/reports/generate-id")
        assert response.status_code == 201
        assert response.json()["data"]["report_id"] == "00001"
