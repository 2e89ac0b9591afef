"""Service for donation/disbursement records and their serial numbers."""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from relief_stock.core.config import settings
from relief_stock.core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from relief_stock.core.serials import SerialNumberIssuer, SerialType
from relief_stock.modules.inventory.models import ChangeType
from relief_stock.modules.inventory.service import InventoryService
from relief_stock.modules.records.models import (
    Disbursement,
    DisbursementItem,
    DonationItem,
    DonationRecord,
)
from relief_stock.modules.records.schemas import DisbursementCreate, DonationRecordCreate

logger = logging.getLogger(__name__)

RECORD_MODELS: dict[SerialType, type[DonationRecord] | type[Disbursement]] = {
    SerialType.DONATION: DonationRecord,
    SerialType.DISBURSEMENT: Disbursement,
}


class RecordService:
    """Creates serial-numbered records, moves their stock and repairs legacy ones.

    Stock is only ever changed through InventoryService, inside the same
    transaction as the record and its serial number.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.serials = SerialNumberIssuer(db)
        self.inventory = InventoryService(db)

    @staticmethod
    def _model_for(record_type: SerialType | str):
        try:
            return RECORD_MODELS[SerialType(str(record_type).strip().lower())]
        except (KeyError, ValueError):
            allowed = ", ".join(t.value for t in RECORD_MODELS)
            raise ValidationError(
                f"Unknown record type '{record_type}'. Allowed: {allowed}", field="record_type"
            ) from None

    # --- Donations ---

    async def get_donation_record(self, record_id: int, for_update: bool = False) -> DonationRecord:
        query = (
            select(DonationRecord)
            .options(selectinload(DonationRecord.items))
            .where(DonationRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        record = (await self.db.execute(query)).scalar_one_or_none()
        if record is None:
            raise NotFoundError("Donation record", record_id)
        return record

    async def create_donation_record(
        self, data: DonationRecordCreate, actor_id: str
    ) -> DonationRecord:
        """Issue a donation serial, insert the record and add its items to stock.

        Items are matched to stock rows by (category, name); an unknown pair
        creates the row on first reference.
        """
        for line in data.items:
            if not line.item_name or not line.item_category:
                raise ValidationError("Item category and name are required", field="items")

        serial_number = await self.serials.issue(SerialType.DONATION)
        record = DonationRecord(
            serial_number=serial_number,
            donor_name=data.donor_name.strip(),
            donor_phone=data.donor_phone,
            notes=data.notes,
            actor_id=actor_id,
        )
        for line in data.items:
            stock = await self.inventory.get_or_create_item_stock(
                line.item_category,
                line.item_name,
                unit=line.item_unit,
                is_standard=line.is_standard,
                commit=False,
            )
            record.items.append(
                DonationItem(
                    item_stock_id=stock.id,
                    item_name=line.item_name,
                    item_category=line.item_category,
                    item_unit=line.item_unit,
                    expiry_date=line.expiry_date,
                    is_standard=line.is_standard,
                    quantity=line.quantity,
                    notes=line.notes,
                )
            )
        self.db.add(record)
        await self.db.flush()

        await self.inventory.apply_record_movements(
            [(item.item_stock_id, item.quantity) for item in record.items],
            ChangeType.INCREASE,
            reason=settings.donation_reason,
            actor_id=actor_id,
            record_serial=serial_number,
        )
        await self.db.commit()
        logger.info("Created donation record %d as %s (%d items)", record.id, serial_number, len(record.items))
        return await self.get_donation_record(record.id)

    async def delete_donation_record(self, record_id: int, actor_id: str) -> None:
        """Delete a donation and take its quantities back off stock.

        Fails with InsufficientStockError, changing nothing, when some of the
        donated stock has already gone out.
        """
        record = await self.get_donation_record(record_id, for_update=True)
        await self.inventory.apply_record_movements(
            [(item.item_stock_id, item.quantity) for item in record.items],
            ChangeType.DECREASE,
            reason=settings.donation_reason,
            actor_id=actor_id,
            record_serial=record.serial_number,
            notes=f"Donation {record.serial_number or record.id} deleted",
        )
        await self.db.delete(record)
        await self.db.commit()
        logger.info("Deleted donation record %d (%s) by %s", record_id, record.serial_number, actor_id)

    # --- Disbursements ---

    async def get_disbursement(self, record_id: int, for_update: bool = False) -> Disbursement:
        query = (
            select(Disbursement)
            .options(selectinload(Disbursement.items))
            .where(Disbursement.id == record_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        record = (await self.db.execute(query)).scalar_one_or_none()
        if record is None:
            raise NotFoundError("Disbursement", record_id)
        return record

    async def create_disbursement(
        self, data: DisbursementCreate, actor_id: str
    ) -> Disbursement:
        """Check stock, issue a disbursement serial, insert the record and take the items off stock.

        Every item must already be stocked in the requested quantity; a
        shortfall raises InsufficientStockError before any serial is issued.
        """
        stock_ids: list[int] = []
        for line in data.items:
            if not line.item_name or not line.item_category:
                raise ValidationError("Item category and name are required", field="items")
            stock = await self.inventory.find_item_stock(line.item_category, line.item_name)
            if stock is None:
                raise InsufficientStockError(
                    f"{line.item_category}/{line.item_name}", requested=line.quantity, available=0
                )
            stock_ids.append(stock.id)

        movements = [(stock_id, line.quantity) for stock_id, line in zip(stock_ids, data.items)]
        await self.inventory.check_available(movements)

        serial_number = await self.serials.issue(SerialType.DISBURSEMENT)
        record = Disbursement(
            serial_number=serial_number,
            recipient_unit_name=data.recipient_unit_name.strip(),
            recipient_phone=data.recipient_phone,
            notes=data.notes,
            actor_id=actor_id,
            items=[
                DisbursementItem(
                    item_stock_id=stock_id,
                    item_name=line.item_name,
                    item_category=line.item_category,
                    item_unit=line.item_unit,
                    quantity=line.quantity,
                )
                for stock_id, line in zip(stock_ids, data.items)
            ],
        )
        self.db.add(record)
        await self.db.flush()

        await self.inventory.apply_record_movements(
            movements,
            ChangeType.DECREASE,
            reason=settings.disbursement_reason,
            actor_id=actor_id,
            record_serial=serial_number,
        )
        await self.db.commit()
        logger.info("Created disbursement %d as %s (%d items)", record.id, serial_number, len(record.items))
        return await self.get_disbursement(record.id)

    async def delete_disbursement(self, record_id: int, actor_id: str) -> None:
        """Delete a disbursement and return its quantities to stock."""
        record = await self.get_disbursement(record_id, for_update=True)
        await self.inventory.apply_record_movements(
            [(item.item_stock_id, item.quantity) for item in record.items],
            ChangeType.INCREASE,
            reason=settings.disbursement_reason,
            actor_id=actor_id,
            record_serial=record.serial_number,
            notes=f"Disbursement {record.serial_number or record.id} deleted",
        )
        await self.db.delete(record)
        await self.db.commit()
        logger.info("Deleted disbursement %d (%s) by %s", record_id, record.serial_number, actor_id)

    # --- Serial numbers ---

    async def generate_report_id(self) -> str:
        """Next report id (bare zero-padded number)."""
        report_id = await self.serials.issue(SerialType.REPORT)
        await self.db.commit()
        return report_id

    async def list_missing_serial(self, record_type: SerialType | str) -> list:
        """Records with a NULL or empty serial number, oldest first, locked for update."""
        model = self._model_for(record_type)
        result = await self.db.execute(
            select(model)
            .where(or_(model.serial_number.is_(None), model.serial_number == ""))
            .order_by(model.created_at, model.id)
            .with_for_update()
        )
        return list(result.scalars().all())

    async def backfill_serial_numbers(
        self, record_type: SerialType | str, commit: bool = True
    ) -> list[str]:
        """Number every record of record_type that has no serial yet.

        Only unnumbered rows are selected, so a second run assigns nothing.
        """
        model = self._model_for(record_type)
        records = await self.list_missing_serial(record_type)
        if not records:
            logger.info("No %s records without serial number", model.__tablename__)
            return []

        assigned = await self.serials.backfill_missing(record_type, records)
        if commit:
            await self.db.commit()
        return assigned
