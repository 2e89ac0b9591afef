"""Stock ledger: current quantities per item and the log of every change."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from relief_stock.core.config import settings
from relief_stock.core.database.statements import insert_ignoring_conflict
from relief_stock.core.exceptions import (
    ConflictError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from relief_stock.modules.inventory.models import ChangeType, InventoryLog, ItemStock
from relief_stock.modules.inventory.reasons import ReasonCatalogGuard
from relief_stock.modules.inventory.schemas import ItemStockCreate, StocktakeCount

logger = logging.getLogger(__name__)


class InventoryService:
    """Service owning ItemStock.total_stock and the inventory log.

    Every change reads the item row with SELECT ... FOR UPDATE, checks that the
    result stays >= 0 before touching anything, then writes the new quantity
    and exactly one log row. A failed check raises before any write, so the
    transaction has nothing to undo. Rollback of the surrounding transaction
    belongs to the session owner (see get_db).
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.reasons = ReasonCatalogGuard(db)

    # --- Item Stock ---

    async def _lock_item_stock(self, item_stock_id: int) -> ItemStock:
        """Load an item row for update, always reading the latest committed values."""
        result = await self.db.execute(
            select(ItemStock)
            .where(ItemStock.id == item_stock_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        stock = result.scalar_one_or_none()
        if stock is None:
            raise NotFoundError("Item stock", item_stock_id)
        return stock

    async def get_item_stock(self, item_stock_id: int) -> ItemStock:
        result = await self.db.execute(select(ItemStock).where(ItemStock.id == item_stock_id))
        stock = result.scalar_one_or_none()
        if stock is None:
            raise NotFoundError("Item stock", item_stock_id)
        return stock

    async def find_item_stock(self, category: str, name: str) -> ItemStock | None:
        result = await self.db.execute(
            select(ItemStock).where(
                ItemStock.category == category.strip(),
                ItemStock.name == name.strip(),
            )
        )
        return result.scalar_one_or_none()

    async def _insert_item_stock(self, data: ItemStockCreate) -> int | None:
        """Insert the row unless (category, name) exists; returns the new id or None."""
        values = {
            "category": data.category,
            "name": data.name,
            "unit": data.unit,
            "total_stock": 0,
            "safety_stock": data.safety_stock,
            "is_standard": data.is_standard,
            "sort_order": data.sort_order,
        }
        stmt = insert_ignoring_conflict(
            self.db, ItemStock, values, ["category", "name"]
        ).returning(ItemStock.id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _select_item_stock(self, category: str, name: str) -> ItemStock | None:
        result = await self.db.execute(
            select(ItemStock)
            .where(ItemStock.category == category, ItemStock.name == name)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_item_stock(self, data: ItemStockCreate, commit: bool = True) -> ItemStock:
        """Register an item with total_stock = 0.

        Raises ConflictError if the (category, name) identity already exists,
        including when another transaction inserted it a moment earlier.
        """
        item_id = await self._insert_item_stock(data)
        if item_id is None:
            raise ConflictError("Item stock", "category/name", f"{data.category}/{data.name}")

        if commit:
            await self.db.commit()
        return await self.get_item_stock(item_id)

    async def get_or_create_item_stock(
        self,
        category: str,
        name: str,
        unit: str = "",
        is_standard: bool = False,
        commit: bool = True,
    ) -> ItemStock:
        """Return the item row for (category, name), creating it on first reference.

        Concurrent first references end with one row; the loser reads the
        winner's row instead of failing.
        """
        if not category.strip() or not name.strip():
            raise ValidationError("Item category and name are required", field="name")
        stock = await self.find_item_stock(category, name)
        if stock is not None:
            return stock

        data = ItemStockCreate(category=category, name=name, unit=unit, is_standard=is_standard)
        item_id = await self._insert_item_stock(data)
        if item_id is None:
            stock = await self._select_item_stock(data.category, data.name)
            if stock is None:
                raise InvalidStateError(f"Item stock {data.category}/{data.name} vanished after insert conflict")
        else:
            logger.info("Created item stock %d for %s/%s", item_id, data.category, data.name)
            stock = await self.get_item_stock(item_id)

        if commit:
            await self.db.commit()
        return stock

    async def list_stock(
        self,
        category: str | None = None,
        include_zero: bool = True,
        page: int = 1,
        limit: int = 100,
    ) -> tuple[list[ItemStock], int]:
        """List item stock rows in display order."""
        query = select(ItemStock).order_by(
            ItemStock.category, ItemStock.sort_order, ItemStock.name
        )

        if not include_zero:
            query = query.where(ItemStock.total_stock > 0)

        if category is not None:
            query = query.where(ItemStock.category == category)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    # --- Stock Changes ---

    def _new_log(
        self,
        stock: ItemStock,
        *,
        reason: str,
        change_type: ChangeType,
        change_amount: int,
        previous_quantity: int,
        is_absolute: bool,
        actor_id: str,
        notes: str | None = None,
        record_serial: str | None = None,
    ) -> InventoryLog:
        log = InventoryLog(
            item_stock_id=stock.id,
            reason=reason,
            change_type=change_type.value,
            change_amount=change_amount,
            previous_quantity=previous_quantity,
            new_quantity=stock.total_stock,
            is_absolute=is_absolute,
            notes=notes,
            actor_id=actor_id,
            record_serial=record_serial,
        )
        self.db.add(log)
        return log

    @staticmethod
    def _check_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Change amount must be a positive integer", field="change_amount")

    @staticmethod
    def _delta_result(stock: ItemStock, change_type: ChangeType, amount: int) -> int:
        """Quantity after the change; InsufficientStockError if it would be negative."""
        if change_type == ChangeType.INCREASE:
            return stock.total_stock + amount

        new_quantity = stock.total_stock - amount
        if new_quantity < 0:
            logger.warning(
                "Rejected %s of %d for item %d: only %d on hand",
                change_type.value,
                amount,
                stock.id,
                stock.total_stock,
            )
            raise InsufficientStockError(stock.id, requested=amount, available=stock.total_stock)
        return new_quantity

    async def lock_item_stocks(self, item_stock_ids) -> dict[int, ItemStock]:
        """Lock several item rows in id order so concurrent multi-item writers cannot deadlock."""
        stocks: dict[int, ItemStock] = {}
        for item_id in sorted(set(item_stock_ids)):
            stocks[item_id] = await self._lock_item_stock(item_id)
        return stocks

    async def apply_relative_change(
        self,
        item_stock_id: int,
        change_type: ChangeType | str,
        amount: int,
        reason: str,
        actor_id: str,
        commit: bool = True,
    ) -> InventoryLog:
        """Increase or decrease total_stock by amount.

        Returns the created log row; its new_quantity is the resulting total.
        Raises InsufficientStockError (and writes nothing) if a decrease would
        take the quantity below zero.
        """
        self._check_amount(amount)

        catalog_entry = await self.reasons.validate(reason, change_type)
        change_type = ChangeType(catalog_entry.change_type)

        stock = await self._lock_item_stock(item_stock_id)
        previous_quantity = stock.total_stock
        new_quantity = self._delta_result(stock, change_type, amount)

        stock.total_stock = new_quantity
        log = self._new_log(
            stock,
            reason=catalog_entry.reason,
            change_type=change_type,
            change_amount=amount,
            previous_quantity=previous_quantity,
            is_absolute=False,
            actor_id=actor_id,
        )
        await self.db.flush()

        if commit:
            await self.db.commit()
            logger.info(
                "Item %d %s by %d (%s): %d -> %d, log %d",
                stock.id,
                change_type.value,
                amount,
                catalog_entry.reason,
                previous_quantity,
                new_quantity,
                log.id,
            )
        await self.db.refresh(log)
        await self.db.refresh(stock)
        return log

    # --- Record Movements ---

    @staticmethod
    def _totals(movements: list[tuple[int, int]]) -> dict[int, int]:
        totals: dict[int, int] = {}
        for item_stock_id, amount in movements:
            totals[item_stock_id] = totals.get(item_stock_id, 0) + amount
        return totals

    async def check_available(self, movements: list[tuple[int, int]]) -> dict[int, ItemStock]:
        """Lock the rows and make sure each can give up the summed amounts.

        movements holds (item_stock_id, amount) pairs; the same item may
        appear more than once. Returns the locked rows.
        """
        for _, amount in movements:
            self._check_amount(amount)
        totals = self._totals(movements)
        stocks = await self.lock_item_stocks(totals)
        for item_id, amount in totals.items():
            self._delta_result(stocks[item_id], ChangeType.DECREASE, amount)
        return stocks

    async def apply_record_movements(
        self,
        movements: list[tuple[int, int]],
        change_type: ChangeType,
        reason: str,
        actor_id: str,
        record_serial: str | None,
        notes: str | None = None,
    ) -> list[InventoryLog]:
        """Move stock on behalf of a donation or disbursement.

        Writes one log per item, tagged with record_serial. The reason is not
        looked up in the catalog. Every row is locked and checked before the
        first write, so a shortfall on any item changes nothing. Never
        commits; the record's transaction does.
        """
        change_type = ChangeType(change_type)
        totals = self._totals(movements)
        if change_type == ChangeType.DECREASE:
            stocks = await self.check_available(movements)
        else:
            for _, amount in movements:
                self._check_amount(amount)
            stocks = await self.lock_item_stocks(totals)

        logs: list[InventoryLog] = []
        for item_id, amount in totals.items():
            stock = stocks[item_id]
            previous_quantity = stock.total_stock
            stock.total_stock = self._delta_result(stock, change_type, amount)
            logs.append(
                self._new_log(
                    stock,
                    reason=reason,
                    change_type=change_type,
                    change_amount=amount,
                    previous_quantity=previous_quantity,
                    is_absolute=False,
                    actor_id=actor_id,
                    notes=notes,
                    record_serial=record_serial,
                )
            )
        await self.db.flush()
        return logs

    def _set_counted_quantity(
        self,
        stock: ItemStock,
        new_quantity: int,
        actor_id: str,
        notes: str | None,
    ) -> InventoryLog | None:
        """Set total_stock to new_quantity and log it as a stocktake entry.

        Returns None when the count matches and unchanged counts are not recorded.
        """
        previous_quantity = stock.total_stock
        delta = new_quantity - previous_quantity

        if delta == 0 and not settings.stocktake_record_unchanged:
            return None

        stock.total_stock = new_quantity
        return self._new_log(
            stock,
            reason=settings.stocktake_reason,
            change_type=ChangeType.INCREASE if delta > 0 else ChangeType.DECREASE,
            change_amount=abs(delta),
            previous_quantity=previous_quantity,
            is_absolute=True,
            actor_id=actor_id,
            notes=notes,
        )

    @staticmethod
    def _check_counted_quantity(new_quantity: int) -> None:
        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int) or new_quantity < 0:
            raise ValidationError("New quantity must be an integer >= 0", field="new_quantity")

    async def apply_absolute_change(
        self,
        item_stock_id: int,
        new_quantity: int,
        actor_id: str,
        notes: str | None = None,
        commit: bool = True,
    ) -> InventoryLog | None:
        """Stocktake: set total_stock to the counted quantity.

        The log entry carries the stocktake reason, is_absolute=True, the
        magnitude of the difference and its direction. A count equal to the
        current quantity records a zero-amount DECREASE entry unless
        STOCKTAKE_RECORD_UNCHANGED is off, in which case nothing is written
        and None is returned.
        """
        self._check_counted_quantity(new_quantity)

        stock = await self._lock_item_stock(item_stock_id)
        previous_quantity = stock.total_stock
        log = self._set_counted_quantity(stock, new_quantity, actor_id, notes)
        if log is None:
            logger.info("Stocktake for item %d unchanged at %d, nothing recorded", stock.id, new_quantity)
            return None

        await self.db.flush()

        if commit:
            await self.db.commit()
            logger.info(
                "Item %d stocktake: %d -> %d, log %d",
                stock.id,
                previous_quantity,
                new_quantity,
                log.id,
            )
        await self.db.refresh(log)
        await self.db.refresh(stock)
        return log

    async def apply_stocktake_batch(
        self,
        counts: list[StocktakeCount],
        actor_id: str,
        notes: str | None = None,
    ) -> tuple[list[InventoryLog], int]:
        """Apply many counted quantities in one transaction.

        All rows are locked (in id order) before anything is written, so a
        missing item aborts the whole batch. Returns (logs, skipped_count).
        """
        item_ids = [c.item_stock_id for c in counts]
        if len(set(item_ids)) != len(item_ids):
            raise ValidationError("Each item may appear only once per stocktake", field="counts")
        for count in counts:
            self._check_counted_quantity(count.new_quantity)

        stocks = await self.lock_item_stocks(item_ids)

        logs: list[InventoryLog] = []
        skipped = 0
        for count in counts:
            log = self._set_counted_quantity(stocks[count.item_stock_id], count.new_quantity, actor_id, notes)
            if log is None:
                skipped += 1
                continue
            logs.append(log)

        await self.db.flush()
        await self.db.commit()
        logger.info("Batch stocktake: %d updated, %d skipped", len(logs), skipped)

        for log in logs:
            await self.db.refresh(log)
        for stock in stocks.values():
            await self.db.refresh(stock)
        return logs, skipped

    # --- Log Queries ---

    async def get_log(self, log_id: int) -> InventoryLog:
        result = await self.db.execute(
            select(InventoryLog)
            .options(selectinload(InventoryLog.item_stock))
            .where(InventoryLog.id == log_id)
        )
        log = result.scalar_one_or_none()
        if log is None:
            raise NotFoundError("Inventory log", log_id)
        return log

    async def list_logs(
        self,
        item_stock_id: int | None = None,
        change_type: ChangeType | None = None,
        page: int = 1,
        limit: int = 100,
    ) -> tuple[list[InventoryLog], int]:
        """Get inventory logs, newest first."""
        query = (
            select(InventoryLog)
            .options(selectinload(InventoryLog.item_stock))
            .order_by(InventoryLog.created_at.desc(), InventoryLog.id.desc())
        )

        if item_stock_id is not None:
            query = query.where(InventoryLog.item_stock_id == item_stock_id)
        if change_type is not None:
            query = query.where(InventoryLog.change_type == change_type.value)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        offset = (page - 1) * limit
        query = query.offset(offset).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_logs_by_ids(self, log_ids: list[int]) -> list[InventoryLog]:
        """Get inventory logs by IDs with the item loaded."""
        if not log_ids:
            return []
        result = await self.db.execute(
            select(InventoryLog)
            .where(InventoryLog.id.in_(log_ids))
            .options(selectinload(InventoryLog.item_stock))
            .order_by(InventoryLog.created_at.desc(), InventoryLog.id.desc())
        )
        return list(result.scalars().all())
