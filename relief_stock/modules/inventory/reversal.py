"""Undo a single inventory log entry."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from relief_stock.core.exceptions import InsufficientStockError, InvalidStateError, NotFoundError
from relief_stock.modules.inventory.models import ChangeType, InventoryLog, ItemStock

logger = logging.getLogger(__name__)


class ReversalService:
    """Reverses one log entry and deletes it in the same transaction.

    Stocktake entries restore previous_quantity directly. Relative entries
    apply the inverse of their own delta; changes made to the item after the
    entry are not replayed or reconciled, so the result equals the quantity
    before the entry only when nothing else touched the item in between.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_log(self, log_id: int) -> InventoryLog:
        result = await self.db.execute(
            select(InventoryLog)
            .where(InventoryLog.id == log_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        log = result.scalar_one_or_none()
        if log is None:
            raise NotFoundError("Inventory log", log_id)
        return log

    async def _lock_item_stock(self, item_stock_id: int) -> ItemStock:
        result = await self.db.execute(
            select(ItemStock)
            .where(ItemStock.id == item_stock_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        stock = result.scalar_one_or_none()
        if stock is None:
            raise InvalidStateError(
                f"Inventory log references missing item stock {item_stock_id}"
            )
        return stock

    @staticmethod
    def _restored_quantity(log: InventoryLog, stock: ItemStock) -> int:
        if log.is_absolute:
            if log.previous_quantity < 0:
                raise InvalidStateError(
                    f"Inventory log {log.id} has a negative previous quantity "
                    f"({log.previous_quantity}); refusing to restore it"
                )
            return log.previous_quantity

        if log.change_type == ChangeType.INCREASE.value:
            restored = stock.total_stock - log.change_amount
        elif log.change_type == ChangeType.DECREASE.value:
            restored = stock.total_stock + log.change_amount
        else:
            raise InvalidStateError(
                f"Inventory log {log.id} has unknown change type '{log.change_type}'"
            )

        if restored < 0:
            raise InsufficientStockError(
                stock.id, requested=log.change_amount, available=stock.total_stock
            )
        return restored

    async def reverse(self, log_id: int, actor_id: str, commit: bool = True) -> ItemStock:
        """Undo the stock effect of log_id and delete the log row.

        Raises NotFoundError if the log does not exist, InsufficientStockError
        if undoing an increase would go below zero, InvalidStateError for a
        corrupted stocktake snapshot or a log written by a donation or
        disbursement. On any error the stock and the log are
        left untouched.
        """
        log = await self._load_log(log_id)
        if log.record_serial:
            raise InvalidStateError(
                f"Inventory log {log_id} belongs to record {log.record_serial}; "
                "delete the record to undo it"
            )
        stock = await self._lock_item_stock(log.item_stock_id)

        quantity_before = stock.total_stock
        restored = self._restored_quantity(log, stock)

        stock.total_stock = restored
        await self.db.delete(log)
        await self.db.flush()

        if commit:
            await self.db.commit()
            logger.info(
                "Reversed log %d (%s %s %d) on item %d by %s: %d -> %d",
                log_id,
                "stocktake" if log.is_absolute else "relative",
                log.change_type,
                log.change_amount,
                stock.id,
                actor_id,
                quantity_before,
                restored,
            )
        await self.db.refresh(stock)
        return stock
