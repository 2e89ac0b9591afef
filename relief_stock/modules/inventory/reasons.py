"""Reason catalog lookup used before any relative stock change."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from relief_stock.core.config import settings
from relief_stock.core.exceptions import ValidationError
from relief_stock.modules.inventory.models import ChangeType, InventoryChangeReason


class ReasonCatalogGuard:
    """Read-only checks against inventory_change_reasons."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def validate(self, reason: str, change_type: ChangeType | str) -> InventoryChangeReason:
        """Return the active catalog entry for (reason, change_type).

        The stocktake reason is reserved for absolute changes and is never
        accepted here, even if a catalog row happens to carry the same text.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Reason is required", field="reason")

        try:
            change_type = ChangeType(change_type)
        except ValueError:
            raise ValidationError(
                f"Invalid change type '{change_type}'", field="change_type"
            ) from None

        if reason == settings.stocktake_reason:
            raise ValidationError(
                f"Reason '{reason}' is reserved for stocktake adjustments", field="reason"
            )

        result = await self.db.execute(
            select(InventoryChangeReason).where(
                InventoryChangeReason.reason == reason,
                InventoryChangeReason.change_type == change_type.value,
                InventoryChangeReason.is_active.is_(True),
            )
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            raise ValidationError(
                f"Reason '{reason}' is not permitted for {change_type.value}", field="reason"
            )
        return entry

    async def list_reasons(
        self, change_type: ChangeType | None = None
    ) -> list[InventoryChangeReason]:
        """Active reasons ordered for display."""
        query = (
            select(InventoryChangeReason)
            .where(InventoryChangeReason.is_active.is_(True))
            .order_by(
                InventoryChangeReason.change_type,
                InventoryChangeReason.sort_order,
                InventoryChangeReason.id,
            )
        )
        if change_type is not None:
            query = query.where(InventoryChangeReason.change_type == change_type.value)

        result = await self.db.execute(query)
        return list(result.scalars().all())
