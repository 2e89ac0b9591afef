"""Inventory models for the stock ledger."""

from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relief_stock.core.database.base import Base, BigIntPK


class ChangeType(StrEnum):
    """Direction of a stock change."""

    INCREASE = "INCREASE"
    DECREASE = "DECREASE"


class ItemStock(Base):
    """Current quantity on hand for one (category, name) item.

    Rows are created with total_stock = 0 on first reference and never deleted.
    total_stock is only written by InventoryService and ReversalService.
    """

    __tablename__ = "item_stocks"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    total_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    safety_stock: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )  # Advisory threshold only
    is_standard: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )  # Catalog item vs ad-hoc item
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    logs: Mapped[list["InventoryLog"]] = relationship(
        "InventoryLog", back_populates="item_stock", order_by="desc(InventoryLog.created_at)"
    )

    __table_args__ = (
        UniqueConstraint("category", "name", name="uq_item_stocks_category_name"),
        CheckConstraint("total_stock >= 0", name="ck_item_stocks_total_stock_non_negative"),
        CheckConstraint("safety_stock >= 0", name="ck_item_stocks_safety_stock_non_negative"),
    )

    @property
    def is_below_safety_stock(self) -> bool:
        return self.safety_stock > 0 and self.total_stock < self.safety_stock


class InventoryLog(Base):
    """One row per stock change.

    previous_quantity is the exact total_stock read before the change and is
    what reversal restores for absolute (stocktake) entries.
    """

    __tablename__ = "inventory_logs"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    item_stock_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("item_stocks.id"), nullable=False, index=True
    )
    reason: Mapped[str] = mapped_column(String(100), nullable=False)
    change_type: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True
    )  # INCREASE | DECREASE
    change_amount: Mapped[int] = mapped_column(
        Integer, nullable=False
    )  # Magnitude only, direction from change_type
    previous_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    is_absolute: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )  # True for stocktake entries
    record_serial: Mapped[str | None] = mapped_column(
        String(20), nullable=True, index=True
    )  # Serial of the donation/disbursement that caused the change
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor_id: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    # Relationships
    item_stock: Mapped["ItemStock"] = relationship("ItemStock", back_populates="logs")

    __table_args__ = (
        CheckConstraint("change_amount >= 0", name="ck_inventory_logs_change_amount_non_negative"),
    )


class InventoryChangeReason(Base):
    """Permitted (reason, change_type) pairs for relative stock changes."""

    __tablename__ = "inventory_change_reasons"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    reason: Mapped[str] = mapped_column(String(100), nullable=False)
    change_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("reason", "change_type", name="uq_inventory_change_reasons_reason_type"),
    )
