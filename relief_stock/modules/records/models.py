"""Donation and disbursement records that carry serial numbers."""

from datetime import date

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relief_stock.core.database.base import Base, BigIntPK


class DonationRecord(Base):
    """Incoming donation. serial_number is empty only on legacy rows."""

    __tablename__ = "donation_records"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    serial_number: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    donor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    donor_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor_id: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    # Relationships
    items: Mapped[list["DonationItem"]] = relationship(
        "DonationItem",
        back_populates="donation",
        cascade="all, delete-orphan",
        order_by="DonationItem.id",
    )


class DonationItem(Base):
    """One donated line; the item snapshot is kept even if the stock row is renamed."""

    __tablename__ = "donation_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    donation_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("donation_records.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_stock_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("item_stocks.id"), nullable=False, index=True
    )
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    item_category: Mapped[str] = mapped_column(String(100), nullable=False)
    item_unit: Mapped[str] = mapped_column(String(50), nullable=False)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_standard: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    donation: Mapped["DonationRecord"] = relationship("DonationRecord", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_donation_items_quantity_positive"),
    )


class Disbursement(Base):
    """Outgoing distribution to a recipient unit."""

    __tablename__ = "disbursements"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    serial_number: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    recipient_unit_name: Mapped[str] = mapped_column(String(200), nullable=False)
    recipient_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor_id: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    # Relationships
    items: Mapped[list["DisbursementItem"]] = relationship(
        "DisbursementItem",
        back_populates="disbursement",
        cascade="all, delete-orphan",
        order_by="DisbursementItem.id",
    )


class DisbursementItem(Base):
    """One distributed line."""

    __tablename__ = "disbursement_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    disbursement_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("disbursements.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_stock_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("item_stocks.id"), nullable=False, index=True
    )
    item_name: Mapped[str] = mapped_column(String(200), nullable=False)
    item_category: Mapped[str] = mapped_column(String(100), nullable=False)
    item_unit: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    disbursement: Mapped["Disbursement"] = relationship("Disbursement", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_disbursement_items_quantity_positive"),
    )
