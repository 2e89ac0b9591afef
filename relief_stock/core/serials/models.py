from enum import StrEnum

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from relief_stock.core.database.base import TimestampedBase


class SerialType(StrEnum):
    """Record types that receive serial numbers."""

    DONATION = "donation"
    DISBURSEMENT = "disbursement"
    REPORT = "report"


class SerialNumberCounter(TimestampedBase):
    """Last issued serial number per record type."""

    __tablename__ = "serial_number_counters"

    serial_type: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    prefix: Mapped[str] = mapped_column(String(10), nullable=False, default="")
    counter: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("counter >= 0", name="ck_serial_number_counters_counter_non_negative"),
    )
