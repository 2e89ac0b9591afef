"""Schemas for Records module."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

DEFAULT_UNIT = "個"


class DonationItemCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=200)
    item_category: str = Field(..., min_length=1, max_length=100)
    item_unit: str = Field(DEFAULT_UNIT, max_length=50)
    expiry_date: date | None = None
    is_standard: bool = False
    quantity: int = Field(..., gt=0)
    notes: str | None = None

    @field_validator("item_name", "item_category", "item_unit")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class DonationItemResponse(BaseModel):
    id: int
    item_stock_id: int
    item_name: str
    item_category: str
    item_unit: str
    expiry_date: date | None
    is_standard: bool
    quantity: int
    notes: str | None

    model_config = {"from_attributes": True}


class DonationRecordCreate(BaseModel):
    donor_name: str = Field(..., min_length=1, max_length=200)
    donor_phone: str | None = Field(None, max_length=50)
    notes: str | None = None
    items: list[DonationItemCreate] = Field(..., min_length=1)


class DonationRecordResponse(BaseModel):
    id: int
    serial_number: str | None
    donor_name: str
    donor_phone: str | None
    notes: str | None
    actor_id: str
    created_at: datetime
    items: list[DonationItemResponse]

    model_config = {"from_attributes": True}


class DisbursementItemCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=200)
    item_category: str = Field(..., min_length=1, max_length=100)
    item_unit: str = Field(DEFAULT_UNIT, max_length=50)
    quantity: int = Field(..., gt=0)

    @field_validator("item_name", "item_category", "item_unit")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class DisbursementItemResponse(BaseModel):
    id: int
    item_stock_id: int
    item_name: str
    item_category: str
    item_unit: str
    quantity: int

    model_config = {"from_attributes": True}


class DisbursementCreate(BaseModel):
    recipient_unit_name: str = Field(..., min_length=1, max_length=200)
    recipient_phone: str | None = Field(None, max_length=50)
    notes: str | None = None
    items: list[DisbursementItemCreate] = Field(..., min_length=1)


class DisbursementResponse(BaseModel):
    id: int
    serial_number: str | None
    recipient_unit_name: str
    recipient_phone: str | None
    notes: str | None
    actor_id: str
    created_at: datetime
    items: list[DisbursementItemResponse]

    model_config = {"from_attributes": True}


class ReportIdResponse(BaseModel):
    report_id: str
