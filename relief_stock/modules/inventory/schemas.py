"""Schemas for Inventory module."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from relief_stock.modules.inventory.models import ChangeType


# --- Item Stock Schemas ---


class ItemStockCreate(BaseModel):
    """Schema for registering an item explicitly."""

    category: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    unit: str = Field("", max_length=50)
    safety_stock: int = Field(0, ge=0)
    is_standard: bool = False
    sort_order: int = 0

    @field_validator("category", "name", "unit")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class ItemStockResponse(BaseModel):
    """Schema for item stock response."""

    id: int
    category: str
    name: str
    unit: str
    total_stock: int
    safety_stock: int
    is_standard: bool
    sort_order: int
    is_below_safety_stock: bool
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


# --- Stock Change Schemas ---


class RelativeChangeRequest(BaseModel):
    """Schema for a relative stock change (increase or decrease by an amount)."""

    item_stock_id: int
    change_type: ChangeType
    change_amount: int = Field(..., gt=0, description="Magnitude of the change (must be positive)")
    reason: str = Field(..., min_length=1, max_length=100)


class StocktakeRequest(BaseModel):
    """Schema for setting the counted quantity of one item."""

    item_stock_id: int
    new_quantity: int = Field(..., ge=0, description="Counted quantity on hand")
    notes: str | None = None


class StocktakeCount(BaseModel):
    """One counted item in a batch stocktake."""

    item_stock_id: int
    new_quantity: int = Field(..., ge=0)


class StocktakeBatchRequest(BaseModel):
    """Batch stocktake request (all counts applied in one transaction)."""

    counts: list[StocktakeCount] = Field(..., min_length=1)
    notes: str | None = None


class InventoryLogResponse(BaseModel):
    """Schema for inventory log response."""

    id: int
    item_stock_id: int
    item_name: str | None = None
    item_category: str | None = None
    item_unit: str | None = None
    reason: str
    change_type: str
    change_amount: int
    previous_quantity: int
    new_quantity: int
    is_absolute: bool
    record_serial: str | None = None
    notes: str | None
    actor_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class StocktakeBatchResponse(BaseModel):
    """Batch stocktake response."""

    logs: list[InventoryLogResponse]
    updated_count: int
    skipped_count: int


class ReversalResponse(BaseModel):
    """Result of reversing an inventory log entry."""

    reversed_log_id: int
    item_stock: ItemStockResponse


# --- Reason Schemas ---


class ChangeReasonResponse(BaseModel):
    """Schema for a permitted change reason."""

    id: int
    reason: str
    change_type: str
    sort_order: int

    model_config = {"from_attributes": True}
