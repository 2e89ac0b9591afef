"""API endpoints for Inventory module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from relief_stock.core.auth import CurrentActor
from relief_stock.core.database.session import get_db
from relief_stock.modules.inventory.models import ChangeType, InventoryLog, ItemStock
from relief_stock.modules.inventory.reasons import ReasonCatalogGuard
from relief_stock.modules.inventory.reversal import ReversalService
from relief_stock.modules.inventory.schemas import (
    ChangeReasonResponse,
    InventoryLogResponse,
    ItemStockCreate,
    ItemStockResponse,
    RelativeChangeRequest,
    ReversalResponse,
    StocktakeBatchRequest,
    StocktakeBatchResponse,
    StocktakeRequest,
)
from relief_stock.modules.inventory.service import InventoryService
from relief_stock.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def _stock_to_response(stock: ItemStock) -> ItemStockResponse:
    return ItemStockResponse.model_validate(stock)


def _log_to_response(log: InventoryLog) -> InventoryLogResponse:
    item = log.item_stock
    return InventoryLogResponse(
        id=log.id,
        item_stock_id=log.item_stock_id,
        item_name=item.name if item else None,
        item_category=item.category if item else None,
        item_unit=item.unit if item else None,
        reason=log.reason,
        change_type=log.change_type,
        change_amount=log.change_amount,
        previous_quantity=log.previous_quantity,
        new_quantity=log.new_quantity,
        is_absolute=log.is_absolute,
        record_serial=log.record_serial,
        notes=log.notes,
        actor_id=log.actor_id,
        created_at=log.created_at,
    )


# --- Stock Endpoints ---


@router.get(
    "/stock",
    response_model=ApiResponse[PaginatedResponse[ItemStockResponse]],
)
async def list_stock(
    actor_id: CurrentActor,
    category: str | None = Query(None, description="Filter by category"),
    include_zero: bool = Query(True, description="Include items with zero stock"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List item stock."""
    service = InventoryService(db)
    stocks, total = await service.list_stock(
        category=category,
        include_zero=include_zero,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[_stock_to_response(s) for s in stocks],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.post(
    "/stock",
    response_model=ApiResponse[ItemStockResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_item_stock(
    data: ItemStockCreate,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Register an item with zero stock."""
    service = InventoryService(db)
    stock = await service.create_item_stock(data)
    return ApiResponse(
        success=True,
        message="Item registered",
        data=_stock_to_response(stock),
    )


@router.get(
    "/stock/{item_stock_id}",
    response_model=ApiResponse[ItemStockResponse],
)
async def get_item_stock(
    item_stock_id: int,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Get stock for a specific item."""
    service = InventoryService(db)
    stock = await service.get_item_stock(item_stock_id)
    return ApiResponse(success=True, data=_stock_to_response(stock))


# --- Stock Change Endpoints ---


@router.post(
    "/changes",
    response_model=ApiResponse[InventoryLogResponse],
    status_code=status.HTTP_201_CREATED,
)
async def apply_relative_change(
    data: RelativeChangeRequest,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Increase or decrease an item's stock by an amount."""
    service = InventoryService(db)
    log = await service.apply_relative_change(
        item_stock_id=data.item_stock_id,
        change_type=data.change_type,
        amount=data.change_amount,
        reason=data.reason,
        actor_id=actor_id,
    )
    logs = await service.get_logs_by_ids([log.id])

    return ApiResponse(
        success=True,
        message="Stock updated",
        data=_log_to_response(logs[0]),
    )


@router.post(
    "/stocktake",
    response_model=ApiResponse[InventoryLogResponse | None],
    status_code=status.HTTP_201_CREATED,
)
async def apply_stocktake(
    data: StocktakeRequest,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Set an item's stock to the counted quantity."""
    service = InventoryService(db)
    log = await service.apply_absolute_change(
        item_stock_id=data.item_stock_id,
        new_quantity=data.new_quantity,
        actor_id=actor_id,
        notes=data.notes,
    )
    if log is None:
        return ApiResponse(success=True, message="Quantity unchanged", data=None)

    logs = await service.get_logs_by_ids([log.id])
    return ApiResponse(
        success=True,
        message="Stocktake recorded",
        data=_log_to_response(logs[0]),
    )


@router.post(
    "/stocktake/batch",
    response_model=ApiResponse[StocktakeBatchResponse],
    status_code=status.HTTP_201_CREATED,
)
async def apply_stocktake_batch(
    data: StocktakeBatchRequest,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Apply counted quantities for many items in one transaction."""
    service = InventoryService(db)
    logs, skipped = await service.apply_stocktake_batch(data.counts, actor_id, notes=data.notes)
    logs = await service.get_logs_by_ids([log.id for log in logs])

    return ApiResponse(
        success=True,
        message=f"Updated {len(logs)} items, skipped {skipped} unchanged",
        data=StocktakeBatchResponse(
            logs=[_log_to_response(log) for log in logs],
            updated_count=len(logs),
            skipped_count=skipped,
        ),
    )


# --- Inventory Log Endpoints ---


@router.get(
    "/logs",
    response_model=ApiResponse[PaginatedResponse[InventoryLogResponse]],
)
async def list_logs(
    actor_id: CurrentActor,
    item_stock_id: int | None = Query(None),
    change_type: ChangeType | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List inventory logs, newest first."""
    service = InventoryService(db)
    logs, total = await service.list_logs(
        item_stock_id=item_stock_id,
        change_type=change_type,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[_log_to_response(log) for log in logs],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/logs/{log_id}",
    response_model=ApiResponse[InventoryLogResponse],
)
async def get_log(
    log_id: int,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Get a single inventory log entry."""
    log = await InventoryService(db).get_log(log_id)
    return ApiResponse(success=True, data=_log_to_response(log))


@router.delete(
    "/logs/{log_id}",
    response_model=ApiResponse[ReversalResponse],
)
async def reverse_log(
    log_id: int,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Undo an inventory log entry and delete it."""
    stock = await ReversalService(db).reverse(log_id, actor_id)
    return ApiResponse(
        success=True,
        message="Inventory log reversed",
        data=ReversalResponse(reversed_log_id=log_id, item_stock=_stock_to_response(stock)),
    )


# --- Reason Endpoints ---


@router.get(
    "/reasons",
    response_model=ApiResponse[list[ChangeReasonResponse]],
)
async def list_reasons(
    actor_id: CurrentActor,
    change_type: ChangeType | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List permitted change reasons."""
    reasons = await ReasonCatalogGuard(db).list_reasons(change_type)
    return ApiResponse(
        success=True,
        data=[ChangeReasonResponse.model_validate(r) for r in reasons],
    )
