"""API endpoints for Records module."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from relief_stock.core.auth import CurrentActor
from relief_stock.core.database.session import get_db
from relief_stock.modules.records.schemas import (
    DisbursementCreate,
    DisbursementResponse,
    DonationRecordCreate,
    DonationRecordResponse,
    ReportIdResponse,
)
from relief_stock.modules.records.service import RecordService
from relief_stock.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/records", tags=["Records"])


@router.post(
    "/donations",
    response_model=ApiResponse[DonationRecordResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_donation_record(
    data: DonationRecordCreate,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Create a donation record with the next donation serial number and add its items to stock."""
    record = await RecordService(db).create_donation_record(data, actor_id)
    return ApiResponse(
        success=True,
        message="Donation record created",
        data=DonationRecordResponse.model_validate(record),
    )


@router.post(
    "/disbursements",
    response_model=ApiResponse[DisbursementResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_disbursement(
    data: DisbursementCreate,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Create a disbursement with the next disbursement serial number and take its items off stock."""
    record = await RecordService(db).create_disbursement(data, actor_id)
    return ApiResponse(
        success=True,
        message="Disbursement created",
        data=DisbursementResponse.model_validate(record),
    )


@router.get(
    "/donations/{record_id}",
    response_model=ApiResponse[DonationRecordResponse],
)
async def get_donation_record(
    record_id: int,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    record = await RecordService(db).get_donation_record(record_id)
    return ApiResponse(success=True, data=DonationRecordResponse.model_validate(record))


@router.delete(
    "/donations/{record_id}",
    response_model=ApiResponse[None],
)
async def delete_donation_record(
    record_id: int,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Delete a donation and remove its quantities from stock."""
    await RecordService(db).delete_donation_record(record_id, actor_id)
    return ApiResponse(success=True, message="Donation record deleted", data=None)


@router.get(
    "/disbursements/{record_id}",
    response_model=ApiResponse[DisbursementResponse],
)
async def get_disbursement(
    record_id: int,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    record = await RecordService(db).get_disbursement(record_id)
    return ApiResponse(success=True, data=DisbursementResponse.model_validate(record))


@router.delete(
    "/disbursements/{record_id}",
    response_model=ApiResponse[None],
)
async def delete_disbursement(
    record_id: int,
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Delete a disbursement and return its quantities to stock."""
    await RecordService(db).delete_disbursement(record_id, actor_id)
    return ApiResponse(success=True, message="Disbursement deleted", data=None)


@router.post(
    "/reports/generate-id",
    response_model=ApiResponse[ReportIdResponse],
    status_code=status.HTTP_201_CREATED,
)
async def generate_report_id(
    actor_id: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Reserve the next report id."""
    report_id = await RecordService(db).generate_report_id()
    return ApiResponse(success=True, data=ReportIdResponse(report_id=report_id))
