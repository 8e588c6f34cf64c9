from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.api.v1.liquidation_qr.service import LiquidationQRService
from liquipay.api.v1.liquidations.schemas import (
    CreateLiquidationRequest,
    LiquidationListResponse,
    LiquidationResponse,
    PenaltyResponse,
    QRImageResponse,
    UpdateLiquidationRequest,
)
from liquipay.api.v1.liquidations.service import LiquidationService
from liquipay.core.clock import Clock
from liquipay.core.config import QrSettings
from liquipay.core.deps import get_clock, get_db, get_payment_codec, get_qr_settings
from liquipay.core.exceptions import AppException
from liquipay.core.payment_codec import PaymentCodec
from liquipay.models.enums import LiquidationStatus

router = APIRouter(tags=["liquidations"])


def _list_response(items, total: int) -> LiquidationListResponse:
    return LiquidationListResponse(items=[LiquidationResponse.model_validate(i) for i in items], total=total)


@router.get("/", response_model=LiquidationListResponse, summary="List liquidations")
async def list_liquidations(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(10, ge=1, le=1000, description="Maximum number of records to return"),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    items, total = await LiquidationService(db, clock).list_liquidations(skip=skip, limit=limit)
    return _list_response(items, total)


@router.get(
    "/search",
    response_model=LiquidationListResponse,
    summary="Search liquidations",
    description="Filter by customer, status and issue-date window (inclusive).",
)
async def search_liquidations(
    customer_id: Optional[int] = Query(None),
    status_filter: Optional[LiquidationStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    items, total = await LiquidationService(db, clock).search(
        customer_id=customer_id,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )
    return _list_response(items, total)


@router.get(
    "/search-term",
    response_model=LiquidationListResponse,
    summary="Free-text search",
    description="Case-insensitive match on tax type, status and customer name/IFU.",
)
async def search_liquidations_by_term(
    q: Optional[str] = Query("", description="Search term"),
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    items, total = await LiquidationService(db, clock).search_by_term(q, skip=skip, limit=limit)
    return _list_response(items, total)


@router.get("/customer/{customer_id}", response_model=List[LiquidationResponse], summary="Liquidations of a customer")
async def liquidations_by_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    items = await LiquidationService(db, clock).find_by_customer(customer_id)
    return [LiquidationResponse.model_validate(i) for i in items]


@router.get("/{liquidation_id}", response_model=LiquidationResponse, summary="Get liquidation")
async def get_liquidation(liquidation_id: int, db: AsyncSession = Depends(get_db), clock: Clock = Depends(get_clock)):
    liquidation = await LiquidationService(db, clock).get(liquidation_id)
    if not liquidation:
        AppException().raise_404(f"Liquidation {liquidation_id} not found")
    return LiquidationResponse.model_validate(liquidation)


@router.post(
    "/",
    response_model=LiquidationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create liquidation",
    description="Issue date defaults to today. Status is PENDING, or OVERDUE when the due date already passed.",
)
async def create_liquidation(
    data: CreateLiquidationRequest,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    liquidation = await LiquidationService(db, clock).create(data)
    return LiquidationResponse.model_validate(liquidation)


@router.put("/{liquidation_id}", response_model=LiquidationResponse, summary="Update liquidation")
async def update_liquidation(
    liquidation_id: int,
    data: UpdateLiquidationRequest,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    liquidation = await LiquidationService(db, clock).update(liquidation_id, data)
    if not liquidation:
        AppException().raise_404(f"Liquidation {liquidation_id} not found")
    return LiquidationResponse.model_validate(liquidation)


@router.put("/{liquidation_id}/pay", response_model=LiquidationResponse, summary="Mark liquidation as paid")
async def mark_liquidation_paid(
    liquidation_id: int,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    liquidation = await LiquidationService(db, clock).mark_paid(liquidation_id)
    if not liquidation:
        AppException().raise_404(f"Liquidation {liquidation_id} not found")
    return LiquidationResponse.model_validate(liquidation)


@router.get(
    "/{liquidation_id}/penalty",
    response_model=PenaltyResponse,
    summary="Compute late penalty",
    description="amount x daily_rate x overdue days, rounded half-up to 2 decimals. Zero when paid or not overdue.",
)
async def liquidation_penalty(
    liquidation_id: int,
    daily_rate: Optional[Decimal] = Query(None, description="Daily penalty rate, e.g. 0.01 for 1%/day"),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    result = await LiquidationService(db, clock).calculate_penalty(liquidation_id, daily_rate)
    if result is None:
        AppException().raise_404(f"Liquidation {liquidation_id} not found")
    return PenaltyResponse(**result)


@router.get("/{liquidation_id}/qr-image", response_model=QRImageResponse, summary="Stored QR image")
async def liquidation_qr_image(
    liquidation_id: int,
    db: AsyncSession = Depends(get_db),
    codec: PaymentCodec = Depends(get_payment_codec),
    qr_settings: QrSettings = Depends(get_qr_settings),
    clock: Clock = Depends(get_clock),
):
    outcome = await LiquidationQRService(db, codec, qr_settings, clock).get_qr_image(liquidation_id)
    if not outcome["success"]:
        AppException().raise_404(outcome["message"])
    return QRImageResponse(success=True, message=outcome["message"], **outcome["data"])
