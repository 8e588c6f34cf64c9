from datetime import datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.api.v1.liquidations.schemas import LiquidationResponse
from liquipay.api.v1.qr_data.schemas import (
    AmountResponse,
    CountByTypeResponse,
    MaintenanceResponse,
    QRStatsSummaryResponse,
    QRValidityResponse,
    TransactionExistsResponse,
)
from liquipay.api.v1.qr_data.service import QRDataService
from liquipay.core.clock import Clock
from liquipay.core.deps import get_clock, get_db
from liquipay.core.exceptions import AppException
from liquipay.models.enums import LiquidationStatus, QrType

router = APIRouter(tags=["qr-data"])


def get_qr_data_service(db: AsyncSession = Depends(get_db), clock: Clock = Depends(get_clock)) -> QRDataService:
    return QRDataService(db, clock)


def _items(liquidations) -> List[LiquidationResponse]:
    return [LiquidationResponse.model_validate(liquidation) for liquidation in liquidations]


@router.get("/with-qr", response_model=List[LiquidationResponse], summary="Liquidations with a QR code")
async def with_qr(service: QRDataService = Depends(get_qr_data_service)):
    return _items(await service.find_with_qr())


@router.get("/without-qr", response_model=List[LiquidationResponse], summary="Liquidations without a QR code")
async def without_qr(service: QRDataService = Depends(get_qr_data_service)):
    return _items(await service.find_without_qr())


@router.get("/type/{qr_type}", response_model=List[LiquidationResponse], summary="Liquidations by QR type")
async def by_qr_type(qr_type: QrType, service: QRDataService = Depends(get_qr_data_service)):
    return _items(await service.find_by_qr_type(qr_type))


@router.get("/transaction/{transaction_id}", response_model=LiquidationResponse, summary="Liquidation by transaction id")
async def by_transaction_id(transaction_id: str, service: QRDataService = Depends(get_qr_data_service)):
    liquidation = await service.find_by_transaction_id(transaction_id)
    if not liquidation:
        AppException().raise_404(f"No liquidation with transaction id {transaction_id}")
    return LiquidationResponse.model_validate(liquidation)


@router.get("/customer/{customer_id}", response_model=List[LiquidationResponse], summary="QR-bearing liquidations of a customer")
async def by_customer(customer_id: int, service: QRDataService = Depends(get_qr_data_service)):
    return _items(await service.find_with_qr_by_customer(customer_id))


@router.get("/status/{status}", response_model=List[LiquidationResponse], summary="QR-bearing liquidations by status")
async def by_status(status: LiquidationStatus, service: QRDataService = Depends(get_qr_data_service)):
    return _items(await service.find_with_qr_by_status(status))


@router.get("/tax-type/{tax_type}", response_model=List[LiquidationResponse], summary="QR-bearing liquidations by tax type")
async def by_tax_type(tax_type: str, service: QRDataService = Depends(get_qr_data_service)):
    return _items(await service.find_with_qr_by_tax_type(tax_type))


@router.get("/today", response_model=List[LiquidationResponse], summary="QR codes generated today")
async def generated_today(service: QRDataService = Depends(get_qr_data_service)):
    return _items(await service.find_generated_today())


@router.get("/this-week", response_model=List[LiquidationResponse], summary="QR codes generated this week")
async def generated_this_week(service: QRDataService = Depends(get_qr_data_service)):
    return _items(await service.find_generated_this_week())


@router.get("/this-month", response_model=List[LiquidationResponse], summary="QR codes generated this month")
async def generated_this_month(service: QRDataService = Depends(get_qr_data_service)):
    return _items(await service.find_generated_this_month())


@router.get("/with-penalties", response_model=List[LiquidationResponse], summary="Liquidations with a penalty")
async def with_penalties(service: QRDataService = Depends(get_qr_data_service)):
    return _items(await service.find_with_penalties())


@router.get("/total-amount-range", response_model=List[LiquidationResponse], summary="Liquidations by total amount")
async def total_amount_range(
    min_amount: Decimal = Query(..., ge=0),
    max_amount: Decimal = Query(..., ge=0),
    service: QRDataService = Depends(get_qr_data_service),
):
    if min_amount > max_amount:
        AppException().raise_400("min_amount must not exceed max_amount")
    return _items(await service.find_by_total_amount_range(min_amount, max_amount))


@router.get("/penalty-range", response_model=List[LiquidationResponse], summary="Liquidations by penalty amount")
async def penalty_range(
    min_penalty: Decimal = Query(..., ge=0),
    max_penalty: Decimal = Query(..., ge=0),
    service: QRDataService = Depends(get_qr_data_service),
):
    if min_penalty > max_penalty:
        AppException().raise_400("min_penalty must not exceed max_penalty")
    return _items(await service.find_by_penalty_range(min_penalty, max_penalty))


# ---- statistics ----

@router.get("/stats/count-by-type", response_model=CountByTypeResponse, summary="Count per QR type")
async def count_by_type(service: QRDataService = Depends(get_qr_data_service)):
    return CountByTypeResponse(counts=await service.count_by_qr_type())


@router.get("/stats/total-amount", response_model=AmountResponse, summary="Sum of total amounts with a QR")
async def total_amount(service: QRDataService = Depends(get_qr_data_service)):
    return AmountResponse(total=await service.sum_total_amounts())


@router.get("/stats/total-penalties", response_model=AmountResponse, summary="Sum of penalties")
async def total_penalties(service: QRDataService = Depends(get_qr_data_service)):
    return AmountResponse(total=await service.sum_penalties())


@router.get("/stats/summary", response_model=QRStatsSummaryResponse, summary="QR statistics")
async def stats_summary(service: QRDataService = Depends(get_qr_data_service)):
    return QRStatsSummaryResponse(**await service.summary())


# ---- validation ----

@router.get("/transaction-exists/{transaction_id}", response_model=TransactionExistsResponse)
async def transaction_exists(transaction_id: str, service: QRDataService = Depends(get_qr_data_service)):
    return TransactionExistsResponse(
        transaction_id=transaction_id, exists=await service.transaction_id_exists(transaction_id)
    )


@router.get("/{liquidation_id}/validate", response_model=QRValidityResponse, summary="Check stored QR data")
async def validate_qr(liquidation_id: int, service: QRDataService = Depends(get_qr_data_service)):
    return QRValidityResponse(liquidation_id=liquidation_id, valid=await service.has_valid_qr(liquidation_id))


# ---- maintenance ----
# Literal paths are declared before /{liquidation_id} so they are matched first

@router.delete("/older-than", response_model=MaintenanceResponse, summary="Clear QR data generated before a cutoff")
async def clear_older_than(
    cutoff: datetime = Query(..., description="Local date-time; QR codes generated before it are cleared"),
    service: QRDataService = Depends(get_qr_data_service),
):
    cleared = await service.clear_qr_data_older_than(cutoff)
    return MaintenanceResponse(message=f"QR data cleared for {cleared} liquidation(s)", affected=cleared)


@router.delete("/customer/{customer_id}", response_model=MaintenanceResponse, summary="Clear QR data of a customer")
async def clear_for_customer(customer_id: int, service: QRDataService = Depends(get_qr_data_service)):
    cleared = await service.clear_qr_data_for_customer(customer_id)
    return MaintenanceResponse(message=f"QR data cleared for {cleared} liquidation(s)", affected=cleared)


@router.delete("/{liquidation_id}", response_model=MaintenanceResponse, summary="Clear QR data of a liquidation")
async def clear_qr(liquidation_id: int, service: QRDataService = Depends(get_qr_data_service)):
    if not await service.clear_qr_data(liquidation_id):
        AppException().raise_404(f"Liquidation {liquidation_id} not found")
    return MaintenanceResponse(message="QR data cleared", affected=1)


@router.put("/update-all-totals", response_model=MaintenanceResponse, summary="Recompute every total amount")
async def update_all_totals(service: QRDataService = Depends(get_qr_data_service)):
    updated = await service.update_all_total_amounts()
    return MaintenanceResponse(message=f"Total amount recomputed for {updated} liquidation(s)", affected=updated)


@router.put("/{liquidation_id}/update-total", response_model=MaintenanceResponse, summary="Recompute a total amount")
async def update_total(liquidation_id: int, service: QRDataService = Depends(get_qr_data_service)):
    if not await service.update_total_amount(liquidation_id):
        AppException().raise_404(f"Liquidation {liquidation_id} not found")
    return MaintenanceResponse(message="Total amount recomputed", affected=1)
