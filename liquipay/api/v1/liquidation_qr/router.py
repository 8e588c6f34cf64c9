from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.api.v1.liquidation_qr.schemas import (
    DynamicQRRequest,
    GenerateQRRequest,
    P2PQRRequest,
    PenaltyQRRequest,
    QRCodeData,
    QRGenerationResponse,
    QRValidationResponse,
    TransactionReferenceResponse,
)
from liquipay.api.v1.liquidation_qr.service import LiquidationQRService
from liquipay.core.clock import Clock
from liquipay.core.config import QrSettings
from liquipay.core.deps import get_clock, get_db, get_payment_codec, get_qr_settings
from liquipay.core.exceptions import raise_for_reason
from liquipay.core.payment_codec import PaymentCodec

router = APIRouter(tags=["liquidation-qr"])


def get_liquidation_qr_service(
    db: AsyncSession = Depends(get_db),
    codec: PaymentCodec = Depends(get_payment_codec),
    qr_settings: QrSettings = Depends(get_qr_settings),
    clock: Clock = Depends(get_clock),
) -> LiquidationQRService:
    return LiquidationQRService(db, codec, qr_settings, clock)


def _generation_response(outcome: dict) -> QRGenerationResponse:
    if not outcome["success"]:
        raise_for_reason(outcome["reason"], outcome["message"])
    return QRGenerationResponse(success=True, message=outcome["message"], data=QRCodeData(**outcome["data"]))


@router.post("/static", response_model=QRGenerationResponse, summary="Generate a static QR code")
async def generate_static_qr(
    liquidation_id: int,
    include_image: bool = Query(True, description="Render the PNG image as well"),
    service: LiquidationQRService = Depends(get_liquidation_qr_service),
):
    return _generation_response(await service.generate_static(liquidation_id, include_image=include_image))


@router.post("/dynamic", response_model=QRGenerationResponse, summary="Generate a dynamic QR code")
async def generate_dynamic_qr(
    liquidation_id: int,
    data: Optional[DynamicQRRequest] = None,
    include_image: bool = Query(True),
    service: LiquidationQRService = Depends(get_liquidation_qr_service),
):
    reference = data.transaction_reference if data else None
    return _generation_response(
        await service.generate_dynamic(liquidation_id, transaction_reference=reference, include_image=include_image)
    )


@router.post("/p2p", response_model=QRGenerationResponse, summary="Generate a person-to-person QR code")
async def generate_p2p_qr(
    liquidation_id: int,
    data: P2PQRRequest,
    include_image: bool = Query(True),
    service: LiquidationQRService = Depends(get_liquidation_qr_service),
):
    return _generation_response(
        await service.generate_p2p(liquidation_id, data.beneficiary_phone, include_image=include_image)
    )


@router.post(
    "/penalty",
    response_model=QRGenerationResponse,
    summary="Generate a penalty QR code",
    description="Encodes base amount + penalty and stores penalty and total on the liquidation.",
)
async def generate_penalty_qr(
    liquidation_id: int,
    data: PenaltyQRRequest,
    include_image: bool = Query(True),
    service: LiquidationQRService = Depends(get_liquidation_qr_service),
):
    return _generation_response(
        await service.generate_penalty(liquidation_id, data.penalty_amount, include_image=include_image)
    )


@router.post("/generate", response_model=QRGenerationResponse, summary="Generate a QR code of any type")
async def generate_qr(
    liquidation_id: int,
    data: GenerateQRRequest,
    service: LiquidationQRService = Depends(get_liquidation_qr_service),
):
    outcome = await service.generate(
        liquidation_id,
        data.qr_type,
        transaction_reference=data.transaction_reference,
        beneficiary_phone=data.beneficiary_phone,
        penalty_amount=data.penalty_amount,
        include_image=data.include_image,
    )
    return _generation_response(outcome)


@router.get("/reference", response_model=TransactionReferenceResponse, summary="Preview a transaction reference")
async def preview_reference(liquidation_id: int, service: LiquidationQRService = Depends(get_liquidation_qr_service)):
    outcome = await service.preview_transaction_reference(liquidation_id)
    if not outcome["success"]:
        raise_for_reason(outcome["reason"], outcome["message"])
    return TransactionReferenceResponse(**outcome["data"])


@router.get("/validate", response_model=QRValidationResponse, summary="Check QR eligibility")
async def validate_for_qr(liquidation_id: int, service: LiquidationQRService = Depends(get_liquidation_qr_service)):
    outcome = await service.validate_for_qr(liquidation_id)
    if not outcome["success"]:
        raise_for_reason(outcome["reason"], outcome["message"])
    return QRValidationResponse(**outcome["data"])
