from fastapi import APIRouter, Depends

from liquipay.api.v1.liquidation_qr.router import get_liquidation_qr_service
from liquipay.api.v1.liquidation_qr.service import LiquidationQRService
from liquipay.api.v1.payment_codec.schemas import ParsedPayloadResponse, ParsePayloadRequest
from liquipay.core.exceptions import raise_for_reason

router = APIRouter(tags=["payment-codec"])


@router.post(
    "/parse",
    response_model=ParsedPayloadResponse,
    summary="Parse a QR payload",
    description="Decodes a payload produced by the payment codec. A CRC mismatch or malformed TLV is rejected.",
)
async def parse_payload(data: ParsePayloadRequest, service: LiquidationQRService = Depends(get_liquidation_qr_service)):
    outcome = service.parse_payload(data.payload)
    if not outcome["success"]:
        raise_for_reason(outcome["reason"], outcome["message"])
    return ParsedPayloadResponse(**outcome["data"])
