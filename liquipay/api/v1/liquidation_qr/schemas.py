from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from liquipay.models.enums import QrType


class DynamicQRRequest(BaseModel):
    transaction_reference: Optional[str] = Field(None, description="Generated when omitted")


class P2PQRRequest(BaseModel):
    beneficiary_phone: Optional[str] = Field(None, description="Phone of the person receiving the payment")


class PenaltyQRRequest(BaseModel):
    penalty_amount: Optional[Decimal] = Field(None, description="Added on top of the base amount")


class GenerateQRRequest(BaseModel):
    """One endpoint for every variant; only the fields relevant to qr_type are read."""
    qr_type: QrType
    transaction_reference: Optional[str] = None
    beneficiary_phone: Optional[str] = None
    penalty_amount: Optional[Decimal] = None
    include_image: bool = True


class QRCodeData(BaseModel):
    qr_code: str
    qr_image_base64: Optional[str] = None
    liquidation_id: int
    customer_name: str
    amount: Decimal
    currency: str
    tax_type: str
    due_date: date
    type: QrType
    transaction_id: str
    merchant_channel: str
    generated_at: datetime
    transaction_reference: Optional[str] = None
    beneficiary_phone: Optional[str] = None
    p2p_reference: Optional[str] = None
    base_amount: Optional[Decimal] = None
    penalty_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    penalty_reference: Optional[str] = None


class QRGenerationResponse(BaseModel):
    success: bool
    message: str
    data: QRCodeData


class TransactionReferenceResponse(BaseModel):
    liquidation_id: int
    transaction_reference: str


class QRValidationResponse(BaseModel):
    liquidation_id: int
    valid: bool
    errors: List[str] = Field(default_factory=list)
