from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class WorkflowRequest(BaseModel):
    amount: Decimal = Field(..., description="Amount to encode; checked against the configured min/max")
    client_info: str = Field(..., min_length=1, description="Client id carried in the generated link")
    qr_type: str = Field("STATIC", description="STATIC or DYNAMIC")
    merchant_name: Optional[str] = Field(None, description="Defaults to the configured merchant name")
    transaction_reference: Optional[str] = Field(None, description="DYNAMIC only; generated when omitted")

    @field_validator("client_info")
    @classmethod
    def client_info_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("client_info must not be blank")
        return v.strip()


class WorkflowQRCode(BaseModel):
    qr_data: str
    qr_image: Optional[str] = None
    qr_type: str
    amount: Decimal
    currency: str
    merchant_name: str
    merchant_city: str
    country_code: str
    transaction_reference: Optional[str] = None
    generated_at: datetime


class WorkflowResponse(BaseModel):
    success: bool
    message: str
    qr_code: WorkflowQRCode
    generated_link: str


class ClientData(BaseModel):
    client_id: str
    name: str
    first_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: str
    country: str


class TransactionData(BaseModel):
    transaction_id: str
    amount: Decimal
    currency: str
    status: str
    type: str
    description: str
    timestamp: datetime
    payment_reference: str
    liquidation_id: Optional[int] = None
    tax_type: Optional[str] = None


class ClientInfoResponse(BaseModel):
    success: bool
    message: str
    client: ClientData
    transaction: TransactionData
