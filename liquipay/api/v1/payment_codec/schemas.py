from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ParsePayloadRequest(BaseModel):
    payload: str = Field(..., min_length=1, description="Raw EMV payload as read from a QR code")


class ParsedPayloadResponse(BaseModel):
    merchant_name: str
    merchant_city: str
    country_code: str
    category_code: str
    alias: str
    amount: Optional[Decimal] = None
    type: str
    transaction_id: Optional[str] = None
