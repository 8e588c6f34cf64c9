from decimal import Decimal
from typing import Dict

from pydantic import BaseModel, Field


class CountByTypeResponse(BaseModel):
    counts: Dict[str, int] = Field(default_factory=dict, description="Liquidations per QR type")


class AmountResponse(BaseModel):
    total: Decimal


class QRStatsSummaryResponse(BaseModel):
    with_qr: int
    generated_today: int
    generated_this_week: int
    generated_this_month: int
    count_by_type: Dict[str, int]
    total_amount: Decimal
    total_penalties: Decimal


class MaintenanceResponse(BaseModel):
    message: str
    affected: int = 0


class QRValidityResponse(BaseModel):
    liquidation_id: int
    valid: bool


class TransactionExistsResponse(BaseModel):
    transaction_id: str
    exists: bool
