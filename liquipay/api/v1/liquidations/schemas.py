from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from liquipay.models.enums import LiquidationStatus


class CreateLiquidationRequest(BaseModel):
    customer_id: int = Field(..., description="Owning customer")
    tax_type: str = Field(..., min_length=1, max_length=128, description="Tax/fee label")
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2, description="Base amount")
    issue_date: Optional[date] = Field(None, description="Defaults to today")
    due_date: date

    @field_validator("tax_type")
    @classmethod
    def tax_type_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("tax_type must not be blank")
        return v.strip()


class UpdateLiquidationRequest(BaseModel):
    """Partial update: only provided fields are merged."""
    customer_id: Optional[int] = None
    tax_type: Optional[str] = Field(None, min_length=1, max_length=128)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=18, decimal_places=2)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None

    @model_validator(mode="after")
    def no_explicit_nulls(self):
        for name in ("customer_id", "tax_type", "amount", "issue_date", "due_date"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class CustomerSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    ifu: str

    model_config = ConfigDict(from_attributes=True)


class LiquidationResponse(BaseModel):
    id: int
    customer_id: int
    customer: Optional[CustomerSummary] = None
    tax_type: str
    amount: Decimal
    issue_date: date
    due_date: date
    status: LiquidationStatus
    qr_code_data: Optional[str] = None
    qr_type: Optional[str] = None
    qr_generated_at: Optional[datetime] = None
    merchant_channel: Optional[str] = None
    transaction_id: Optional[str] = None
    penalty_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def has_qr_code(self) -> bool:
        return bool(self.qr_code_data and self.qr_code_data.strip())


class LiquidationListResponse(BaseModel):
    items: List[LiquidationResponse] = Field(default_factory=list)
    total: int = Field(..., description="Total count (for pagination)")


class PenaltyResponse(BaseModel):
    liquidation_id: int
    daily_rate: Decimal
    overdue_days: int
    penalty_amount: Decimal
    base_amount: Decimal
    total_amount: Decimal = Field(..., description="Base amount plus computed penalty")


class QRImageResponse(BaseModel):
    success: bool
    message: str
    liquidation_id: Optional[int] = None
    qr_image_base64: Optional[str] = None
    qr_type: Optional[str] = None
    transaction_id: Optional[str] = None
