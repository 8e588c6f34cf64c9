from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CustomerBase(BaseModel):
    last_name: str = Field(..., min_length=1, description="Last name")
    first_name: str = Field(..., min_length=1, description="First name")
    address: str = Field(..., min_length=1, description="Free-text address; the city is extracted from it for QR codes")
    ifu: str = Field(..., min_length=1, max_length=64, description="Tax identifier (IFU), unique")
    phone: str = Field(..., min_length=1, max_length=32)
    email: str = Field(..., min_length=3, description="E-mail, unique")

    @field_validator("last_name", "first_name", "address", "ifu", "phone", "email")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str) -> str:
        local, _, domain = v.partition("@")
        if not local or not domain:
            raise ValueError("Invalid e-mail")
        return v


class CreateCustomerRequest(CustomerBase):
    pass


class UpdateCustomerRequest(CustomerBase):
    """Full replacement of the customer profile (PUT)."""


class CustomerResponse(BaseModel):
    id: int
    last_name: str
    first_name: str
    address: str
    ifu: str
    phone: str
    email: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CustomerListResponse(BaseModel):
    items: List[CustomerResponse] = Field(default_factory=list)
    total: int = Field(..., description="Total count of customers (for pagination)")
