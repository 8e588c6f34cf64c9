from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.api.v1.customers.schemas import (
    CreateCustomerRequest,
    CustomerListResponse,
    CustomerResponse,
    UpdateCustomerRequest,
)
from liquipay.api.v1.customers.service import CustomerService
from liquipay.core.deps import get_db
from liquipay.core.exceptions import AppException

router = APIRouter()


@router.get(
    "/",
    response_model=CustomerListResponse,
    status_code=status.HTTP_200_OK,
    summary="List customers",
    description="Paginated list of customers.",
)
async def list_customers(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(10, ge=1, le=1000, description="Maximum number of records to return"),
    db: AsyncSession = Depends(get_db),
):
    items, total = await CustomerService(db).list_customers(skip=skip, limit=limit)
    return CustomerListResponse(items=[CustomerResponse.model_validate(c) for c in items], total=total)


# /search must be declared before /{customer_id} so it is matched first
@router.get(
    "/search",
    response_model=CustomerListResponse,
    status_code=status.HTTP_200_OK,
    summary="Search customers",
    description="Case-insensitive search on last name, first name, IFU and e-mail.",
)
async def search_customers(
    q: Optional[str] = Query("", description="Search term"),
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    items, total = await CustomerService(db).search_customers(q, skip=skip, limit=limit)
    return CustomerListResponse(items=[CustomerResponse.model_validate(c) for c in items], total=total)


@router.get("/{customer_id}", response_model=CustomerResponse, summary="Get customer")
async def get_customer(customer_id: int, db: AsyncSession = Depends(get_db)):
    customer = await CustomerService(db).get_customer(customer_id)
    if not customer:
        AppException().raise_404(f"Customer {customer_id} not found")
    return CustomerResponse.model_validate(customer)


@router.post(
    "/",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create customer",
    description="Create a customer. IFU and e-mail must be unique (409 otherwise).",
)
async def create_customer(data: CreateCustomerRequest, db: AsyncSession = Depends(get_db)):
    customer = await CustomerService(db).create_customer(data)
    return CustomerResponse.model_validate(customer)


@router.put("/{customer_id}", response_model=CustomerResponse, summary="Update customer")
async def update_customer(customer_id: int, data: UpdateCustomerRequest, db: AsyncSession = Depends(get_db)):
    customer = await CustomerService(db).update_customer(customer_id, data)
    if not customer:
        AppException().raise_404(f"Customer {customer_id} not found")
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", status_code=status.HTTP_200_OK, summary="Delete customer")
async def delete_customer(customer_id: int, db: AsyncSession = Depends(get_db)):
    deleted = await CustomerService(db).delete_customer(customer_id)
    if not deleted:
        AppException().raise_404(f"Customer {customer_id} not found")
    return {"message": "Customer deleted successfully"}
