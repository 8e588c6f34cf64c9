from typing import List, Optional, Tuple
import logging

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.api.v1.customers.schemas import CreateCustomerRequest, UpdateCustomerRequest
from liquipay.core.exceptions import DomainValidationError, UniquenessConflictError
from liquipay.models.customer import Customer
from liquipay.models.liquidation import Liquidation


class CustomerService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def _ifu_taken(self, ifu: str) -> bool:
        result = await self.db.execute(select(Customer.id).where(Customer.ifu == ifu))
        return result.first() is not None

    async def _email_taken(self, email: str) -> bool:
        result = await self.db.execute(select(Customer.id).where(Customer.email == email))
        return result.first() is not None

    async def _commit(self, customer: Customer) -> Customer:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise UniquenessConflictError("IFU or e-mail already used")
        await self.db.refresh(customer)
        return customer

    async def list_customers(self, skip: int = 0, limit: int = 100) -> Tuple[List[Customer], int]:
        total = (await self.db.execute(select(func.count(Customer.id)))).scalar() or 0
        result = await self.db.execute(select(Customer).order_by(Customer.id).offset(skip).limit(limit))
        return list(result.scalars().all()), total

    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        return await self.db.get(Customer, customer_id)

    async def create_customer(self, data: CreateCustomerRequest) -> Customer:
        if await self._ifu_taken(data.ifu):
            raise UniquenessConflictError(f"IFU {data.ifu} already used")
        if await self._email_taken(data.email):
            raise UniquenessConflictError(f"E-mail {data.email} already used")

        customer = Customer(**data.model_dump())
        self.db.add(customer)
        customer = await self._commit(customer)
        self.logger.info("Customer %s created (ifu=%s)", customer.id, customer.ifu)
        return customer

    async def update_customer(self, customer_id: int, data: UpdateCustomerRequest) -> Optional[Customer]:
        customer = await self.db.get(Customer, customer_id)
        if not customer:
            return None
        # Uniqueness is only re-checked for values that actually change
        if data.ifu != customer.ifu and await self._ifu_taken(data.ifu):
            raise UniquenessConflictError(f"IFU {data.ifu} already used")
        if data.email != customer.email and await self._email_taken(data.email):
            raise UniquenessConflictError(f"E-mail {data.email} already used")

        for field, value in data.model_dump().items():
            setattr(customer, field, value)
        self.db.add(customer)
        return await self._commit(customer)

    async def delete_customer(self, customer_id: int) -> bool:
        customer = await self.db.get(Customer, customer_id)
        if not customer:
            return False
        referenced = await self.db.execute(
            select(Liquidation.id).where(Liquidation.customer_id == customer_id).limit(1)
        )
        if referenced.first() is not None:
            raise DomainValidationError("Cannot delete a customer that has liquidations")
        await self.db.delete(customer)
        await self.db.commit()
        self.logger.info("Customer %s deleted", customer_id)
        return True

    async def search_customers(self, term: Optional[str], skip: int = 0, limit: int = 100) -> Tuple[List[Customer], int]:
        like = (term or "").strip().lower()
        if not like:
            return await self.list_customers(skip=skip, limit=limit)
        pattern = f"%{like}%"
        condition = or_(
            func.lower(Customer.last_name).like(pattern),
            func.lower(Customer.first_name).like(pattern),
            func.lower(Customer.ifu).like(pattern),
            func.lower(Customer.email).like(pattern),
        )
        total = (await self.db.execute(select(func.count(Customer.id)).where(condition))).scalar() or 0
        result = await self.db.execute(
            select(Customer).where(condition).order_by(Customer.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total
