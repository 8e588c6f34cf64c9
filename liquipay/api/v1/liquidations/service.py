from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple
import logging

from sqlalchemy import String, cast, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.api.v1.liquidations.schemas import CreateLiquidationRequest, UpdateLiquidationRequest
from liquipay.core.clock import Clock, system_clock
from liquipay.core.exceptions import DomainValidationError
from liquipay.core.penalty import calculate_penalty, overdue_days, status_for_due_date
from liquipay.core.utils import to_money
from liquipay.models.customer import Customer
from liquipay.models.enums import LiquidationStatus
from liquipay.models.liquidation import Liquidation


def calculate_total(liquidation: Liquidation) -> Decimal:
    """Base amount plus penalty when a positive penalty is present, else the base amount."""
    penalty = liquidation.penalty_amount
    if penalty is not None and penalty > 0:
        return to_money(liquidation.amount + penalty)
    return to_money(liquidation.amount)


class LiquidationService:
    """Liquidation lifecycle: creation, partial updates, status recomputation and payment."""

    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    async def _resolve_customer(self, customer_id: Optional[int]) -> Customer:
        if customer_id is None:
            raise DomainValidationError("Customer not specified")
        customer = await self.db.get(Customer, customer_id)
        if not customer:
            raise DomainValidationError(f"Customer {customer_id} not found")
        return customer

    async def get(self, liquidation_id: int) -> Optional[Liquidation]:
        return await self.db.get(Liquidation, liquidation_id)

    async def list_liquidations(self, skip: int = 0, limit: int = 100) -> Tuple[List[Liquidation], int]:
        total = (await self.db.execute(select(func.count(Liquidation.id)))).scalar() or 0
        result = await self.db.execute(select(Liquidation).order_by(Liquidation.id).offset(skip).limit(limit))
        return list(result.scalars().all()), total

    async def create(self, data: CreateLiquidationRequest) -> Liquidation:
        customer = await self._resolve_customer(data.customer_id)
        if data.amount is None or data.amount <= 0:
            raise DomainValidationError("Amount must be positive")
        today = self.clock.today()
        issue_date = data.issue_date or today
        if data.due_date is None or data.due_date < issue_date:
            raise DomainValidationError("Invalid due date: it must not precede the issue date")

        liquidation = Liquidation(
            customer_id=customer.id,
            customer=customer,
            tax_type=data.tax_type,
            amount=to_money(data.amount),
            issue_date=issue_date,
            due_date=data.due_date,
            # OVERDUE straight away when the due date already passed
            status=status_for_due_date(data.due_date, today).value,
        )
        self.db.add(liquidation)
        await self.db.commit()
        self.logger.info(
            "Liquidation %s created for customer %s (status=%s)", liquidation.id, customer.id, liquidation.status
        )
        return liquidation

    async def update(self, liquidation_id: int, data: UpdateLiquidationRequest) -> Optional[Liquidation]:
        liquidation = await self.db.get(Liquidation, liquidation_id)
        if not liquidation:
            return None

        changes = data.model_dump(exclude_unset=True)
        if "customer_id" in changes and changes["customer_id"] != liquidation.customer_id:
            customer = await self._resolve_customer(changes["customer_id"])
            liquidation.customer_id = customer.id
            liquidation.customer = customer
        if "tax_type" in changes:
            liquidation.tax_type = changes["tax_type"]
        if "amount" in changes:
            liquidation.amount = to_money(changes["amount"])
        if "issue_date" in changes:
            liquidation.issue_date = changes["issue_date"]
        if "due_date" in changes:
            liquidation.due_date = changes["due_date"]
        if liquidation.due_date < liquidation.issue_date:
            await self.db.rollback()
            raise DomainValidationError("Invalid due date: it must not precede the issue date")

        if liquidation.total_amount is not None:
            liquidation.total_amount = calculate_total(liquidation)

        # PAID is sticky; otherwise the status follows the due date
        if not liquidation.is_paid():
            liquidation.status = status_for_due_date(liquidation.due_date, self.clock.today()).value

        self.db.add(liquidation)
        await self.db.commit()
        return liquidation

    async def mark_paid(self, liquidation_id: int) -> Optional[Liquidation]:
        """Transition to PAID. Marking an already PAID liquidation is a no-op success."""
        liquidation = await self.db.get(Liquidation, liquidation_id)
        if not liquidation:
            return None
        if liquidation.is_paid():
            return liquidation
        liquidation.status = LiquidationStatus.PAID.value
        self.db.add(liquidation)
        await self.db.commit()
        self.logger.info("Liquidation %s marked as paid", liquidation_id)
        return liquidation

    async def calculate_penalty(self, liquidation_id: int, daily_rate: Optional[Decimal]) -> Optional[dict]:
        liquidation = await self.db.get(Liquidation, liquidation_id)
        if not liquidation:
            return None
        today = self.clock.today()
        penalty = calculate_penalty(liquidation, daily_rate, today)
        days = overdue_days(liquidation.due_date, today) if penalty > 0 else 0
        return {
            "liquidation_id": liquidation.id,
            "daily_rate": daily_rate if daily_rate is not None else Decimal("0"),
            "overdue_days": days,
            "penalty_amount": penalty,
            "base_amount": liquidation.amount,
            "total_amount": to_money(liquidation.amount + penalty),
        }

    async def search(
        self,
        customer_id: Optional[int] = None,
        status: Optional[LiquidationStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Liquidation], int]:
        """Filter by customer, status and an issue-date window (inclusive)."""
        conditions = []
        if customer_id is not None:
            conditions.append(Liquidation.customer_id == customer_id)
        if status is not None:
            conditions.append(Liquidation.status == LiquidationStatus(status).value)
        if start_date is not None:
            conditions.append(Liquidation.issue_date >= start_date)
        if end_date is not None:
            conditions.append(Liquidation.issue_date <= end_date)
        total = (await self.db.execute(select(func.count(Liquidation.id)).where(*conditions))).scalar() or 0
        result = await self.db.execute(
            select(Liquidation).where(*conditions).order_by(Liquidation.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    async def search_by_term(self, term: Optional[str], skip: int = 0, limit: int = 100) -> Tuple[List[Liquidation], int]:
        like = (term or "").strip().lower()
        if not like:
            return await self.list_liquidations(skip=skip, limit=limit)
        pattern = f"%{like}%"
        query = (
            select(Liquidation)
            .join(Customer, Liquidation.customer_id == Customer.id)
            .where(
                or_(
                    func.lower(Liquidation.tax_type).like(pattern),
                    func.lower(cast(Liquidation.status, String)).like(pattern),
                    func.lower(Customer.first_name).like(pattern),
                    func.lower(Customer.last_name).like(pattern),
                    func.lower(Customer.ifu).like(pattern),
                )
            )
        )
        items = list((await self.db.execute(query.order_by(Liquidation.id))).unique().scalars().all())
        return items[skip:skip + limit], len(items)

    async def find_by_customer(self, customer_id: int) -> List[Liquidation]:
        result = await self.db.execute(
            select(Liquidation).where(Liquidation.customer_id == customer_id).order_by(Liquidation.id)
        )
        return list(result.scalars().all())

    async def refresh_overdue_statuses(self) -> int:
        """Flip PENDING liquidations whose due date has passed to OVERDUE. Returns the number updated."""
        result = await self.db.execute(
            update(Liquidation)
            .where(
                Liquidation.status == LiquidationStatus.PENDING.value,
                Liquidation.due_date < self.clock.today(),
            )
            .values(status=LiquidationStatus.OVERDUE.value)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0
