"""
Read-side queries, aggregates and maintenance over the QR sub-state of liquidations.

Day, week and month windows are computed from the injected clock in local time and are
half-open ([start, next start)). Maintenance operations are idempotent.
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
import logging

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.api.v1.liquidations.service import calculate_total
from liquipay.core.clock import Clock, system_clock
from liquipay.core.utils import to_money
from liquipay.models.enums import LiquidationStatus, QrType
from liquipay.models.liquidation import Liquidation

logger = logging.getLogger(__name__)

HAS_QR = and_(Liquidation.qr_code_data.isnot(None), Liquidation.qr_code_data != "")
NO_QR = or_(Liquidation.qr_code_data.is_(None), Liquidation.qr_code_data == "")


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def day_window(today: date) -> Tuple[datetime, datetime]:
    start = _start_of_day(today)
    return start, start + timedelta(days=1)


def week_window(today: date) -> Tuple[datetime, datetime]:
    """Monday 00:00 up to (not including) the next Monday 00:00."""
    start = _start_of_day(today - timedelta(days=today.weekday()))
    return start, start + timedelta(days=7)


def month_window(today: date) -> Tuple[datetime, datetime]:
    first = today.replace(day=1)
    next_first = (first + timedelta(days=32)).replace(day=1)
    return _start_of_day(first), _start_of_day(next_first)


def validate_qr_data(liquidation: Liquidation) -> bool:
    """
    A stored QR is valid when payload, type, generation time, merchant channel and transaction id
    are all present. PENALTY codes also need a non-negative penalty and a positive total.
    """
    if liquidation is None:
        return False
    for value in (liquidation.qr_code_data, liquidation.qr_type, liquidation.merchant_channel, liquidation.transaction_id):
        if not value or not value.strip():
            return False
    if liquidation.qr_generated_at is None:
        return False
    if liquidation.qr_type == QrType.PENALTY.value:
        if liquidation.penalty_amount is None or liquidation.penalty_amount < 0:
            return False
        if liquidation.total_amount is None or liquidation.total_amount <= 0:
            return False
    return True


class QRDataService:
    def __init__(self, db: AsyncSession, clock: Clock = system_clock):
        self.db = db
        self.clock = clock

    async def _all(self, *conditions) -> List[Liquidation]:
        result = await self.db.execute(select(Liquidation).where(*conditions).order_by(Liquidation.id))
        return list(result.scalars().all())

    async def _count(self, *conditions) -> int:
        return (await self.db.execute(select(func.count(Liquidation.id)).where(*conditions))).scalar() or 0

    # ---- queries -------------------------------------------------------

    async def find_with_qr(self) -> List[Liquidation]:
        return await self._all(HAS_QR)

    async def find_without_qr(self) -> List[Liquidation]:
        return await self._all(NO_QR)

    async def find_by_qr_type(self, qr_type: QrType | str) -> List[Liquidation]:
        return await self._all(Liquidation.qr_type == QrType(qr_type).value)

    async def find_by_transaction_id(self, transaction_id: str) -> Optional[Liquidation]:
        result = await self.db.execute(select(Liquidation).where(Liquidation.transaction_id == transaction_id))
        return result.scalars().first()

    async def find_with_qr_by_customer(self, customer_id: int) -> List[Liquidation]:
        return await self._all(HAS_QR, Liquidation.customer_id == customer_id)

    async def find_with_qr_by_status(self, status: LiquidationStatus | str) -> List[Liquidation]:
        return await self._all(HAS_QR, Liquidation.status == LiquidationStatus(status).value)

    async def find_with_qr_by_tax_type(self, tax_type: str) -> List[Liquidation]:
        return await self._all(HAS_QR, Liquidation.tax_type == tax_type)

    async def find_generated_between(self, start: datetime, end: datetime) -> List[Liquidation]:
        return await self._all(Liquidation.qr_generated_at >= start, Liquidation.qr_generated_at < end)

    async def find_generated_today(self) -> List[Liquidation]:
        return await self.find_generated_between(*day_window(self.clock.today()))

    async def find_generated_this_week(self) -> List[Liquidation]:
        return await self.find_generated_between(*week_window(self.clock.today()))

    async def find_generated_this_month(self) -> List[Liquidation]:
        return await self.find_generated_between(*month_window(self.clock.today()))

    async def find_with_penalties(self) -> List[Liquidation]:
        return await self._all(Liquidation.penalty_amount.isnot(None), Liquidation.penalty_amount > 0)

    async def find_by_total_amount_range(self, min_amount: Decimal, max_amount: Decimal) -> List[Liquidation]:
        total = func.coalesce(Liquidation.total_amount, Liquidation.amount)
        return await self._all(total >= min_amount, total <= max_amount)

    async def find_by_penalty_range(self, min_penalty: Decimal, max_penalty: Decimal) -> List[Liquidation]:
        return await self._all(Liquidation.penalty_amount >= min_penalty, Liquidation.penalty_amount <= max_penalty)

    # ---- aggregates ----------------------------------------------------

    async def count_by_qr_type(self) -> Dict[str, int]:
        result = await self.db.execute(
            select(Liquidation.qr_type, func.count(Liquidation.id))
            .where(Liquidation.qr_type.isnot(None))
            .group_by(Liquidation.qr_type)
        )
        counts = {qr_type.value: 0 for qr_type in QrType}
        for qr_type, count in result.all():
            counts[qr_type] = count
        return counts

    async def count_with_qr(self) -> int:
        return await self._count(HAS_QR)

    async def _count_generated(self, window: Tuple[datetime, datetime]) -> int:
        start, end = window
        return await self._count(Liquidation.qr_generated_at >= start, Liquidation.qr_generated_at < end)

    async def count_generated_today(self) -> int:
        return await self._count_generated(day_window(self.clock.today()))

    async def count_generated_this_week(self) -> int:
        return await self._count_generated(week_window(self.clock.today()))

    async def count_generated_this_month(self) -> int:
        return await self._count_generated(month_window(self.clock.today()))

    async def sum_total_amounts(self) -> Decimal:
        """Sum of total amounts (base amount when no total is stored) over liquidations with a QR."""
        result = await self.db.execute(
            select(func.sum(func.coalesce(Liquidation.total_amount, Liquidation.amount))).where(HAS_QR)
        )
        return to_money(result.scalar())

    async def sum_penalties(self) -> Decimal:
        result = await self.db.execute(
            select(func.sum(Liquidation.penalty_amount)).where(Liquidation.penalty_amount.isnot(None))
        )
        return to_money(result.scalar())

    async def summary(self) -> dict:
        return {
            "with_qr": await self.count_with_qr(),
            "generated_today": await self.count_generated_today(),
            "generated_this_week": await self.count_generated_this_week(),
            "generated_this_month": await self.count_generated_this_month(),
            "count_by_type": await self.count_by_qr_type(),
            "total_amount": await self.sum_total_amounts(),
            "total_penalties": await self.sum_penalties(),
        }

    # ---- maintenance ---------------------------------------------------

    async def clear_qr_data(self, liquidation_id: int) -> bool:
        """Drop the QR sub-state of one liquidation. False when the liquidation does not exist."""
        liquidation = await self.db.get(Liquidation, liquidation_id)
        if not liquidation:
            return False
        if liquidation.has_qr_code() or liquidation.transaction_id:
            liquidation.clear_qr_data()
            await self.db.commit()
            logger.info("QR data cleared for liquidation %s", liquidation_id)
        return True

    async def _clear_all(self, liquidations: List[Liquidation]) -> int:
        for liquidation in liquidations:
            liquidation.clear_qr_data()
        if liquidations:
            await self.db.commit()
        return len(liquidations)

    async def clear_qr_data_for_customer(self, customer_id: int) -> int:
        cleared = await self._clear_all(await self.find_with_qr_by_customer(customer_id))
        logger.info("QR data cleared for %s liquidation(s) of customer %s", cleared, customer_id)
        return cleared

    async def clear_qr_data_older_than(self, cutoff: datetime) -> int:
        cleared = await self._clear_all(await self._all(Liquidation.qr_generated_at < cutoff))
        logger.info("QR data cleared for %s liquidation(s) generated before %s", cleared, cutoff)
        return cleared

    async def update_total_amount(self, liquidation_id: int) -> bool:
        liquidation = await self.db.get(Liquidation, liquidation_id)
        if not liquidation:
            return False
        liquidation.total_amount = calculate_total(liquidation)
        await self.db.commit()
        return True

    async def update_all_total_amounts(self) -> int:
        liquidations = await self._all()
        for liquidation in liquidations:
            liquidation.total_amount = calculate_total(liquidation)
        if liquidations:
            await self.db.commit()
        return len(liquidations)

    # ---- validation ----------------------------------------------------

    async def has_valid_qr(self, liquidation_id: int) -> bool:
        liquidation = await self.db.get(Liquidation, liquidation_id)
        return liquidation is not None and validate_qr_data(liquidation)

    async def transaction_id_exists(self, transaction_id: str) -> bool:
        return await self._count(Liquidation.transaction_id == transaction_id) > 0
