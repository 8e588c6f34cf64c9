"""Overdue penalty arithmetic for liquidations."""
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from liquipay.models.enums import LiquidationStatus

ZERO = Decimal("0")


def overdue_days(due_date: date, today: date) -> int:
    """Whole days elapsed since due_date (0 when not yet overdue)."""
    return max(0, (today - due_date).days)


def compute_penalty(
    amount: Decimal,
    due_date: date,
    status: str,
    daily_rate: Decimal | None,
    today: date,
) -> Decimal:
    """
    Penalty owed as of `today`: amount * daily_rate * overdue_days, rounded half-up to 2 places.
    Zero when the rate is missing or not positive, the liquidation is PAID, or today <= due_date.
    """
    if daily_rate is None or daily_rate <= ZERO:
        return ZERO
    if status == LiquidationStatus.PAID.value:
        return ZERO
    if today <= due_date:
        return ZERO
    days = overdue_days(due_date, today)
    penalty = Decimal(amount) * Decimal(daily_rate) * days
    return penalty.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def calculate_penalty(liquidation, daily_rate: Decimal | None, today: date) -> Decimal:
    """Penalty for a liquidation record (anything exposing amount, due_date and status)."""
    if liquidation is None:
        return ZERO
    return compute_penalty(liquidation.amount, liquidation.due_date, liquidation.status, daily_rate, today)


def status_for_due_date(due_date: date, today: date) -> LiquidationStatus:
    """OVERDUE once today is past the due date, else PENDING."""
    return LiquidationStatus.OVERDUE if today > due_date else LiquidationStatus.PENDING
