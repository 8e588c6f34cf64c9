"""Tests for the overdue penalty arithmetic."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from liquipay.core.penalty import calculate_penalty, compute_penalty, overdue_days, status_for_due_date
from liquipay.models.enums import LiquidationStatus

TODAY = date(2026, 3, 18)


class TestComputePenalty:
    """amount x rate x overdue days, half-up to cents."""

    def test_five_days_late_at_one_percent(self) -> None:
        due = TODAY - timedelta(days=5)
        penalty = compute_penalty(Decimal("50000.00"), due, "OVERDUE", Decimal("0.01"), TODAY)
        assert penalty == Decimal("2500.00")

    def test_rounds_half_up(self) -> None:
        due = TODAY - timedelta(days=1)
        # 10.05 * 0.5 = 5.025 -> 5.03
        assert compute_penalty(Decimal("10.05"), due, "OVERDUE", Decimal("0.5"), TODAY) == Decimal("5.03")

    def test_zero_on_due_date(self) -> None:
        assert compute_penalty(Decimal("50000"), TODAY, "PENDING", Decimal("0.01"), TODAY) == 0

    def test_zero_before_due_date(self) -> None:
        due = TODAY + timedelta(days=3)
        assert compute_penalty(Decimal("50000"), due, "PENDING", Decimal("0.01"), TODAY) == 0

    def test_zero_when_paid(self) -> None:
        due = TODAY - timedelta(days=20)
        assert compute_penalty(Decimal("50000"), due, "PAID", Decimal("0.01"), TODAY) == 0

    def test_zero_for_missing_or_non_positive_rate(self) -> None:
        due = TODAY - timedelta(days=20)
        assert compute_penalty(Decimal("50000"), due, "OVERDUE", None, TODAY) == 0
        assert compute_penalty(Decimal("50000"), due, "OVERDUE", Decimal("0"), TODAY) == 0
        assert compute_penalty(Decimal("50000"), due, "OVERDUE", Decimal("-0.01"), TODAY) == 0

    def test_never_negative(self) -> None:
        for offset in range(-10, 10):
            due = TODAY + timedelta(days=offset)
            assert compute_penalty(Decimal("123.45"), due, "PENDING", Decimal("0.02"), TODAY) >= 0


class TestHelpers:
    def test_overdue_days(self) -> None:
        assert overdue_days(TODAY - timedelta(days=5), TODAY) == 5
        assert overdue_days(TODAY + timedelta(days=5), TODAY) == 0

    def test_status_for_due_date(self) -> None:
        assert status_for_due_date(TODAY, TODAY) == LiquidationStatus.PENDING
        assert status_for_due_date(TODAY - timedelta(days=1), TODAY) == LiquidationStatus.OVERDUE

    def test_calculate_penalty_reads_record(self) -> None:
        record = SimpleNamespace(amount=Decimal("1000"), due_date=TODAY - timedelta(days=2), status="OVERDUE")
        assert calculate_penalty(record, Decimal("0.1"), TODAY) == Decimal("200.00")
        assert calculate_penalty(None, Decimal("0.1"), TODAY) == 0
