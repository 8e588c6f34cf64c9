"""Tests for LiquidationService: creation, updates, payment and overdue refresh."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from liquipay.api.v1.liquidation_qr.service import LiquidationQRService
from liquipay.api.v1.liquidations.schemas import CreateLiquidationRequest, UpdateLiquidationRequest
from liquipay.api.v1.liquidations.service import LiquidationService, calculate_total
from liquipay.core.exceptions import DomainValidationError
from liquipay.models.enums import LiquidationStatus
from tests.conftest import TODAY


class TestCreate:
    async def test_pending_with_future_due_date(self, db, clock, make_customer) -> None:
        customer = await make_customer(ifu="IFU001", email="a@x.com")
        liquidation = await LiquidationService(db, clock).create(
            CreateLiquidationRequest(
                customer_id=customer.id,
                tax_type="Property tax",
                amount=Decimal("50000.00"),
                due_date=TODAY + timedelta(days=30),
            )
        )
        assert liquidation.status == LiquidationStatus.PENDING.value
        assert liquidation.issue_date == TODAY
        assert liquidation.customer.ifu == "IFU001"

    async def test_overdue_when_due_date_passed(self, db, clock, make_customer) -> None:
        customer = await make_customer()
        liquidation = await LiquidationService(db, clock).create(
            CreateLiquidationRequest(
                customer_id=customer.id,
                tax_type="Property tax",
                amount=Decimal("100"),
                issue_date=TODAY - timedelta(days=10),
                due_date=TODAY - timedelta(days=1),
            )
        )
        assert liquidation.status == LiquidationStatus.OVERDUE.value

    async def test_due_before_issue_rejected(self, db, clock, make_customer) -> None:
        customer = await make_customer()
        with pytest.raises(DomainValidationError):
            await LiquidationService(db, clock).create(
                CreateLiquidationRequest(
                    customer_id=customer.id,
                    tax_type="Property tax",
                    amount=Decimal("100"),
                    issue_date=TODAY,
                    due_date=TODAY - timedelta(days=1),
                )
            )

    async def test_unknown_customer_rejected(self, db, clock) -> None:
        with pytest.raises(DomainValidationError):
            await LiquidationService(db, clock).create(
                CreateLiquidationRequest(
                    customer_id=999, tax_type="Property tax", amount=Decimal("100"), due_date=TODAY
                )
            )


class TestUpdate:
    async def test_partial_update_recomputes_status(self, db, clock, make_customer, make_liquidation) -> None:
        liquidation = await make_liquidation(await make_customer())
        updated = await LiquidationService(db, clock).update(
            liquidation.id, UpdateLiquidationRequest(due_date=TODAY - timedelta(days=2))
        )
        assert updated.status == LiquidationStatus.OVERDUE.value
        assert updated.tax_type == "Property tax"

    async def test_paid_is_sticky(self, db, clock, make_customer, make_liquidation) -> None:
        liquidation = await make_liquidation(await make_customer(), status=LiquidationStatus.PAID.value)
        updated = await LiquidationService(db, clock).update(
            liquidation.id, UpdateLiquidationRequest(due_date=TODAY - timedelta(days=2))
        )
        assert updated.status == LiquidationStatus.PAID.value

    async def test_date_order_checked(self, db, clock, make_customer, make_liquidation) -> None:
        liquidation = await make_liquidation(await make_customer())
        with pytest.raises(DomainValidationError):
            await LiquidationService(db, clock).update(
                liquidation.id, UpdateLiquidationRequest(due_date=liquidation.issue_date - timedelta(days=1))
            )

    async def test_amount_change_recomputes_stored_total(
        self, db, clock, codec, qr_settings, make_customer, make_liquidation
    ) -> None:
        liquidation = await make_liquidation(await make_customer())
        qr_service = LiquidationQRService(db, codec, qr_settings, clock)
        assert (await qr_service.generate_penalty(liquidation.id, Decimal("2500")))["success"] is True
        assert liquidation.total_amount == Decimal("52500.00")

        updated = await LiquidationService(db, clock).update(
            liquidation.id, UpdateLiquidationRequest(amount=Decimal("60000"))
        )
        assert updated.total_amount == Decimal("62500.00")
        assert updated.penalty_amount == Decimal("2500")

    async def test_amount_change_leaves_total_unset_without_qr(self, db, clock, make_customer, make_liquidation) -> None:
        liquidation = await make_liquidation(await make_customer())
        updated = await LiquidationService(db, clock).update(
            liquidation.id, UpdateLiquidationRequest(amount=Decimal("60000"))
        )
        assert updated.total_amount is None

    async def test_unknown(self, db, clock) -> None:
        assert await LiquidationService(db, clock).update(999, UpdateLiquidationRequest(tax_type="x")) is None


class TestMarkPaid:
    async def test_idempotent(self, db, clock, make_customer, make_liquidation) -> None:
        liquidation = await make_liquidation(await make_customer())
        service = LiquidationService(db, clock)
        first = await service.mark_paid(liquidation.id)
        second = await service.mark_paid(liquidation.id)
        assert first.status == LiquidationStatus.PAID.value
        assert second.status == LiquidationStatus.PAID.value

    async def test_unknown(self, db, clock) -> None:
        assert await LiquidationService(db, clock).mark_paid(999) is None


class TestPenalty:
    async def test_five_days_overdue(self, db, clock, make_customer, make_liquidation) -> None:
        liquidation = await make_liquidation(
            await make_customer(),
            issue_date=TODAY - timedelta(days=20),
            due_date=TODAY - timedelta(days=5),
            status=LiquidationStatus.OVERDUE.value,
        )
        result = await LiquidationService(db, clock).calculate_penalty(liquidation.id, Decimal("0.01"))
        assert result["penalty_amount"] == Decimal("2500.00")
        assert result["overdue_days"] == 5
        assert result["total_amount"] == Decimal("52500.00")

    async def test_unknown(self, db, clock) -> None:
        assert await LiquidationService(db, clock).calculate_penalty(999, Decimal("0.01")) is None


class TestQueries:
    async def test_search_by_status_and_customer(self, db, clock, make_customer, make_liquidation) -> None:
        first = await make_customer()
        second = await make_customer()
        await make_liquidation(first)
        await make_liquidation(first, status=LiquidationStatus.PAID.value)
        await make_liquidation(second)
        service = LiquidationService(db, clock)

        items, total = await service.search(customer_id=first.id, status=LiquidationStatus.PENDING)
        assert total == 1
        assert items[0].customer_id == first.id

    async def test_search_by_term_matches_customer_name(self, db, clock, make_customer, make_liquidation) -> None:
        await make_liquidation(await make_customer(last_name="TRAORE"))
        await make_liquidation(await make_customer(last_name="BAMBA"), tax_type="Business licence")
        items, total = await LiquidationService(db, clock).search_by_term("traore")
        assert total == 1
        assert items[0].customer.last_name == "TRAORE"

    async def test_find_by_customer(self, db, clock, make_customer, make_liquidation) -> None:
        customer = await make_customer()
        await make_liquidation(customer)
        await make_liquidation(customer)
        assert len(await LiquidationService(db, clock).find_by_customer(customer.id)) == 2


class TestRefreshOverdue:
    async def test_flips_only_pending_past_due(self, db, clock, make_customer, make_liquidation) -> None:
        customer = await make_customer()
        late = await make_liquidation(customer, due_date=TODAY - timedelta(days=1))
        await make_liquidation(customer, due_date=TODAY)
        await make_liquidation(customer, due_date=TODAY - timedelta(days=1), status=LiquidationStatus.PAID.value)
        service = LiquidationService(db, clock)

        assert await service.refresh_overdue_statuses() == 1
        assert await service.refresh_overdue_statuses() == 0
        await db.refresh(late)
        assert late.status == LiquidationStatus.OVERDUE.value


class TestCalculateTotal:
    async def test_base_when_penalty_missing(self, make_customer, make_liquidation) -> None:
        liquidation = await make_liquidation(await make_customer(), penalty_amount=None)
        assert calculate_total(liquidation) == Decimal("50000.00")

    async def test_base_when_penalty_zero(self, make_customer, make_liquidation) -> None:
        liquidation = await make_liquidation(await make_customer(), penalty_amount=Decimal("0"))
        assert calculate_total(liquidation) == Decimal("50000.00")

    async def test_base_plus_positive_penalty(self, make_customer, make_liquidation) -> None:
        liquidation = await make_liquidation(await make_customer(), penalty_amount=Decimal("2500.00"))
        assert calculate_total(liquidation) == Decimal("52500.00")
