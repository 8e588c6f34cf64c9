"""Tests for the maintenance cron job."""

from __future__ import annotations

from datetime import datetime, timedelta

from liquipay.core.config import settings
from liquipay.cron.maintenance import run_maintenance
from liquipay.models.enums import LiquidationStatus
from tests.conftest import TODAY


class TestRunMaintenance:
    async def test_refreshes_overdue(self, db, clock, session_maker, make_customer, make_liquidation, monkeypatch) -> None:
        monkeypatch.setattr(settings, "QR_RETENTION_DAYS", 0)
        liquidation = await make_liquidation(await make_customer(), due_date=TODAY - timedelta(days=3))

        summary = await run_maintenance(clock=clock, session_maker=session_maker)

        assert summary == {"overdue": 1, "qr_cleared": 0}
        await db.refresh(liquidation)
        assert liquidation.status == LiquidationStatus.OVERDUE.value

    async def test_purges_old_qr_data(self, db, clock, session_maker, make_customer, make_liquidation, monkeypatch) -> None:
        monkeypatch.setattr(settings, "QR_RETENTION_DAYS", 30)
        liquidation = await make_liquidation(
            await make_customer(),
            qr_code_data="STATIC|payload",
            qr_type="STATIC",
            transaction_id="T-OLD",
            qr_generated_at=datetime(2026, 1, 1, 12, 0),
        )

        summary = await run_maintenance(clock=clock, session_maker=session_maker)

        assert summary["qr_cleared"] == 1
        await db.refresh(liquidation)
        assert liquidation.qr_code_data is None
