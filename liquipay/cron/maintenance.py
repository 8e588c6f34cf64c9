"""
Cron job: keep liquidation state consistent with the calendar.
Flips PENDING liquidations past their due date to OVERDUE and, when QR_RETENTION_DAYS is set,
clears QR data generated before the retention window.
"""
import logging
from datetime import timedelta

from liquipay.api.v1.liquidations.service import LiquidationService
from liquipay.api.v1.qr_data.service import QRDataService
from liquipay.core.clock import Clock, system_clock
from liquipay.core.config import settings
from liquipay.core.database import get_async_session_maker_instance

logger = logging.getLogger(__name__)


async def run_maintenance(clock: Clock = system_clock, session_maker=None) -> dict:
    """One maintenance pass. Returns the number of rows touched per task."""
    logger.info("Cron: maintenance started")
    session_maker = session_maker or get_async_session_maker_instance()
    summary = {"overdue": 0, "qr_cleared": 0}
    async with session_maker() as session:
        summary["overdue"] = await LiquidationService(session, clock).refresh_overdue_statuses()

        retention_days = settings.QR_RETENTION_DAYS
        if retention_days > 0:
            cutoff = clock.now() - timedelta(days=retention_days)
            summary["qr_cleared"] = await QRDataService(session, clock).clear_qr_data_older_than(cutoff)

    logger.info(
        "Cron: maintenance finished (overdue=%s, qr_cleared=%s)", summary["overdue"], summary["qr_cleared"]
    )
    return summary
