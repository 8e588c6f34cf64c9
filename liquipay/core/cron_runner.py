"""
Background maintenance loop: refresh overdue statuses and expire old QR data.
Started on app startup as an asyncio task; cancelled on shutdown.
"""
import asyncio
import logging

from liquipay.core.config import settings
from liquipay.cron.maintenance import run_maintenance

logger = logging.getLogger(__name__)

FIRST_RUN_DELAY_SECONDS = 10
MIN_INTERVAL_SECONDS = 60.0


async def run_maintenance_cron_loop() -> None:
    interval_seconds = max(MIN_INTERVAL_SECONDS, settings.MAINTENANCE_INTERVAL_HOURS * 3600)
    logger.info("Maintenance cron started (every %.0f s)", interval_seconds)
    await asyncio.sleep(FIRST_RUN_DELAY_SECONDS)
    while True:
        try:
            await run_maintenance()
        except asyncio.CancelledError:
            logger.info("Maintenance cron cancelled")
            raise
        except Exception:
            logger.exception("Maintenance run failed; retrying next interval")
        await asyncio.sleep(interval_seconds)
