from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.core.clock import Clock, system_clock
from liquipay.core.config import QrSettings, qr_settings, settings
from liquipay.core.database import async_session_maker
from liquipay.core.payment_codec import EmvPaymentCodec, PaymentCodec


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


def get_clock() -> Clock:
    return system_clock


def get_qr_settings() -> QrSettings:
    return qr_settings


@lru_cache
def get_payment_codec() -> PaymentCodec:
    """Process-wide codec built from the startup QR settings."""
    return EmvPaymentCodec(qr_settings, box_size=settings.QR_IMAGE_BOX_SIZE, border=settings.QR_IMAGE_BORDER)
