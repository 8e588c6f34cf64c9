"""Shared fixtures: in-memory database, fixed clock, fake payment codec and API client."""

from __future__ import annotations

import base64
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from liquipay.core.clock import FixedClock
from liquipay.core.config import QrSettings
from liquipay.core.database import Base
from liquipay.core.deps import get_clock, get_db, get_payment_codec, get_qr_settings
from liquipay.core.exceptions import PaymentCodecError
from liquipay.core.payment_codec import MerchantInfo, PaymentData
from liquipay.models.customer import Customer
from liquipay.models.enums import LiquidationStatus, QrType
from liquipay.models.liquidation import Liquidation

# Wednesday
NOW = datetime(2026, 3, 18, 10, 30, 0)
TODAY = NOW.date()


# ── Fake codec ───────────────────────────────────────────────────────


class FakePaymentCodec:
    """Deterministic codec: payload is a readable pipe-joined string, image is base64 of the payload."""

    def __init__(self):
        self.calls: list[str] = []
        self.fail_on: set[str] = set()

    def _check(self, method: str) -> None:
        self.calls.append(method)
        if method in self.fail_on:
            raise RuntimeError(f"{method} unavailable")

    @staticmethod
    def _payload(kind: str, data: PaymentData) -> str:
        return "|".join(
            [kind, data.merchant.name, data.merchant.alias, str(data.amount), data.transaction_id or ""]
        )

    def encode_static(self, data: PaymentData) -> str:
        self._check("encode_static")
        return self._payload("STATIC", data)

    def encode_dynamic(self, data: PaymentData) -> str:
        self._check("encode_dynamic")
        if not data.transaction_id:
            raise PaymentCodecError("Dynamic payloads require a transaction id")
        return self._payload(QrType(data.qr_type).value, data)

    def render_image(self, data: PaymentData) -> str:
        self._check("render_image")
        return base64.b64encode(self._payload("IMG", data).encode()).decode()

    def decode(self, payload: str) -> PaymentData:
        self._check("decode")
        try:
            kind, name, alias, amount, transaction_id = payload.split("|")
        except ValueError:
            raise PaymentCodecError("Unreadable payload")
        return PaymentData(
            merchant=MerchantInfo(name=name, city="", country_code="", category_code="", alias=alias),
            amount=Decimal(amount),
            qr_type=QrType(kind),
            transaction_id=transaction_id or None,
        )


# ── Database ─────────────────────────────────────────────────────────


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


# ── Collaborators ────────────────────────────────────────────────────


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def qr_settings():
    return QrSettings()


@pytest.fixture
def codec():
    return FakePaymentCodec()


# ── Factories ────────────────────────────────────────────────────────


@pytest.fixture
def make_customer(db):
    counter = {"n": 0}

    async def _make(**overrides) -> Customer:
        counter["n"] += 1
        n = counter["n"]
        data = {
            "last_name": "KOUASSI",
            "first_name": "Awa",
            "address": "Rue des Jardins, Bouake",
            "ifu": f"IFU{n:03d}",
            "phone": f"+2250700000{n:03d}",
            "email": f"client{n}@example.com",
        }
        data.update(overrides)
        customer = Customer(**data)
        db.add(customer)
        await db.commit()
        return customer

    return _make


@pytest.fixture
def make_liquidation(db):
    async def _make(customer: Customer, **overrides) -> Liquidation:
        data = {
            "customer_id": customer.id,
            "customer": customer,
            "tax_type": "Property tax",
            "amount": Decimal("50000.00"),
            "issue_date": TODAY - timedelta(days=10),
            "due_date": TODAY + timedelta(days=30),
            "status": LiquidationStatus.PENDING.value,
        }
        data.update(overrides)
        liquidation = Liquidation(**data)
        db.add(liquidation)
        await db.commit()
        return liquidation

    return _make


# ── API ──────────────────────────────────────────────────────────────


@pytest.fixture
async def client(session_maker, clock, codec, qr_settings):
    from liquipay.main import app

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_payment_codec] = lambda: codec
    app.dependency_overrides[get_qr_settings] = lambda: qr_settings
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
