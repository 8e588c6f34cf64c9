"""Tests for the EMV payment codec."""

from __future__ import annotations

import base64
from decimal import Decimal

import pytest

from liquipay.core.config import QrSettings
from liquipay.core.exceptions import PaymentCodecError
from liquipay.core.payment_codec import EmvPaymentCodec, MerchantInfo, PaymentData, crc16
from liquipay.models.enums import QrType

SETTINGS = QrSettings()


def _data(**overrides) -> PaymentData:
    data = dict(
        merchant=MerchantInfo(
            name="Awa KOUASSI", city="Bouake", country_code="CI", category_code="0000", alias="IFU001"
        ),
        amount=Decimal("50000.00"),
        qr_type=QrType.STATIC,
    )
    data.update(overrides)
    return PaymentData(**data)


@pytest.fixture
def codec():
    return EmvPaymentCodec(SETTINGS, box_size=2, border=1)


class TestCrc:
    def test_known_vector(self) -> None:
        # CRC-16/CCITT-FALSE check value
        assert crc16("123456789") == "29B1"


class TestEncode:
    def test_static_layout(self, codec) -> None:
        payload = codec.encode_static(_data())
        assert payload.startswith("000201010211")
        assert "5303952" in payload
        assert "540850000.00" in payload
        assert "5802CI" in payload
        assert payload[-8:-4] == "6304"
        assert payload[-4:] == crc16(payload[:-4])

    def test_dynamic_requires_transaction_id(self, codec) -> None:
        with pytest.raises(PaymentCodecError):
            codec.encode_dynamic(_data(qr_type=QrType.DYNAMIC))

    def test_dynamic_marks_initiation(self, codec) -> None:
        payload = codec.encode_dynamic(_data(qr_type=QrType.DYNAMIC, transaction_id="REF-1"))
        assert payload.startswith("000201010212")

    def test_rejects_non_positive_amount(self, codec) -> None:
        with pytest.raises(PaymentCodecError):
            codec.encode_static(_data(amount=Decimal("0")))

    def test_long_name_is_truncated(self, codec) -> None:
        merchant = MerchantInfo(name="X" * 40, city="Abidjan", country_code="CI", category_code="0000", alias="A")
        decoded = codec.decode(codec.encode_static(_data(merchant=merchant)))
        assert decoded.merchant.name == "X" * 25


class TestDecode:
    def test_inverts_encode(self, codec) -> None:
        original = _data(qr_type=QrType.PENALTY, transaction_id="PENALTY-7-1")
        decoded = codec.decode(codec.encode_dynamic(original))
        assert decoded.merchant == original.merchant
        assert decoded.amount == original.amount
        assert decoded.qr_type == QrType.PENALTY
        assert decoded.transaction_id == "PENALTY-7-1"

    def test_crc_mismatch(self, codec) -> None:
        payload = codec.encode_static(_data())
        tampered = payload.replace("50000.00", "10000.00")
        with pytest.raises(PaymentCodecError):
            codec.decode(tampered)

    def test_too_short(self, codec) -> None:
        with pytest.raises(PaymentCodecError):
            codec.decode("0002")


class TestRenderImage:
    def test_png(self, codec) -> None:
        image = codec.render_image(_data())
        assert base64.b64decode(image).startswith(b"\x89PNG")
