"""Tests for LiquidationQRService: validate, map, encode, stamp."""

from __future__ import annotations

from decimal import Decimal

import pytest

from liquipay.api.v1.liquidation_qr.service import LiquidationQRService
from liquipay.core.exceptions import ReasonCode
from liquipay.models.enums import LiquidationStatus, QrType
from tests.conftest import NOW


@pytest.fixture
def service(db, codec, qr_settings, clock):
    return LiquidationQRService(db, codec, qr_settings, clock)


@pytest.fixture
async def liquidation(make_customer, make_liquidation):
    customer = await make_customer(ifu="IFU001", email="a@x.com")
    return await make_liquidation(customer)


class TestStatic:
    async def test_stamps_liquidation(self, service, liquidation, qr_settings) -> None:
        outcome = await service.generate_static(liquidation.id)

        assert outcome["success"] is True
        assert liquidation.qr_type == "STATIC"
        assert liquidation.transaction_id
        assert liquidation.qr_code_data.startswith("STATIC|")
        assert liquidation.qr_image_base64
        assert liquidation.merchant_channel == qr_settings.payment_system_identifier
        assert liquidation.qr_generated_at == NOW
        assert outcome["data"]["transaction_id"] == liquidation.transaction_id
        assert outcome["data"]["customer_name"] == "Awa KOUASSI"

    async def test_without_image(self, service, liquidation, codec) -> None:
        outcome = await service.generate_static(liquidation.id, include_image=False)
        assert outcome["success"] is True
        assert liquidation.qr_image_base64 is None
        assert "render_image" not in codec.calls


class TestValidation:
    async def test_unknown_liquidation(self, service, codec) -> None:
        outcome = await service.generate_static(999)
        assert outcome["success"] is False
        assert outcome["reason"] == ReasonCode.not_found
        assert codec.calls == []

    async def test_paid_liquidation_untouched(self, service, make_customer, make_liquidation, codec) -> None:
        liquidation = await make_liquidation(await make_customer(), status=LiquidationStatus.PAID.value)

        outcome = await service.generate_dynamic(liquidation.id)

        assert outcome["success"] is False
        assert outcome["reason"] == ReasonCode.validation_error
        assert liquidation.qr_code_data is None
        assert liquidation.transaction_id is None
        assert codec.calls == []

    async def test_p2p_requires_phone(self, service, liquidation) -> None:
        outcome = await service.generate_p2p(liquidation.id, "  ")
        assert outcome["reason"] == ReasonCode.validation_error
        assert liquidation.qr_code_data is None

    async def test_penalty_requires_amount(self, service, liquidation) -> None:
        outcome = await service.generate_penalty(liquidation.id, None)
        assert outcome["reason"] == ReasonCode.validation_error

    async def test_unknown_variant(self, service, liquidation) -> None:
        outcome = await service.generate(liquidation.id, "HOLOGRAM")
        assert outcome["reason"] == ReasonCode.validation_error

    async def test_validate_for_qr_report(self, service, make_customer, make_liquidation) -> None:
        paid = await make_liquidation(await make_customer(), status=LiquidationStatus.PAID.value)
        outcome = await service.validate_for_qr(paid.id)
        assert outcome["data"]["valid"] is False
        assert "Liquidation is already paid" in outcome["data"]["errors"]


class TestVariants:
    async def test_dynamic_with_reference(self, service, liquidation) -> None:
        outcome = await service.generate_dynamic(liquidation.id, transaction_reference="REF-123")
        assert outcome["success"] is True
        assert liquidation.transaction_id == "REF-123"
        assert outcome["data"]["transaction_reference"] == "REF-123"

    async def test_p2p(self, service, liquidation) -> None:
        outcome = await service.generate_p2p(liquidation.id, "+2250102030405")
        assert liquidation.qr_type == "P2P"
        assert liquidation.transaction_id == f"P2P-{liquidation.id}-+2250102030405"
        assert outcome["data"]["beneficiary_phone"] == "+2250102030405"

    async def test_penalty_total_is_base_plus_penalty(self, service, liquidation) -> None:
        outcome = await service.generate_penalty(liquidation.id, Decimal("2500"))

        assert outcome["success"] is True
        assert liquidation.qr_type == "PENALTY"
        assert liquidation.penalty_amount == Decimal("2500.00")
        assert liquidation.total_amount == Decimal("52500.00")
        assert outcome["data"]["base_amount"] == Decimal("50000.00")

    async def test_regenerating_replaces_penalty_state(self, service, liquidation) -> None:
        await service.generate_penalty(liquidation.id, Decimal("2500"))
        await service.generate_static(liquidation.id)
        assert liquidation.qr_type == "STATIC"
        assert liquidation.penalty_amount is None
        assert liquidation.total_amount == liquidation.amount


class TestFailures:
    async def test_codec_failure_leaves_row_unchanged(self, service, liquidation, codec) -> None:
        codec.fail_on.add("encode_static")

        outcome = await service.generate_static(liquidation.id)

        assert outcome["success"] is False
        assert outcome["reason"] == ReasonCode.codec_failure
        assert liquidation.qr_code_data is None
        assert liquidation.qr_type is None
        assert liquidation.transaction_id is None

    async def test_image_failure_is_codec_failure(self, service, liquidation, codec) -> None:
        codec.fail_on.add("render_image")
        outcome = await service.generate_static(liquidation.id)
        assert outcome["reason"] == ReasonCode.codec_failure
        assert liquidation.qr_code_data is None

    async def test_duplicate_transaction_id_conflicts(self, service, make_customer, make_liquidation) -> None:
        customer = await make_customer()
        first = await make_liquidation(customer)
        second = await make_liquidation(customer)
        await service.generate_dynamic(first.id, transaction_reference="REF-1")

        outcome = await service.generate_dynamic(second.id, transaction_reference="REF-1")

        assert outcome["success"] is False
        assert outcome["reason"] == ReasonCode.conflict
        assert second.transaction_id is None

    async def test_same_liquidation_may_reuse_its_reference(self, service, liquidation) -> None:
        await service.generate_dynamic(liquidation.id, transaction_reference="REF-1")
        outcome = await service.generate_dynamic(liquidation.id, transaction_reference="REF-1")
        assert outcome["success"] is True


class TestReads:
    async def test_qr_image(self, service, liquidation) -> None:
        missing = await service.get_qr_image(liquidation.id)
        assert missing["reason"] == ReasonCode.not_found

        await service.generate_static(liquidation.id)
        outcome = await service.get_qr_image(liquidation.id)
        assert outcome["success"] is True
        assert outcome["data"]["qr_image_base64"] == liquidation.qr_image_base64

    async def test_preview_reference(self, service, liquidation) -> None:
        outcome = await service.preview_transaction_reference(liquidation.id)
        assert outcome["data"]["transaction_reference"].startswith(f"LIQ-{liquidation.id}-20260318103000-")
        assert liquidation.transaction_id is None

    async def test_parse_payload(self, service) -> None:
        outcome = service.parse_payload("DYNAMIC|Awa KOUASSI|IFU001|50000.00|REF-1")
        assert outcome["data"]["alias"] == "IFU001"
        assert outcome["data"]["type"] == "DYNAMIC"

    async def test_parse_garbage(self, service) -> None:
        outcome = service.parse_payload("garbage")
        assert outcome["reason"] == ReasonCode.decode_error
