"""
QR artifact generation for liquidations.

Each request runs Validate -> MapPayload -> Encode -> StampAndPersist. Any failure before the
stamp leaves the liquidation untouched; the stamp itself is a single commit (rolled back on error).
Results are returned as outcome dicts (see liquipay.core.outcome), never raised.
"""
from decimal import Decimal
from typing import Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.api.v1.liquidations.service import calculate_total
from liquipay.core.clock import Clock, system_clock
from liquipay.core.config import QrSettings
from liquipay.core.exceptions import (
    DomainError,
    DomainValidationError,
    PaymentCodecError,
    ReasonCode,
    UniquenessConflictError,
)
from liquipay.core.outcome import failure, from_error, success
from liquipay.core.payment_codec import PaymentCodec, PaymentData
from liquipay.core.qr_mapper import build_payment_data, generate_transaction_reference
from liquipay.models.enums import QrType
from liquipay.models.liquidation import Liquidation

logger = logging.getLogger(__name__)


def eligibility_errors(liquidation: Liquidation) -> list[str]:
    """Reasons a liquidation cannot receive a QR code (empty when eligible)."""
    errors = []
    if liquidation.id is None:
        errors.append("Liquidation has no id")
    if liquidation.customer is None:
        errors.append("Liquidation has no customer")
    if liquidation.amount is None or liquidation.amount <= 0:
        errors.append("Liquidation amount must be positive")
    if not liquidation.tax_type or not liquidation.tax_type.strip():
        errors.append("Liquidation tax type is missing")
    if liquidation.is_paid():
        errors.append("Liquidation is already paid")
    return errors


class LiquidationQRService:
    def __init__(self, db: AsyncSession, codec: PaymentCodec, qr_settings: QrSettings, clock: Clock = system_clock):
        self.db = db
        self.codec = codec
        self.qr_settings = qr_settings
        self.clock = clock

    def _encode(self, payment_data: PaymentData, include_image: bool) -> tuple[str, Optional[str]]:
        try:
            if payment_data.qr_type == QrType.STATIC:
                payload = self.codec.encode_static(payment_data)
            else:
                payload = self.codec.encode_dynamic(payment_data)
            image = self.codec.render_image(payment_data) if include_image else None
        except PaymentCodecError:
            raise
        except Exception as e:
            raise PaymentCodecError(f"QR encoding failed: {e}") from e
        if not payload:
            raise PaymentCodecError("QR encoding returned an empty payload")
        return payload, image

    async def _ensure_transaction_id_free(self, transaction_id: str, liquidation_id: int) -> None:
        result = await self.db.execute(
            select(Liquidation.id).where(
                Liquidation.transaction_id == transaction_id,
                Liquidation.id != liquidation_id,
            )
        )
        if result.first() is not None:
            raise UniquenessConflictError(f"Transaction id {transaction_id} is already used; request a new QR code")

    async def generate(
        self,
        liquidation_id: int,
        variant: QrType | str,
        *,
        transaction_reference: Optional[str] = None,
        beneficiary_phone: Optional[str] = None,
        penalty_amount: Optional[Decimal] = None,
        include_image: bool = True,
    ) -> dict:
        try:
            variant = QrType(variant)
        except ValueError:
            return failure(ReasonCode.validation_error, f"Unsupported QR type: {variant}")

        liquidation = await self.db.get(Liquidation, liquidation_id)
        if not liquidation:
            return failure(ReasonCode.not_found, f"Liquidation {liquidation_id} not found")

        logger.info("Generating %s QR code for liquidation %s", variant.value, liquidation_id)
        try:
            # Validate
            errors = eligibility_errors(liquidation)
            if errors:
                raise DomainValidationError("Liquidation is not eligible for a QR code: " + "; ".join(errors))

            # MapPayload
            now = self.clock.now()
            payment_data = build_payment_data(
                liquidation,
                liquidation.customer,
                variant,
                self.qr_settings,
                transaction_reference=transaction_reference,
                beneficiary_phone=beneficiary_phone,
                penalty_amount=penalty_amount,
                now=now,
            )

            # Encode
            payload, image = self._encode(payment_data, include_image)

            transaction_id = payment_data.transaction_id or generate_transaction_reference(liquidation.id, now)
            await self._ensure_transaction_id_free(transaction_id, liquidation.id)
        except DomainError as e:
            logger.warning("QR generation rejected for liquidation %s: %s", liquidation_id, e.message)
            return from_error(e)

        # StampAndPersist
        liquidation.qr_code_data = payload
        liquidation.qr_image_base64 = image
        liquidation.qr_type = variant.value
        liquidation.merchant_channel = self.qr_settings.payment_system_identifier
        liquidation.transaction_id = transaction_id
        liquidation.qr_generated_at = now
        liquidation.penalty_amount = payment_data.penalty_amount if variant == QrType.PENALTY else None
        liquidation.total_amount = calculate_total(liquidation)
        try:
            self.db.add(liquidation)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning("Transaction id collision while stamping liquidation %s", liquidation_id)
            return failure(ReasonCode.conflict, f"Transaction id {transaction_id} is already used; request a new QR code")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Failed to persist QR code for liquidation %s: %s", liquidation_id, e, exc_info=True)
            return failure(ReasonCode.persistence_failure, "QR code could not be saved; request generation again")

        logger.info(
            "%s QR code saved for liquidation %s (transaction_id=%s)", variant.value, liquidation_id, transaction_id
        )
        return success(
            f"{variant.value} QR code generated for liquidation {liquidation_id}",
            self._result_data(liquidation, payment_data, beneficiary_phone),
        )

    def _result_data(self, liquidation: Liquidation, payment_data: PaymentData, beneficiary_phone: Optional[str]) -> dict:
        customer = liquidation.customer
        data = {
            "qr_code": liquidation.qr_code_data,
            "qr_image_base64": liquidation.qr_image_base64,
            "liquidation_id": liquidation.id,
            "customer_name": f"{customer.first_name} {customer.last_name}",
            "amount": liquidation.amount,
            "currency": self.qr_settings.currency,
            "tax_type": liquidation.tax_type,
            "due_date": liquidation.due_date,
            "type": liquidation.qr_type,
            "transaction_id": liquidation.transaction_id,
            "merchant_channel": liquidation.merchant_channel,
            "generated_at": liquidation.qr_generated_at,
        }
        variant = QrType(liquidation.qr_type)
        if variant == QrType.DYNAMIC:
            data["transaction_reference"] = payment_data.transaction_id
        elif variant == QrType.P2P:
            data["beneficiary_phone"] = beneficiary_phone.strip()
            data["p2p_reference"] = payment_data.transaction_id
        elif variant == QrType.PENALTY:
            data["base_amount"] = payment_data.base_amount
            data["penalty_amount"] = liquidation.penalty_amount
            data["total_amount"] = liquidation.total_amount
            data["penalty_reference"] = payment_data.transaction_id
        return data

    async def generate_static(self, liquidation_id: int, **kwargs) -> dict:
        return await self.generate(liquidation_id, QrType.STATIC, **kwargs)

    async def generate_dynamic(self, liquidation_id: int, transaction_reference: Optional[str] = None, **kwargs) -> dict:
        return await self.generate(liquidation_id, QrType.DYNAMIC, transaction_reference=transaction_reference, **kwargs)

    async def generate_p2p(self, liquidation_id: int, beneficiary_phone: Optional[str], **kwargs) -> dict:
        return await self.generate(liquidation_id, QrType.P2P, beneficiary_phone=beneficiary_phone, **kwargs)

    async def generate_penalty(self, liquidation_id: int, penalty_amount: Optional[Decimal], **kwargs) -> dict:
        return await self.generate(liquidation_id, QrType.PENALTY, penalty_amount=penalty_amount, **kwargs)

    async def validate_for_qr(self, liquidation_id: int) -> dict:
        liquidation = await self.db.get(Liquidation, liquidation_id)
        if not liquidation:
            return failure(ReasonCode.not_found, f"Liquidation {liquidation_id} not found")
        errors = eligibility_errors(liquidation)
        message = "Liquidation is eligible for QR generation" if not errors else "Liquidation is not eligible for QR generation"
        return success(message, {"liquidation_id": liquidation_id, "valid": not errors, "errors": errors})

    async def preview_transaction_reference(self, liquidation_id: int) -> dict:
        liquidation = await self.db.get(Liquidation, liquidation_id)
        if not liquidation:
            return failure(ReasonCode.not_found, f"Liquidation {liquidation_id} not found")
        reference = generate_transaction_reference(liquidation.id, self.clock.now())
        return success("Transaction reference generated", {"liquidation_id": liquidation_id, "transaction_reference": reference})

    async def get_qr_image(self, liquidation_id: int) -> dict:
        liquidation = await self.db.get(Liquidation, liquidation_id)
        if not liquidation:
            return failure(ReasonCode.not_found, f"Liquidation {liquidation_id} not found")
        if not liquidation.has_qr_code():
            return failure(ReasonCode.not_found, f"No QR code generated for liquidation {liquidation_id}")
        return success(
            "QR image retrieved",
            {
                "liquidation_id": liquidation.id,
                "qr_image_base64": liquidation.qr_image_base64,
                "qr_type": liquidation.qr_type,
                "transaction_id": liquidation.transaction_id,
            },
        )

    def parse_payload(self, payload: str) -> dict:
        try:
            data = self.codec.decode(payload)
        except PaymentCodecError as e:
            logger.warning("QR payload could not be parsed: %s", e.message)
            return failure(ReasonCode.decode_error, f"QR payload could not be parsed: {e.message}")
        except Exception as e:
            logger.warning("QR payload could not be parsed: %s", e)
            return failure(ReasonCode.codec_failure, f"QR payload could not be parsed: {e}")
        merchant = data.merchant
        return success(
            "QR payload parsed",
            {
                "merchant_name": merchant.name,
                "merchant_city": merchant.city,
                "country_code": merchant.country_code,
                "category_code": merchant.category_code,
                "alias": merchant.alias,
                "amount": data.amount,
                "type": QrType(data.qr_type).value,
                "transaction_id": data.transaction_id,
            },
        )
