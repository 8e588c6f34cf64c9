"""
Scan-to-link workflow: a merchant QR plus a link that carries the client context,
and resolution of that link back into client data and a payment descriptor.
"""
import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from liquipay.core.clock import Clock, system_clock
from liquipay.core.config import QrSettings
from liquipay.core.exceptions import DomainError, DomainValidationError, PaymentCodecError, ReasonCode
from liquipay.core.link_codec import build_link, decode_link_token
from liquipay.core.outcome import failure, from_error, success
from liquipay.core.payment_codec import MerchantInfo, PaymentCodec, PaymentData
from liquipay.core.qr_mapper import extract_city_from_address
from liquipay.core.utils import epoch_millis
from liquipay.models.customer import Customer
from liquipay.models.enums import QrType
from liquipay.models.liquidation import Liquidation

logger = logging.getLogger(__name__)

WORKFLOW_QR_TYPES = (QrType.STATIC, QrType.DYNAMIC)


class WorkflowService:
    def __init__(self, db: AsyncSession, codec: PaymentCodec, qr_settings: QrSettings, clock: Clock = system_clock):
        self.db = db
        self.codec = codec
        self.qr_settings = qr_settings
        self.clock = clock

    def _validate_amount(self, amount: Optional[Decimal]) -> None:
        if amount is None:
            raise DomainValidationError("Amount is required")
        if amount < self.qr_settings.min_amount:
            raise DomainValidationError(f"Amount is too low (minimum: {self.qr_settings.min_amount})")
        if amount > self.qr_settings.max_amount:
            raise DomainValidationError(f"Amount is too high (maximum: {self.qr_settings.max_amount})")

    def _merchant(self, merchant_name: Optional[str]) -> MerchantInfo:
        name = merchant_name.strip() if merchant_name and merchant_name.strip() else self.qr_settings.merchant_name
        return MerchantInfo(
            name=name,
            city=self.qr_settings.merchant_city,
            country_code=self.qr_settings.country_code,
            category_code=self.qr_settings.merchant_category_code,
            alias=self.qr_settings.merchant_id,
        )

    def generate_workflow(
        self,
        amount: Decimal,
        client_info: str,
        qr_type: QrType | str = QrType.STATIC,
        merchant_name: Optional[str] = None,
        transaction_reference: Optional[str] = None,
    ) -> dict:
        """Encode a merchant QR for `amount` and the link a scanner follows to fetch the client context."""
        logger.info("Generating workflow QR for amount %s", amount)
        try:
            self._validate_amount(amount)
            try:
                variant = qr_type if isinstance(qr_type, QrType) else QrType(str(qr_type).strip().upper())
            except ValueError:
                variant = None
            if variant not in WORKFLOW_QR_TYPES:
                raise DomainValidationError(f"Unsupported QR type: {qr_type}")

            now = self.clock.now()
            merchant = self._merchant(merchant_name)
            if variant == QrType.DYNAMIC:
                reference = transaction_reference or f"TXN-{epoch_millis(now)}"
                payment_data = PaymentData(merchant=merchant, amount=amount, qr_type=variant, transaction_id=reference)
            else:
                reference = transaction_reference
                payment_data = PaymentData(merchant=merchant, amount=amount, qr_type=variant)

            try:
                if variant == QrType.DYNAMIC:
                    payload = self.codec.encode_dynamic(payment_data)
                else:
                    payload = self.codec.encode_static(payment_data)
                image = self.codec.render_image(payment_data)
            except PaymentCodecError:
                raise
            except Exception as e:
                raise PaymentCodecError(f"QR encoding failed: {e}") from e

            link = build_link(client_info, amount, now)
        except DomainError as e:
            logger.warning("Workflow generation rejected: %s", e.message)
            return from_error(e)

        logger.info("Workflow QR generated for %s, link: %s", merchant.name, link)
        return success(
            "QR code generated and workflow link prepared",
            {
                "qr_code": {
                    "qr_data": payload,
                    "qr_image": image,
                    "qr_type": variant.value,
                    "amount": amount,
                    "currency": self.qr_settings.currency,
                    "merchant_name": merchant.name,
                    "merchant_city": merchant.city,
                    "country_code": merchant.country_code,
                    "transaction_reference": reference,
                    "generated_at": now,
                },
                "generated_link": link,
            },
        )

    async def resolve_link(self, token: str) -> dict:
        """Rebuild client data and a payment descriptor from a link token. Read-only."""
        try:
            context = decode_link_token(token)
        except DomainError as e:
            logger.warning("Workflow link rejected: %s", e.message)
            return from_error(e)

        try:
            customer_id = int(context.client_info)
        except ValueError:
            return failure(ReasonCode.not_found, f"Client not found with id: {context.client_info}")
        customer = await self.db.get(Customer, customer_id)
        if not customer:
            return failure(ReasonCode.not_found, f"Client not found with id: {context.client_info}")

        result = await self.db.execute(
            select(Liquidation)
            .where(Liquidation.customer_id == customer.id, Liquidation.amount == context.amount)
            .order_by(Liquidation.id)
        )
        liquidation = result.scalars().first()

        transaction = {
            "transaction_id": str(uuid.uuid4()),
            "amount": context.amount,
            "currency": self.qr_settings.currency,
            "status": "PENDING",
            "type": "UEMOA_QR_PAYMENT",
            "description": "Payment via UEMOA QR code",
            "timestamp": context.timestamp,
            "payment_reference": f"UEMOA-{epoch_millis(self.clock.now())}",
            "liquidation_id": liquidation.id if liquidation else None,
            "tax_type": liquidation.tax_type if liquidation else None,
        }
        client = {
            "client_id": context.client_info,
            "name": customer.last_name,
            "first_name": customer.first_name,
            "email": customer.email,
            "phone": customer.phone,
            "address": customer.address,
            "city": extract_city_from_address(customer.address, self.qr_settings.merchant_city),
            "country": self.qr_settings.country_code,
        }
        logger.info("Client info resolved for customer %s", customer.id)
        return success("Client information retrieved", {"client": client, "transaction": transaction})
