"""Liquidation + customer -> PaymentData, per QR variant. No I/O."""
import secrets
from datetime import datetime
from decimal import Decimal

from liquipay.core.config import QrSettings
from liquipay.core.exceptions import DomainValidationError
from liquipay.core.payment_codec import MerchantInfo, PaymentData
from liquipay.core.utils import epoch_millis, to_money
from liquipay.models.enums import QrType


def extract_city_from_address(address: str | None, default_city: str) -> str:
    """
    Best-effort city from a free-text address.
    Order: default city if mentioned anywhere (case-insensitive), second comma segment,
    last comma segment, default city.
    """
    if not address or not address.strip():
        return default_city
    if default_city and default_city.lower() in address.lower():
        return default_city
    parts = address.split(",")
    if len(parts) > 1 and parts[1].strip():
        return parts[1].strip()
    if parts and parts[-1].strip():
        return parts[-1].strip()
    return default_city


def map_customer_to_merchant(customer, qr_settings: QrSettings) -> MerchantInfo:
    if customer is None:
        raise DomainValidationError("Customer is required to build merchant info")
    return MerchantInfo(
        name=f"{customer.first_name} {customer.last_name}",
        city=extract_city_from_address(customer.address, qr_settings.merchant_city),
        country_code=qr_settings.country_code,
        category_code=qr_settings.merchant_category_code,
        # The customer's IFU is the merchant alias
        alias=customer.ifu,
    )


def generate_transaction_reference(liquidation_id: int, now: datetime) -> str:
    """LIQ-{id}-{yyyyMMddHHmmss}-{8 random hex chars}."""
    if liquidation_id is None:
        raise DomainValidationError("Liquidation id is required to generate a transaction reference")
    return f"LIQ-{liquidation_id}-{now.strftime('%Y%m%d%H%M%S')}-{secrets.token_hex(4)}"


def p2p_reference(liquidation_id: int, beneficiary_phone: str) -> str:
    return f"P2P-{liquidation_id}-{beneficiary_phone}"


def penalty_reference(liquidation_id: int, now: datetime) -> str:
    return f"PENALTY-{liquidation_id}-{epoch_millis(now)}"


def build_payment_data(
    liquidation,
    customer,
    variant: QrType,
    qr_settings: QrSettings,
    *,
    transaction_reference: str | None = None,
    beneficiary_phone: str | None = None,
    penalty_amount: Decimal | None = None,
    now: datetime | None = None,
) -> PaymentData:
    """Codec input for `variant`. Raises DomainValidationError when a variant-specific input is missing."""
    variant = QrType(variant)
    now = now or datetime.now()
    merchant = map_customer_to_merchant(customer, qr_settings)
    base = to_money(liquidation.amount)

    if variant == QrType.STATIC:
        return PaymentData(
            merchant=merchant,
            amount=base,
            qr_type=variant,
            transaction_id=transaction_reference or None,
        )

    if variant == QrType.DYNAMIC:
        if transaction_reference is not None and not transaction_reference.strip():
            raise DomainValidationError("Transaction reference must not be blank")
        reference = transaction_reference.strip() if transaction_reference else generate_transaction_reference(liquidation.id, now)
        return PaymentData(merchant=merchant, amount=base, qr_type=variant, transaction_id=reference)

    if variant == QrType.P2P:
        if not beneficiary_phone or not beneficiary_phone.strip():
            raise DomainValidationError("Beneficiary phone number is required for P2P QR codes")
        return PaymentData(
            merchant=merchant,
            amount=base,
            qr_type=variant,
            transaction_id=p2p_reference(liquidation.id, beneficiary_phone.strip()),
        )

    # PENALTY
    if penalty_amount is None:
        raise DomainValidationError("Penalty amount is required for PENALTY QR codes")
    penalty = to_money(penalty_amount)
    if penalty < 0:
        raise DomainValidationError("Penalty amount must not be negative")
    return PaymentData(
        merchant=merchant,
        amount=base + penalty,
        qr_type=variant,
        transaction_id=penalty_reference(liquidation.id, now),
        base_amount=base,
        penalty_amount=penalty,
    )
