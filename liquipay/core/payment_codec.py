"""
Payment codec: turns merchant/amount data into a scannable payload string and PNG image, and back.

The QR services only depend on the PaymentCodec protocol. EmvPaymentCodec is the default
implementation (EMVCo merchant-presented TLV with CRC16 trailer, image rendered with qrcode).
"""
import base64
import binascii
import io
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Protocol

import qrcode

from liquipay.core.config import QrSettings
from liquipay.core.exceptions import PaymentCodecError
from liquipay.models.enums import QrType


@dataclass
class MerchantInfo:
    name: str
    city: str
    country_code: str
    category_code: str
    alias: str


@dataclass
class PaymentData:
    merchant: MerchantInfo
    amount: Optional[Decimal]
    qr_type: QrType = QrType.STATIC
    transaction_id: Optional[str] = None
    # Recorded for PENALTY payloads; not written into the payload itself
    base_amount: Optional[Decimal] = field(default=None, compare=False)
    penalty_amount: Optional[Decimal] = field(default=None, compare=False)


class PaymentCodec(Protocol):
    def encode_static(self, data: PaymentData) -> str: ...

    def encode_dynamic(self, data: PaymentData) -> str: ...

    def render_image(self, data: PaymentData) -> str: ...

    def decode(self, payload: str) -> PaymentData: ...


# EMV tags
TAG_FORMAT = "00"
TAG_INITIATION = "01"
TAG_MERCHANT_ACCOUNT = "26"
TAG_MCC = "52"
TAG_CURRENCY = "53"
TAG_AMOUNT = "54"
TAG_COUNTRY = "58"
TAG_NAME = "59"
TAG_CITY = "60"
TAG_ADDITIONAL = "62"
TAG_CRC = "63"

SUB_GUI = "00"
SUB_ALIAS = "01"
SUB_REFERENCE = "05"
SUB_PURPOSE = "08"

INITIATION_STATIC = "11"
INITIATION_DYNAMIC = "12"


def _tlv(tag: str, value: str) -> str:
    if len(value) > 99:
        raise PaymentCodecError(f"Value for tag {tag} is too long ({len(value)} > 99)")
    return f"{tag}{len(value):02d}{value}"


def _parse_tlv(data: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    i = 0
    while i < len(data):
        if i + 4 > len(data):
            raise PaymentCodecError("Truncated TLV header")
        tag = data[i:i + 2]
        try:
            length = int(data[i + 2:i + 4])
        except ValueError:
            raise PaymentCodecError(f"Invalid TLV length for tag {tag}")
        value = data[i + 4:i + 4 + length]
        if len(value) != length:
            raise PaymentCodecError(f"Truncated TLV value for tag {tag}")
        fields[tag] = value
        i += 4 + length
    return fields


def crc16(payload: str) -> str:
    """CRC-16/CCITT-FALSE as 4 uppercase hex digits."""
    return f"{binascii.crc_hqx(payload.encode('utf-8'), 0xFFFF):04X}"


def _format_amount(amount: Decimal) -> str:
    return format(Decimal(amount).quantize(Decimal("0.01")), "f")


class EmvPaymentCodec:
    def __init__(self, qr_settings: QrSettings, box_size: int = 10, border: int = 4):
        self.qr_settings = qr_settings
        self.box_size = box_size
        self.border = border

    def _build(self, data: PaymentData, initiation: str) -> str:
        merchant = data.merchant
        if not merchant or not merchant.name:
            raise PaymentCodecError("Merchant name is required")
        parts = [
            _tlv(TAG_FORMAT, "01"),
            _tlv(TAG_INITIATION, initiation),
            _tlv(
                TAG_MERCHANT_ACCOUNT,
                _tlv(SUB_GUI, self.qr_settings.payment_system_identifier) + _tlv(SUB_ALIAS, merchant.alias or ""),
            ),
            _tlv(TAG_MCC, merchant.category_code),
            _tlv(TAG_CURRENCY, self.qr_settings.currency_numeric),
        ]
        if data.amount is not None:
            if data.amount <= 0:
                raise PaymentCodecError("Amount must be positive")
            parts.append(_tlv(TAG_AMOUNT, _format_amount(data.amount)))
        parts.append(_tlv(TAG_COUNTRY, merchant.country_code))
        parts.append(_tlv(TAG_NAME, merchant.name[:25]))
        parts.append(_tlv(TAG_CITY, (merchant.city or "")[:15]))
        additional = ""
        if data.transaction_id:
            additional += _tlv(SUB_REFERENCE, data.transaction_id)
        if data.qr_type:
            additional += _tlv(SUB_PURPOSE, QrType(data.qr_type).value)
        if additional:
            parts.append(_tlv(TAG_ADDITIONAL, additional))
        body = "".join(parts) + TAG_CRC + "04"
        return body + crc16(body)

    def encode_static(self, data: PaymentData) -> str:
        return self._build(data, INITIATION_STATIC)

    def encode_dynamic(self, data: PaymentData) -> str:
        if not data.transaction_id:
            raise PaymentCodecError("Dynamic payloads require a transaction id")
        return self._build(data, INITIATION_DYNAMIC)

    def render_image(self, data: PaymentData) -> str:
        """Base64 PNG of the payload for `data` (dynamic payload when a transaction id is set)."""
        payload = self.encode_dynamic(data) if data.transaction_id else self.encode_static(data)
        qr = qrcode.QRCode(
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(payload)
        qr.make(fit=True)
        image = qr.make_image()
        buffer = io.BytesIO()
        image.save(buffer)
        return base64.b64encode(buffer.getvalue()).decode("ascii")

    def decode(self, payload: str) -> PaymentData:
        if not payload or len(payload) < 8:
            raise PaymentCodecError("Payload is empty or too short")
        body, checksum = payload[:-4], payload[-4:]
        if not body.endswith(TAG_CRC + "04"):
            raise PaymentCodecError("Missing CRC field")
        if crc16(body).upper() != checksum.upper():
            raise PaymentCodecError("CRC mismatch")
        fields = _parse_tlv(body[:-4])
        account = _parse_tlv(fields.get(TAG_MERCHANT_ACCOUNT, ""))
        additional = _parse_tlv(fields.get(TAG_ADDITIONAL, ""))

        amount = None
        if TAG_AMOUNT in fields:
            try:
                amount = Decimal(fields[TAG_AMOUNT])
            except InvalidOperation:
                raise PaymentCodecError(f"Invalid amount {fields[TAG_AMOUNT]!r}")

        purpose = additional.get(SUB_PURPOSE)
        if purpose in QrType.__members__:
            qr_type = QrType(purpose)
        elif fields.get(TAG_INITIATION) == INITIATION_DYNAMIC:
            qr_type = QrType.DYNAMIC
        else:
            qr_type = QrType.STATIC

        return PaymentData(
            merchant=MerchantInfo(
                name=fields.get(TAG_NAME, ""),
                city=fields.get(TAG_CITY, ""),
                country_code=fields.get(TAG_COUNTRY, ""),
                category_code=fields.get(TAG_MCC, ""),
                alias=account.get(SUB_ALIAS, ""),
            ),
            amount=amount,
            qr_type=qr_type,
            transaction_id=additional.get(SUB_REFERENCE),
        )
