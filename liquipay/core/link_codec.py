"""
Workflow link tokens: base64("{client_info}:{amount}:{iso timestamp}") under a fixed URL path.
Nothing is stored server side; the context is rebuilt from the token at resolution time.
No expiry is enforced here.
"""
import base64
import binascii
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

from liquipay.core.exceptions import LinkDecodeError, LinkEncodeError

DELIMITER = ":"
LINK_PATH_PREFIX = "/api/v1/workflow/client-info/"


@dataclass(frozen=True)
class LinkContext:
    client_info: str
    amount: Decimal
    timestamp: datetime


def encode_link_token(client_info: str, amount, timestamp: datetime) -> str:
    """Encode the link context into an opaque token. client_info may not contain the delimiter."""
    client_info = (client_info or "").strip()
    if not client_info:
        raise LinkEncodeError("client_info is required")
    if DELIMITER in client_info:
        raise LinkEncodeError(f"client_info must not contain '{DELIMITER}'")
    raw = f"{client_info}{DELIMITER}{amount}{DELIMITER}{timestamp.isoformat()}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def build_link(client_info: str, amount, timestamp: datetime) -> str:
    return LINK_PATH_PREFIX + encode_link_token(client_info, amount, timestamp)


def _parse_timestamp(remainder: str) -> datetime:
    # ISO timestamps contain the delimiter themselves; segments after a valid
    # timestamp are ignored, so try the longest prefix first.
    parts = remainder.split(DELIMITER)
    for end in range(len(parts), 0, -1):
        candidate = DELIMITER.join(parts[:end])
        try:
            return datetime.fromisoformat(candidate)
        except ValueError:
            continue
    raise LinkDecodeError(f"Invalid timestamp in link: {remainder!r}")


def decode_link_token(token: str) -> LinkContext:
    """Decode a token (or a full link) back into its context. Raises LinkDecodeError when malformed."""
    if not token or not token.strip():
        raise LinkDecodeError("Empty link token")
    token = token.strip()
    if LINK_PATH_PREFIX in token:
        token = token.split(LINK_PATH_PREFIX, 1)[1]
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        raise LinkDecodeError("Link token is not valid base64")

    parts = decoded.split(DELIMITER, 2)
    if len(parts) < 3:
        raise LinkDecodeError("Invalid client info format: expected clientId:amount:timestamp")
    client_info, raw_amount, remainder = parts
    if not client_info:
        raise LinkDecodeError("Missing client id in link")
    try:
        amount = Decimal(raw_amount)
    except InvalidOperation:
        raise LinkDecodeError(f"Invalid amount in link: {raw_amount!r}")
    if not amount.is_finite():
        raise LinkDecodeError(f"Invalid amount in link: {raw_amount!r}")
    return LinkContext(client_info=client_info, amount=amount, timestamp=_parse_timestamp(remainder))
