"""Shared utilities used across the app."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")


def to_money(amount) -> Decimal:
    """Return amount as a Decimal quantized to 2 places (half-up). None becomes 0.00."""
    if amount is None:
        return Decimal("0.00")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount!r}")
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def epoch_millis(moment) -> int:
    """Milliseconds since the epoch for a (naive local) datetime."""
    return int(moment.timestamp() * 1000)
