from enum import Enum


class LiquidationStatus(str, Enum):
    PENDING = "PENDING"
    OVERDUE = "OVERDUE"
    # Terminal: no automatic transitions, no further QR generation.
    PAID = "PAID"


class QrType(str, Enum):
    STATIC = "STATIC"
    DYNAMIC = "DYNAMIC"
    P2P = "P2P"
    PENALTY = "PENALTY"
