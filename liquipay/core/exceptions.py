from enum import Enum

from fastapi import HTTPException, status


class ReasonCode(str, Enum):
    """Reason attached to every failed outcome so callers can branch without parsing messages."""
    validation_error = "VALIDATION_ERROR"
    not_found = "NOT_FOUND"
    conflict = "CONFLICT"
    codec_failure = "CODEC_FAILURE"
    decode_error = "DECODE_ERROR"
    persistence_failure = "PERSISTENCE_FAILURE"


class DomainError(Exception):
    """Base class for business-rule failures raised by services."""
    reason = ReasonCode.validation_error

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DomainValidationError(DomainError):
    """Caller input or record state violates a rule (dates, PAID liquidation, missing variant input)."""
    reason = ReasonCode.validation_error


class UniquenessConflictError(DomainError):
    """Duplicate IFU, email or transaction id."""
    reason = ReasonCode.conflict


class PaymentCodecError(DomainError):
    """The payment codec failed to encode, render or decode."""
    reason = ReasonCode.codec_failure


class LinkDecodeError(DomainError):
    """A workflow link token is structurally invalid."""
    reason = ReasonCode.decode_error


class LinkEncodeError(DomainError):
    """A workflow link cannot be built from the given client info."""
    reason = ReasonCode.validation_error


class AppException:
    """Class-based exception handlers for common HTTP status codes."""

    @staticmethod
    def raise_400(message: str = "Bad Request"):
        """Raise a 400 Bad Request exception."""
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    @staticmethod
    def raise_404(message: str = "Not Found"):
        """Raise a 404 Not Found exception."""
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)

    @staticmethod
    def raise_409(message: str = "Conflict"):
        """Raise a 409 Conflict exception."""
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=message)

    @staticmethod
    def raise_500(message: str = "Internal Server Error"):
        """Raise a 500 Internal Server Error exception."""
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)

    @staticmethod
    def raise_502(message: str = "Bad Gateway"):
        """Raise a 502 Bad Gateway exception."""
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=message)


REASON_STATUS_CODES = {
    ReasonCode.validation_error: status.HTTP_400_BAD_REQUEST,
    ReasonCode.decode_error: status.HTTP_400_BAD_REQUEST,
    ReasonCode.not_found: status.HTTP_404_NOT_FOUND,
    ReasonCode.conflict: status.HTTP_409_CONFLICT,
    ReasonCode.codec_failure: status.HTTP_502_BAD_GATEWAY,
    ReasonCode.persistence_failure: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_reason(reason: ReasonCode, message: str):
    """Raise the HTTPException matching a failed outcome's reason code."""
    raise HTTPException(status_code=REASON_STATUS_CODES.get(reason, status.HTTP_400_BAD_REQUEST), detail=message)


# Create an instance for convenience
app_exception = AppException()

raise_400 = AppException.raise_400
raise_404 = AppException.raise_404
raise_409 = AppException.raise_409
raise_500 = AppException.raise_500
raise_502 = AppException.raise_502
