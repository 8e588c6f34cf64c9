"""Structured results returned by the orchestration services instead of raising."""
from typing import Any, Optional

from liquipay.core.exceptions import DomainError, ReasonCode


def success(message: str, data: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    return {"success": True, "reason": None, "message": message, "data": data or {}}


def failure(reason: ReasonCode, message: str, data: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    return {"success": False, "reason": reason, "message": message, "data": data or {}}


def from_error(error: DomainError) -> dict[str, Any]:
    return failure(error.reason, error.message)
