"""Error models for the Mintology SDK.

Configuration and validation problems are detected locally and never hit
the network. Vendor error responses are wrapped in :class:`UpstreamError`
with the decoded body kept verbatim. Transport failures (no response at
all) are raised, never returned.
"""
from __future__ import annotations

from typing import Any, Optional

KEY_NOT_SPECIFIED = "Mintology key is not specified!"
INVALID_STORAGE_KEY = "Invalid or missing key"


class MintologyError(Exception):
    """Base exception for Mintology SDK."""

    error_code: str = "MINTOLOGY_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.error_code = code
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class ConfigurationError(MintologyError):
    """Tenant key or client credentials are not configured."""

    error_code = "KEY_NOT_CONFIGURED"

    def __init__(self, message: str = KEY_NOT_SPECIFIED, code: Optional[str] = None):
        super().__init__(message, code)


class ValidationError(MintologyError):
    """Invalid input detected before any request is made."""

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, code, details={"field": field} if field else None)
        self.field = field


class NotFoundError(MintologyError):
    """Resource not found in a host store."""

    error_code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class UpstreamError(MintologyError):
    """The vendor answered with an error status or error payload."""

    error_code = "UPSTREAM_ERROR"

    def __init__(
        self,
        status_code: int,
        body: Any = None,
        message: Optional[str] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message or self._message_from_body(status_code, body), code)
        self.status_code = status_code
        self.body = body

    @staticmethod
    def _message_from_body(status_code: int, body: Any) -> str:
        if isinstance(body, dict):
            for key in ("message", "error_description", "error", "detail"):
                value = body.get(key)
                if isinstance(value, str) and value:
                    return value
        return f"Mintology API returned status {status_code}"

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["status_code"] = self.status_code
        result["body"] = self.body
        return result


class PaymentDeclinedError(UpstreamError):
    """The charge did not succeed."""

    error_code = "PAYMENT_ISSUE_CHARGE"


class TransportError(MintologyError):
    """No response was received (DNS, connect, reset)."""

    error_code = "TRANSPORT_ERROR"


class MintologyTimeoutError(TransportError):
    """A request did not complete within its timeout."""

    error_code = "TIMEOUT"


class AggregationTimeoutError(MintologyTimeoutError):
    """The project snapshot refresh exceeded its overall deadline."""

    error_code = "AGGREGATION_TIMEOUT"
