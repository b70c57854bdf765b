"""Logging configuration and secret masking for the Mintology SDK.

Modules log through ``logging.getLogger(__name__)``; applications call
:func:`setup_logging` once to install either a JSON or a plain formatter.
Tenant keys, OAuth tokens and Basic credentials must never reach a log
record unmasked, so request logging goes through :func:`mask_headers`
and :func:`mask_sensitive_data`.
"""
from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

MASK_PATTERN = "***"
MAX_LOG_MESSAGE_LENGTH = 2000

SENSITIVE_FIELDS = frozenset({
    "password",
    "secret",
    "token",
    "api_key",
    "apikey",
    "client_secret",
    "access_token",
    "refresh_token",
    "authorization",
    "auth",
    "credential",
    "credentials",
    "payment_method_id",
    "paymentmethodid",
})

SENSITIVE_HEADERS = frozenset({
    "authorization",
    "api-key",
    "x-api-key",
    "cookie",
    "set-cookie",
})

tenant_fingerprint_var: ContextVar[Optional[str]] = ContextVar("tenant_fingerprint", default=None)

_INLINE_PATTERNS = [
    (re.compile(r"(Bearer\s+)[a-zA-Z0-9._~+/=-]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(Basic\s+)[a-zA-Z0-9+/=]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(https?://)[^:/\s]+:[^@\s]+@", re.IGNORECASE), r"\1***:***@"),
    (re.compile(r"\beyJ[a-zA-Z0-9_-]+\.eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\b"), "***JWT***"),
]


def is_sensitive_key(key: str) -> bool:
    """Check if a key name indicates sensitive data."""
    key_lower = key.lower().replace("-", "_")
    return key_lower in SENSITIVE_FIELDS or any(
        sensitive in key_lower
        for sensitive in ("secret", "password", "token", "key", "credential", "auth")
    )


def mask_inline(text: str) -> str:
    """Mask bearer/basic credentials, URL passwords and JWTs inside free text."""
    if len(text) > MAX_LOG_MESSAGE_LENGTH:
        text = text[:MAX_LOG_MESSAGE_LENGTH] + "...[truncated]"
    for pattern, replacement in _INLINE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def mask_sensitive_data(data: Any, _depth: int = 0, _max_depth: int = 10) -> Any:
    """Recursively mask sensitive values in a dict/list structure.

    Returns a masked copy; the input is never mutated.
    """
    if _depth > _max_depth:
        return data

    if isinstance(data, dict):
        return {
            key: MASK_PATTERN if is_sensitive_key(str(key))
            else mask_sensitive_data(value, _depth + 1, _max_depth)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, _depth + 1, _max_depth) for item in data)
    if isinstance(data, str):
        return mask_inline(data)
    return data


def mask_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Mask sensitive HTTP headers."""
    if not headers:
        return {}
    return {
        key: MASK_PATTERN if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


class TenantContextFilter(logging.Filter):
    """Attach the active tenant fingerprint to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.tenant_fingerprint = tenant_fingerprint_var.get()
        return True


_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
    "processName", "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName", "tenant_fingerprint",
})


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": mask_inline(record.getMessage()),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        fingerprint = getattr(record, "tenant_fingerprint", None)
        if fingerprint:
            log_data["tenant_fingerprint"] = fingerprint

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = mask_sensitive_data(value) if not is_sensitive_key(key) else MASK_PATTERN

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """Configure logging for an application embedding the SDK.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging (True) or simple format (False)
        log_file: Optional file path for logging output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(tenant_fingerprint)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(TenantContextFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(TenantContextFilter())
        root_logger.addHandler(file_handler)


def set_tenant_context(fingerprint: Optional[str]) -> None:
    """Set the tenant fingerprint reported on log records."""
    tenant_fingerprint_var.set(fingerprint)
