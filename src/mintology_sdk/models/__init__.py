"""Models for the Mintology SDK."""

from .auth import AccessToken, Credentials
from .base import MintologyModel
from .checkout import BillingDetails, ChargeReceipt, PaymentRequest
from .errors import (
    AggregationTimeoutError,
    ConfigurationError,
    MintologyError,
    MintologyTimeoutError,
    NotFoundError,
    PaymentDeclinedError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from .pricing import LineItem, OrderSummary, PricedOrder
from .project import AggregatedSnapshot, Project, ProjectEntry, ProjectStatus
from .result import Result
from .wallet import WalletAuthorization

__all__ = [
    "AccessToken",
    "AggregatedSnapshot",
    "AggregationTimeoutError",
    "BillingDetails",
    "ChargeReceipt",
    "ConfigurationError",
    "Credentials",
    "LineItem",
    "MintologyError",
    "MintologyModel",
    "MintologyTimeoutError",
    "NotFoundError",
    "OrderSummary",
    "PaymentDeclinedError",
    "PaymentRequest",
    "PricedOrder",
    "Project",
    "ProjectEntry",
    "ProjectStatus",
    "Result",
    "TransportError",
    "UpstreamError",
    "ValidationError",
    "WalletAuthorization",
]
