"""
Mintology Python SDK

Async client for the Mintology NFT platform: tenant-keyed API resources, an
aggregated project snapshot cache and a GST-aware pricing engine.

Example:
    ```python
    from mintology_sdk import MintologyClient, ProjectAggregator, InMemoryCache

    async with MintologyClient(key_store=store) as client:
        aggregator = ProjectAggregator(client, InMemoryCache())
        snapshot = (await aggregator.list_projects_with_derived_data()).unwrap()
    ```
"""

__version__ = "0.1.0"

from .aggregation import ProjectAggregator, base62_encode, generate_tenant_fingerprint
from .checkout import CheckoutService, validate_request
from .client import MintologyClient
from .config import MintologySettings, load_settings
from .currency import CountryCurrencyTable, format_amount, round_amount
from .host import (
    CacheBackend,
    CookieSink,
    FernetTenantKeyStore,
    InMemoryCache,
    InMemoryCookieJar,
    InMemoryProjectDetails,
    ProjectDetailsLookup,
    StaticTaxRates,
    StaticTenantKeyStore,
    TaxRateLookup,
    TenantKeyStore,
)
from .http import ApiBase, ApiResponse, MintologyHTTPClient
from .logging_config import setup_logging
from .models import (
    AccessToken,
    AggregatedSnapshot,
    AggregationTimeoutError,
    BillingDetails,
    ChargeReceipt,
    ConfigurationError,
    Credentials,
    LineItem,
    MintologyError,
    MintologyTimeoutError,
    NotFoundError,
    OrderSummary,
    PaymentDeclinedError,
    PaymentRequest,
    PricedOrder,
    Project,
    ProjectEntry,
    ProjectStatus,
    Result,
    TransportError,
    UpstreamError,
    ValidationError,
    WalletAuthorization,
)
from .pricing import PricingEngine, ProjectsApiDetails

__all__ = [
    "__version__",
    # Client
    "MintologyClient",
    "MintologyHTTPClient",
    "ApiBase",
    "ApiResponse",
    # Services
    "ProjectAggregator",
    "PricingEngine",
    "ProjectsApiDetails",
    "CheckoutService",
    "validate_request",
    "base62_encode",
    "generate_tenant_fingerprint",
    # Currency
    "CountryCurrencyTable",
    "format_amount",
    "round_amount",
    # Host collaborators
    "CacheBackend",
    "CookieSink",
    "FernetTenantKeyStore",
    "InMemoryCache",
    "InMemoryCookieJar",
    "InMemoryProjectDetails",
    "ProjectDetailsLookup",
    "StaticTaxRates",
    "StaticTenantKeyStore",
    "TaxRateLookup",
    "TenantKeyStore",
    # Config
    "MintologySettings",
    "load_settings",
    "setup_logging",
    # Models
    "AccessToken",
    "AggregatedSnapshot",
    "BillingDetails",
    "ChargeReceipt",
    "Credentials",
    "LineItem",
    "OrderSummary",
    "PaymentRequest",
    "PricedOrder",
    "Project",
    "ProjectEntry",
    "ProjectStatus",
    "Result",
    "WalletAuthorization",
    # Errors
    "MintologyError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "UpstreamError",
    "PaymentDeclinedError",
    "TransportError",
    "MintologyTimeoutError",
    "AggregationTimeoutError",
]
