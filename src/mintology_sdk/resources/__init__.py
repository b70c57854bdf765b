"""
Resource classes for the Mintology SDK.

Each resource wraps one area of the vendor API:
- plugins: registration and account lookups
- storage: upload URLs and file removal
- projects: project lifecycle, premints and token totals
- search: production contract/token search
- wallets: MetaMask and Mintable wallet authorization
- payments: tariffs, tax rates and charges
"""

from .base import AsyncBaseResource
from .payments import PaymentsResource
from .plugins import PluginsResource
from .projects import ProjectsResource
from .search import SearchResource
from .storage import StorageResource, is_valid_key, sanitize_file_name
from .wallets import WalletsResource

__all__ = [
    "AsyncBaseResource",
    "PaymentsResource",
    "PluginsResource",
    "ProjectsResource",
    "SearchResource",
    "StorageResource",
    "WalletsResource",
    "is_valid_key",
    "sanitize_file_name",
]
