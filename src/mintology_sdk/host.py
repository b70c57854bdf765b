"""Host-provided collaborators.

The WordPress plugin reached these through globals (options, transients,
ACF fields, ``setcookie``). Here each one is a narrow interface handed to
the SDK's constructors, with small in-process implementations for tests,
the CLI and non-WordPress hosts.
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from cryptography.fernet import Fernet, InvalidToken

from .models.errors import ConfigurationError
from .models.result import Result


# =============================================================================
# Tenant key storage
# =============================================================================

class TenantKeyStore(ABC):
    """Encrypted option store holding the per-site tenant key."""

    @abstractmethod
    def get(self, name: str) -> Optional[str]:
        """Return the stored (still encrypted) value, or None."""

    @abstractmethod
    def decrypt(self, opaque: str) -> str:
        """Decrypt a stored value."""


class StaticTenantKeyStore(TenantKeyStore):
    """Plain-text options, e.g. a key read from the environment."""

    def __init__(self, options: Optional[Mapping[str, str]] = None):
        self._options: Dict[str, str] = dict(options or {})

    def get(self, name: str) -> Optional[str]:
        return self._options.get(name) or None

    def set(self, name: str, value: str) -> None:
        self._options[name] = value

    def decrypt(self, opaque: str) -> str:
        return opaque


class FernetTenantKeyStore(TenantKeyStore):
    """Options encrypted at rest with a Fernet secret."""

    def __init__(self, secret: str | bytes, options: Optional[Mapping[str, str]] = None):
        self._fernet = Fernet(secret)
        self._options: Dict[str, str] = dict(options or {})

    def get(self, name: str) -> Optional[str]:
        return self._options.get(name) or None

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def store(self, name: str, plaintext: str) -> None:
        """Encrypt and store a tenant key."""
        self._options[name] = self.encrypt(plaintext)

    def decrypt(self, opaque: str) -> str:
        try:
            return self._fernet.decrypt(opaque.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as exc:
            raise ConfigurationError(
                "Mintology key could not be decrypted",
                code="KEY_UNREADABLE",
            ) from exc


# =============================================================================
# Project details and tax lookups
# =============================================================================

class ProjectDetailsLookup(ABC):
    """Host-owned project metadata (contract and wallet type)."""

    @abstractmethod
    async def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        """Return the project's metadata, or None if unknown."""


class InMemoryProjectDetails(ProjectDetailsLookup):
    def __init__(self, projects: Optional[Mapping[str, Dict[str, Any]]] = None):
        self._projects: Dict[str, Dict[str, Any]] = dict(projects or {})

    async def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        return self._projects.get(project_id)

    def put(self, project_id: str, details: Dict[str, Any]) -> None:
        self._projects[project_id] = details


class TaxRateLookup(ABC):
    """Tax rate source keyed by a billing address."""

    @abstractmethod
    async def get_tax_rate(self, address: Dict[str, Any]) -> Result[Dict[str, Any]]:
        """Return ``{"percentage": ...}`` for the address."""


class StaticTaxRates(TaxRateLookup):
    """Fixed percentages per ISO alpha-2 country; unknown countries pay none."""

    def __init__(self, rates: Optional[Mapping[str, Decimal | float | int]] = None):
        self._rates = {code.upper(): Decimal(str(rate)) for code, rate in (rates or {}).items()}

    async def get_tax_rate(self, address: Dict[str, Any]) -> Result[Dict[str, Any]]:
        country = str(address.get("country", "")).upper()
        return Result.ok({"country": country, "percentage": self._rates.get(country, Decimal("0"))})


# =============================================================================
# Cache
# =============================================================================

class CacheBackend(ABC):
    """Keyed cache with TTL (the plugin used WordPress transients)."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get a value from cache."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """Set a value in cache with optional TTL in seconds; a TTL of 0 or less stores nothing."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key from cache."""

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None


class InMemoryCache(CacheBackend):
    """Process-local cache.

    Args:
        clock: Seconds source, injectable so TTL expiry can be driven in tests
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._store: Dict[str, Tuple[str, Optional[float]]] = {}  # key -> (value, expires_at)
        self._clock = clock

    async def get(self, key: str) -> Optional[str]:
        if key not in self._store:
            return None
        value, expires_at = self._store[key]
        if expires_at is not None and self._clock() >= expires_at:
            del self._store[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        if ttl is not None and ttl <= 0:
            # Already expired.
            self._store.pop(key, None)
            return False
        expires_at = self._clock() + ttl if ttl is not None else None
        self._store[key] = (value, expires_at)
        return True

    async def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None


# =============================================================================
# Cookies
# =============================================================================

class CookieSink(ABC):
    """Where wallet-authorization cookies are written."""

    @abstractmethod
    def set_cookie(self, name: str, value: str, max_age: int, path: str = "/") -> None:
        """Set a cookie on the outgoing response."""


@dataclass
class Cookie:
    name: str
    value: str
    max_age: int
    path: str = "/"


class InMemoryCookieJar(CookieSink):
    def __init__(self) -> None:
        self.cookies: List[Cookie] = []

    def set_cookie(self, name: str, value: str, max_age: int, path: str = "/") -> None:
        self.cookies.append(Cookie(name=name, value=value, max_age=max_age, path=path))

    def get(self, name: str) -> Optional[Cookie]:
        for cookie in reversed(self.cookies):
            if cookie.name == name:
                return cookie
        return None
