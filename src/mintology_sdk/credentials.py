"""OAuth access tokens and the per-site tenant key."""
from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from typing import Callable, Dict, Optional

from .config import MintologySettings, load_settings
from .http import ApiBase, MintologyHTTPClient
from .host import TenantKeyStore
from .models.auth import AccessToken, Credentials
from .models.errors import ConfigurationError, UpstreamError
from .models.result import Result

logger = logging.getLogger(__name__)


class TokenCache:
    """Access tokens keyed by a digest of the client credentials."""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        skew: int = 30,
        default_ttl: int = 300,
    ):
        self._clock = clock
        self._skew = skew
        self._default_ttl = default_ttl
        self._tokens: Dict[str, AccessToken] = {}

    @staticmethod
    def _key(credentials: Credentials) -> str:
        raw = f"{credentials.client_id}:{credentials.client_secret}".encode("utf-8")
        return hashlib.sha256(raw).hexdigest()

    def get(self, credentials: Credentials) -> Optional[AccessToken]:
        key = self._key(credentials)
        token = self._tokens.get(key)
        if token is None:
            return None
        if token.is_expired(self._clock(), self._skew, self._default_ttl):
            del self._tokens[key]
            return None
        return token

    def put(self, credentials: Credentials, token: AccessToken) -> None:
        self._tokens[self._key(credentials)] = token

    def invalidate(self, credentials: Credentials) -> None:
        self._tokens.pop(self._key(credentials), None)


class CredentialManager:
    """
    Supplies the OAuth access token and the tenant key.

    Args:
        http: HTTP facade
        credentials: OAuth client credentials
        key_store: Host option store holding the encrypted tenant key
        settings: SDK settings
        token_cache: Shared token cache; one is created if omitted
        clock: Seconds source used for token expiry
    """

    def __init__(
        self,
        http: MintologyHTTPClient,
        credentials: Credentials,
        key_store: Optional[TenantKeyStore] = None,
        settings: Optional[MintologySettings] = None,
        token_cache: Optional[TokenCache] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._http = http
        self._credentials = credentials
        self._key_store = key_store
        self._settings = settings or load_settings()
        self._clock = clock
        self._token_cache = token_cache or TokenCache(
            clock=clock,
            skew=self._settings.token_expiry_skew,
            default_ttl=self._settings.token_default_ttl,
        )
        self._token_lock = asyncio.Lock()

    async def get_access_token(self, force_refresh: bool = False) -> Result[AccessToken]:
        """Return a client-credentials token, reusing a cached one when fresh.

        A vendor error body (e.g. ``{"error": "invalid_client"}``) comes back
        as ``Result.err(UpstreamError)`` with the body preserved.
        """
        if not self._credentials.is_complete:
            return Result.err(
                ConfigurationError(
                    "Mintology client credentials are not configured",
                    code="CREDENTIALS_MISSING",
                )
            )

        if not force_refresh:
            cached = self._token_cache.get(self._credentials)
            if cached is not None:
                return Result.ok(cached)

        async with self._token_lock:
            if not force_refresh:
                cached = self._token_cache.get(self._credentials)
                if cached is not None:
                    return Result.ok(cached)

            response = await self._http.request(
                "POST",
                ApiBase.AUTH,
                "oauth2/token",
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Authorization": f"Basic {self._credentials.basic_authorization()}",
                },
                data={
                    "grant_type": "client_credentials",
                    "scope": self._settings.token_scope,
                },
            )

            payload = response.data
            if (
                not response.is_success
                or not isinstance(payload, dict)
                or "error" in payload
                or not payload.get("access_token")
            ):
                logger.warning("Access token request rejected (status %s)", response.status_code)
                return Result.err(UpstreamError(response.status_code, payload))

            token = AccessToken.model_validate({**payload, "obtained_at": self._clock()})
            self._token_cache.put(self._credentials, token)
            logger.debug("Fetched new access token (expires_in=%s)", token.expires_in)
            return Result.ok(token)

    def invalidate_token(self) -> None:
        self._token_cache.invalidate(self._credentials)

    def get_tenant_key(self) -> Optional[str]:
        """Read and decrypt the tenant key, or None when it is not stored.

        Raises:
            ConfigurationError: The stored value cannot be decrypted
        """
        if self._key_store is None:
            return None
        opaque = self._key_store.get(self._settings.tenant_key_option)
        if not opaque:
            return None
        return self._key_store.decrypt(opaque) or None

    def resolve_tenant_key(self) -> Result[str]:
        """Like :meth:`get_tenant_key` but reports absence as an error result."""
        try:
            key = self.get_tenant_key()
        except ConfigurationError as exc:
            return Result.err(exc)
        if not key:
            return Result.err(ConfigurationError())
        return Result.ok(key)
