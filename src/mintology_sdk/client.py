"""
Mintology Python SDK

Example usage:
    ```python
    from mintology_sdk import MintologyClient, StaticTenantKeyStore

    async with MintologyClient(
        key_store=StaticTenantKeyStore({"__mint_x_mint_key": "tenant-key"}),
    ) as client:
        projects = await client.projects.list()
        status = await client.projects.status("proj_123")
        upload = await client.storage.upload("Cover Art.png", "image/png")
    ```
"""
from __future__ import annotations

import time
from typing import Callable, Optional

import httpx

from .config import MintologySettings, load_settings
from .credentials import CredentialManager, TokenCache
from .host import CookieSink, TenantKeyStore
from .http import MintologyHTTPClient
from .models.auth import Credentials
from .resources.payments import PaymentsResource
from .resources.plugins import PluginsResource
from .resources.projects import ProjectsResource
from .resources.search import SearchResource
from .resources.storage import StorageResource
from .resources.wallets import WalletsResource


class MintologyClient:
    """
    Mintology API client.

    Provides access to all API resources:
    - plugins: Register the install, look up accounts
    - storage: Upload URLs and file removal
    - projects: Project lifecycle, premints and token totals
    - search: Contract and token search (production API)
    - wallets: Wallet authorization for claims
    - payments: Tariffs, tax rates and charges

    Args:
        settings: SDK settings (defaults to :func:`load_settings`)
        credentials: OAuth client credentials (defaults to the settings' values)
        key_store: Host store holding the encrypted tenant key
        cookies: Where wallet-authorization cookies are written
        transport: Optional httpx transport shared by all base URIs
        http: Pre-built HTTP facade, overrides ``transport``
        token_cache: Token cache shared between clients
        clock: Seconds source for token expiry
    """

    def __init__(
        self,
        *,
        settings: Optional[MintologySettings] = None,
        credentials: Optional[Credentials] = None,
        key_store: Optional[TenantKeyStore] = None,
        cookies: Optional[CookieSink] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http: Optional[MintologyHTTPClient] = None,
        token_cache: Optional[TokenCache] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or load_settings()
        self.http = http or MintologyHTTPClient(self.settings, transport=transport)
        self.credentials = CredentialManager(
            self.http,
            credentials
            or Credentials(
                client_id=self.settings.client_id,
                client_secret=self.settings.client_secret,
            ),
            key_store=key_store,
            settings=self.settings,
            token_cache=token_cache,
            clock=clock,
        )
        self.cookies = cookies

        # Initialize resources
        self.plugins = PluginsResource(self)
        self.storage = StorageResource(self)
        self.projects = ProjectsResource(self)
        self.search = SearchResource(self)
        self.wallets = WalletsResource(self)
        self.payments = PaymentsResource(self)

    async def close(self) -> None:
        """Close the HTTP clients."""
        await self.http.close()

    async def __aenter__(self) -> "MintologyClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
