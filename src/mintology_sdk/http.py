"""
HTTP client facade for the Mintology APIs.

Every response that arrives, 2xx or not, is decoded and handed back as an
:class:`ApiResponse`; callers decide what a non-2xx status means. Only the
absence of a response is exceptional and surfaces as
:class:`~mintology_sdk.models.errors.TransportError`.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import httpx

from .config import MintologySettings, load_settings
from .logging_config import mask_headers, mask_sensitive_data
from .models.errors import MintologyTimeoutError, TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "mintology-sdk-python/0.1.0"


class ApiBase(str, Enum):
    """The base URIs the plugin talks to."""

    AUTH = "auth"
    TENANT = "tenant"
    PRODUCTION = "production"


@dataclass(frozen=True)
class ApiResponse:
    """Decoded response. ``data`` is ``None`` when the body is not JSON."""

    status_code: int
    data: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        logger.debug(
            "Non-JSON response body from %s (status %s)",
            response.request.url if response.request else "?",
            response.status_code,
        )
        return None


class MintologyHTTPClient:
    """
    Thin async HTTP layer over httpx.

    One pooled ``httpx.AsyncClient`` is kept per base URI.

    Args:
        settings: SDK settings; base URIs and the default timeout come from here
        base_urls: Optional override of the base URI per :class:`ApiBase`
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        settings: Optional[MintologySettings] = None,
        *,
        base_urls: Optional[Mapping[ApiBase, str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or load_settings()
        self._base_urls: Dict[ApiBase, str] = {
            ApiBase.AUTH: settings.access_token_url,
            ApiBase.TENANT: settings.api_base_url,
            ApiBase.PRODUCTION: settings.production_api_base_url,
        }
        if base_urls:
            self._base_urls.update(base_urls)
        self._timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport
        self._clients: Dict[ApiBase, httpx.AsyncClient] = {}

    def base_url(self, base: ApiBase) -> str:
        return self._base_urls[base]

    def _get_client(self, base: ApiBase) -> httpx.AsyncClient:
        """Get or create the pooled client for a base URI."""
        client = self._clients.get(base)
        if client is None or client.is_closed:
            client = httpx.AsyncClient(
                base_url=self._base_urls[base],
                headers={"User-Agent": USER_AGENT},
                timeout=self._timeout,
                transport=self._transport,
            )
            self._clients[base] = client
        return client

    async def request(
        self,
        method: str,
        base: ApiBase,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        """Send a request and decode the response body.

        Raises:
            MintologyTimeoutError: The request timed out
            TransportError: No response was received
        """
        client = self._get_client(base)
        method = method.upper()
        path = path.lstrip("/")

        logger.debug(
            "Mintology request %s %s/%s",
            method,
            base.value,
            path,
            extra={"request_headers": mask_headers(headers), "params": mask_sensitive_data(params)},
        )

        started = time.monotonic()
        kwargs: Dict[str, Any] = {"headers": headers, "params": params}
        if json is not None:
            kwargs["json"] = json
        if data is not None:
            kwargs["data"] = data
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("Mintology request timed out: %s %s", method, path)
            raise MintologyTimeoutError(
                f"{method} {path} timed out",
                details={"base": base.value, "path": path},
            ) from exc
        except httpx.RequestError as exc:
            logger.warning("Mintology request failed: %s %s: %s", method, path, exc)
            raise TransportError(
                f"{method} {path} failed: {exc}",
                details={"base": base.value, "path": path},
            ) from exc

        duration_ms = (time.monotonic() - started) * 1000
        logger.debug(
            "Mintology response %s %s -> %s (%.1fms)",
            method,
            path,
            response.status_code,
            duration_ms,
        )

        return ApiResponse(
            status_code=response.status_code,
            data=_decode_body(response),
            headers=dict(response.headers),
        )

    async def close(self) -> None:
        """Close all pooled clients."""
        for client in self._clients.values():
            if not client.is_closed:
                await client.aclose()
        self._clients.clear()

    async def __aenter__(self) -> "MintologyHTTPClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
