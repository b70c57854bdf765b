"""
Pytest configuration and fixtures for Mintology SDK tests.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx
import pytest

from mintology_sdk import (
    InMemoryCookieJar,
    MintologyClient,
    MintologySettings,
    StaticTenantKeyStore,
)

AUTH_URL = "https://auth.mintology.app/"
API_URL = "https://api.mintology.app/v1/"
PROD_URL = "https://prod-api.mintology.app/v1/"

TENANT_KEY = "test-key"
KEY_OPTION = "__mint_x_mint_key"

Handler = Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]


@dataclass
class _MockEntry:
    method: str
    url: str
    response: Optional[httpx.Response] = None
    exception: Optional[Exception] = None
    handler: Optional[Handler] = None
    reusable: bool = False


def _normalize_url(url: str) -> str:
    parts = urlsplit(url)
    normalized_query = urlencode(sorted(parse_qsl(parts.query, keep_blank_values=True)), doseq=True)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, normalized_query, parts.fragment))


class MockAPI:
    """Queue of canned responses served through ``httpx.MockTransport``.

    Plain responses are consumed once; handlers registered with
    :meth:`add_handler` answer every matching request.
    """

    def __init__(self) -> None:
        self._entries: list[_MockEntry] = []
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._dispatch)

    def add_response(
        self,
        *,
        url: str,
        method: str = "GET",
        status_code: int = 200,
        json: Any = None,
        content: bytes | None = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        if content is None and json is not None:
            content = json_dumps_bytes(json)
            response_headers = {"content-type": "application/json"}
            if headers:
                response_headers.update(headers)
        else:
            response_headers = headers or {}

        response = httpx.Response(
            status_code=status_code,
            headers=response_headers,
            content=content or b"",
        )
        self._entries.append(_MockEntry(method=method.upper(), url=url, response=response))

    def add_exception(self, exception: Exception, *, url: str, method: str = "GET") -> None:
        self._entries.append(_MockEntry(method=method.upper(), url=url, exception=exception))

    def add_handler(self, handler: Handler, *, url: str, method: str = "GET") -> None:
        self._entries.append(_MockEntry(method=method.upper(), url=url, handler=handler, reusable=True))

    def requests_for(self, method: str, url: str) -> list[httpx.Request]:
        target = _normalize_url(url)
        return [
            r for r in self.requests
            if r.method == method.upper() and _normalize_url(str(r.url)) == target
        ]

    def _pop_match(self, method: str, url: str) -> _MockEntry:
        normalized_url = _normalize_url(url)
        for idx, entry in enumerate(self._entries):
            if entry.method == method and _normalize_url(entry.url) == normalized_url:
                return entry if entry.reusable else self._entries.pop(idx)
        raise AssertionError(
            f"No mocked response for {method} {url}. "
            f"Available: {[f'{e.method} {e.url}' for e in self._entries]}"
        )

    async def _dispatch(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        match = self._pop_match(request.method, str(request.url))
        if match.exception is not None:
            raise match.exception
        if match.handler is not None:
            response = match.handler(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response
        assert match.response is not None
        return match.response


def json_dumps_bytes(payload: Any) -> bytes:
    return json.dumps(payload, default=str).encode("utf-8")


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


# Mock response data
MOCK_RESPONSES = {
    "token": {
        "access_token": "access-123",
        "token_type": "Bearer",
        "expires_in": 3600,
    },
    "projects": {
        "data": [
            {"project_id": "p1", "name": "Genesis", "contract_type": "ERC721", "wallet_type": "MetaMask", "status": "deployed"},
            {"project_id": "p2", "name": "Drops", "contract_type": "ERC1155", "wallet_type": "Mintable", "status": "draft"},
            {"project_id": "p3", "name": "Passes", "contract_type": "ERC721", "wallet_type": "MetaMask"},
        ]
    },
    "premints": {"data": [{"id": "pm_1"}, {"id": "pm_2"}]},
    "totals": {"total": 12, "minted": 10},
    "upload": {"data": {"url": "https://uploads.mintology.app/signed", "key": "uploads/abc/Cover.png"}},
}


@pytest.fixture
def settings() -> MintologySettings:
    """Settings isolated from the environment and any .env file."""
    return MintologySettings(
        _env_file=None,
        client_id="client-id",
        client_secret="client-secret",
        access_token_url=AUTH_URL,
        api_base_url=API_URL,
        production_api_base_url=PROD_URL,
    )


@pytest.fixture
def mock_api() -> MockAPI:
    return MockAPI()


@pytest.fixture
def key_store() -> StaticTenantKeyStore:
    return StaticTenantKeyStore({KEY_OPTION: TENANT_KEY})


@pytest.fixture
def cookie_jar() -> InMemoryCookieJar:
    return InMemoryCookieJar()


@pytest.fixture
async def client(settings, mock_api, key_store, cookie_jar) -> MintologyClient:
    """Client wired to the mock API with a configured tenant key."""
    client = MintologyClient(
        settings=settings,
        key_store=key_store,
        cookies=cookie_jar,
        transport=mock_api.transport,
    )
    yield client
    await client.close()


@pytest.fixture
async def keyless_client(settings, mock_api) -> MintologyClient:
    """Client without a stored tenant key."""
    client = MintologyClient(
        settings=settings,
        key_store=StaticTenantKeyStore(),
        transport=mock_api.transport,
    )
    yield client
    await client.close()


@pytest.fixture
def mock_responses() -> dict:
    """Return mock response data."""
    return MOCK_RESPONSES
