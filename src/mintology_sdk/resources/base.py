"""
Base resource class for the Mintology SDK.

Tenant-scoped operations share one shape: resolve the tenant key (failing
fast, without a request, when it is missing), send JSON with the
``API-Key`` header, and turn the decoded response into a :class:`Result`.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from ..http import ApiBase, ApiResponse
from ..models.errors import UpstreamError
from ..models.result import Result

if TYPE_CHECKING:
    from ..client import MintologyClient

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class AsyncBaseResource:
    """Base class for async API resources.

    Attributes:
        _client: The client instance
    """

    def __init__(self, client: "MintologyClient") -> None:
        self._client = client

    @staticmethod
    def _to_result(response: ApiResponse) -> Result[Any]:
        """Success statuses become ``ok``; anything else keeps the vendor body."""
        if response.is_success:
            return Result.ok(response.data)
        return Result.err(UpstreamError(response.status_code, response.data))

    async def _tenant_request(
        self,
        method: str,
        path: str,
        data: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Result[Any]:
        key = self._client.credentials.resolve_tenant_key()
        if key.is_err:
            return Result.err(key.error)  # type: ignore[arg-type]

        response = await self._client.http.request(
            method,
            ApiBase.TENANT,
            path,
            headers={**JSON_HEADERS, "API-Key": key.value},  # type: ignore[dict-item]
            json=data if data else None,
            params=params,
        )
        return self._to_result(response)

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Result[Any]:
        return await self._tenant_request("GET", path, params=params)

    async def _post(self, path: str, data: Optional[Any] = None) -> Result[Any]:
        return await self._tenant_request("POST", path, data=data)

    async def _put(self, path: str, data: Optional[Any] = None) -> Result[Any]:
        return await self._tenant_request("PUT", path, data=data)

    async def _delete(self, path: str) -> Result[Any]:
        return await self._tenant_request("DELETE", path)

    async def _bearer_request(
        self,
        method: str,
        path: str,
        token: str,
        data: Optional[Any] = None,
    ) -> ApiResponse:
        """Request authenticated with a bearer token instead of the tenant key."""
        return await self._client.http.request(
            method,
            ApiBase.TENANT,
            path,
            headers={**JSON_HEADERS, "Authorization": token if " " in token else f"Bearer {token}"},
            json=data,
        )


__all__ = ["AsyncBaseResource", "JSON_HEADERS"]
