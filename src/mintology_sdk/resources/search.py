"""Contract and token search on the production API."""
from __future__ import annotations

from typing import Any, Dict, Optional

from ..http import ApiBase
from ..models.result import Result
from .base import JSON_HEADERS, AsyncBaseResource


class SearchResource(AsyncBaseResource):
    """Search endpoints. These take no tenant key or token."""

    async def _search(self, path: str, query: Optional[Dict[str, Any]]) -> Result[Any]:
        response = await self._client.http.request(
            "POST",
            ApiBase.PRODUCTION,
            path,
            headers=dict(JSON_HEADERS),
            json=query or {},
        )
        return self._to_result(response)

    async def contracts(self, query: Optional[Dict[str, Any]] = None) -> Result[Any]:
        """Search contracts by the given terms."""
        return await self._search("contracts/search", query)

    async def contracts_by_attributes(self, query: Optional[Dict[str, Any]] = None) -> Result[Any]:
        """Search tokens by contract attributes."""
        return await self._search("tokens/search", query)


__all__ = ["SearchResource"]
