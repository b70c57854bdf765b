"""Plugin registration and account lookups."""
from __future__ import annotations

from typing import Any, Dict, Optional

from ..http import ApiBase
from ..models.errors import ValidationError
from ..models.result import Result
from .base import JSON_HEADERS, AsyncBaseResource


class PluginsResource(AsyncBaseResource):
    """Registers this install with Mintology and reads the account behind a user token.

    Example:
        ```python
        async with MintologyClient(...) as client:
            result = await client.plugins.register("admin@example.com")
            if result.is_ok:
                store_key(result.value["api_key"])
        ```
    """

    async def register(self, email: str = "", plugin_type: Optional[str] = None) -> Result[Dict[str, Any]]:
        """Register the plugin, authenticating with a client-credentials token."""
        token = await self._client.credentials.get_access_token()
        if token.is_err:
            return Result.err(token.error)  # type: ignore[arg-type]

        response = await self._client.http.request(
            "POST",
            ApiBase.TENANT,
            "plugins/register",
            headers={**JSON_HEADERS, "Authorization": token.value.authorization},  # type: ignore[union-attr]
            json={
                "email": email,
                "plugin_type": plugin_type or self._client.settings.plugin_type,
            },
        )
        return self._to_result(response)

    async def me(self, bearer_token: str) -> Result[Dict[str, Any]]:
        """Fetch the account that owns a user's bearer token."""
        if not bearer_token:
            return Result.err(ValidationError("Token not found!", field="token", code="TOKEN_MISSING"))
        response = await self._bearer_request("GET", "me", bearer_token)
        return self._to_result(response)

    async def organization_id(self, bearer_token: str) -> Result[Optional[str]]:
        """Organization id of the account, ``None`` when the vendor omits it."""
        account = await self.me(bearer_token)
        return account.map(lambda data: (data or {}).get("organization_id"))


__all__ = ["PluginsResource"]
