"""Wallet authorization for claim flows."""
from __future__ import annotations

import base64
import logging
from typing import Any, Optional

from ..http import ApiBase
from ..models.errors import UpstreamError, ValidationError
from ..models.result import Result
from ..models.wallet import WalletAuthorization
from .base import JSON_HEADERS, AsyncBaseResource

logger = logging.getLogger(__name__)

WALLET_COOKIE = "wallet_address"
PROJECT_COOKIE = "project_id"


def _b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def _mintable_address(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if isinstance(data, dict) and data.get("address"):
        return str(data["address"])
    return None


class WalletsResource(AsyncBaseResource):
    """Authorize MetaMask or Mintable custodial wallets against a project."""

    async def authorize_metamask(
        self,
        project_id: str,
        wallet_address: str,
        set_cookies: bool = True,
    ) -> Result[WalletAuthorization]:
        """Authorize a wallet address for a project.

        When ``set_cookies`` is true and the client has a cookie sink, the
        base64 wallet address and project id are written as short-lived
        cookies so the claim page can pick them up.
        """
        if not wallet_address:
            return Result.err(ValidationError("Wallet address is required", field="wallet_address"))

        key = self._client.credentials.resolve_tenant_key()
        if key.is_err:
            return Result.err(key.error)  # type: ignore[arg-type]

        cookies = self._client.cookies
        if set_cookies and cookies is not None:
            max_age = self._client.settings.cookie_max_age
            cookies.set_cookie(WALLET_COOKIE, _b64(wallet_address), max_age=max_age, path="/")
            cookies.set_cookie(PROJECT_COOKIE, _b64(project_id), max_age=max_age, path="/")

        response = await self._client.http.request(
            "POST",
            ApiBase.TENANT,
            f"{project_id}/authorize",
            headers={**JSON_HEADERS, "API-Key": key.value},  # type: ignore[dict-item]
            json={"wallet_address": wallet_address},
        )
        if not response.is_success:
            logger.info("Wallet authorization rejected for project %s (status %s)", project_id, response.status_code)
            return Result.err(UpstreamError(response.status_code, response.data))

        return Result.ok(
            WalletAuthorization(
                project_id=project_id,
                wallet_address=wallet_address,
                status_code=response.status_code,
                response=response.data,
            )
        )

    async def authorize_mintable(self, project_id: str, bearer_token: str) -> Result[WalletAuthorization]:
        """Look up the Mintable wallet behind a bearer token, then authorize it."""
        if not bearer_token:
            return Result.err(ValidationError("Token not found!", field="token", code="TOKEN_MISSING"))

        response = await self._bearer_request("GET", "mintable/wallet", bearer_token)
        if not response.is_success:
            return Result.err(UpstreamError(response.status_code, response.data))

        address = _mintable_address(response.data)
        if not address:
            return Result.err(
                UpstreamError(
                    response.status_code,
                    response.data,
                    message="Mintable wallet address missing from response",
                )
            )
        return await self.authorize_metamask(project_id, address)


__all__ = ["WalletsResource", "WALLET_COOKIE", "PROJECT_COOKIE"]
