"""Credential and token models."""
from __future__ import annotations

import base64
import time
from typing import Optional

from pydantic import Field

from .base import MintologyModel


class Credentials(MintologyModel):
    """OAuth client credentials issued to the plugin."""

    client_id: str
    client_secret: str = Field(repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def basic_authorization(self) -> str:
        """``base64(client_id:client_secret)`` for the Basic auth header."""
        raw = f"{self.client_id}:{self.client_secret}".encode("utf-8")
        return base64.b64encode(raw).decode("ascii")


class AccessToken(MintologyModel):
    """Client-credentials access token."""

    access_token: str = Field(repr=False)
    token_type: str = "Bearer"
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    obtained_at: float = Field(default_factory=time.time)

    @property
    def authorization(self) -> str:
        return f"{self.token_type or 'Bearer'} {self.access_token}"

    def is_expired(self, now: float, skew: int = 30, default_ttl: int = 300) -> bool:
        """Check expiry, treating tokens without ``expires_in`` as short-lived."""
        lifetime = self.expires_in if self.expires_in is not None else default_ttl
        return now >= self.obtained_at + max(0, lifetime - skew)
