"""Wallet authorization models."""
from __future__ import annotations

from typing import Any, Optional

from .base import MintologyModel


class WalletAuthorization(MintologyModel):
    """Outcome of authorizing a wallet against a project."""

    project_id: str
    wallet_address: str
    status_code: int
    response: Optional[Any] = None
