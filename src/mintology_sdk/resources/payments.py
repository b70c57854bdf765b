"""
Payments resource for the Mintology SDK.

Tariffs, tax rates and card charges. ``PaymentsResource`` also serves as
the default :class:`~mintology_sdk.host.TaxRateLookup` for the pricing
engine.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from ..host import TaxRateLookup
from ..models.errors import ValidationError
from ..models.result import Result
from .base import AsyncBaseResource


class PaymentsResource(AsyncBaseResource, TaxRateLookup):
    """Async resource for pricing lookups and charges.

    Example:
        ```python
        async with MintologyClient(...) as client:
            tariff = await client.payments.price("erc721", "metamask")
            tax = await client.payments.tax_rate("SG")
        ```
    """

    async def get_tax_rate(self, address: Dict[str, Any]) -> Result[Dict[str, Any]]:
        """Tax rate for a billing address; the vendor answers ``{"percentage": ...}``."""
        return await self._post("payments/tax-rate", {"address": address})

    async def tax_rate(self, country: str) -> Result[Dict[str, Any]]:
        """Tax rate for an ISO alpha-2 country code."""
        return await self.get_tax_rate({"country": country.upper()})

    async def price(self, contract_type: str = "", wallet_type: str = "") -> Result[Dict[str, Any]]:
        """Tariff for a contract/wallet combination.

        The response carries ``price`` and, where the vendor itemizes,
        ``contractPrice`` and ``walletPrice``.
        """
        params: Dict[str, Any] = {}
        if contract_type:
            params["contractType"] = contract_type
        if wallet_type:
            params["walletType"] = wallet_type
        result = await self._get("payments/price", params=params or None)
        return result.map(lambda payload: payload if isinstance(payload, dict) else {})

    async def charge(
        self,
        payment_method_id: str,
        amount: Decimal,
        currency: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Result[Dict[str, Any]]:
        """Charge a customer's payment method."""
        if not payment_method_id:
            return Result.err(
                ValidationError(
                    "Something went wrong due to attaching the payment method!",
                    field="payment_method",
                    code="PAYMENT_ISSUE_ATTACH",
                )
            )
        body: Dict[str, Any] = {
            "paymentMethodId": payment_method_id,
            "amount": str(amount),
            "currency": currency.upper(),
        }
        if metadata:
            body["metadata"] = metadata
        return await self._post("payments/charge", body)


__all__ = ["PaymentsResource"]
