"""
Order pricing with GST.

A priced order is recomputed on every call from four sources: the project's
contract and wallet types, the tenant's tariff for that combination, the tax
rate for the billing country and the country's currency. Tax is applied to
the tariff exactly once, and every amount is rounded half-up to the
currency's minor unit.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple

from .config import MintologySettings, load_settings
from .currency import DEFAULT_CURRENCIES, CountryCurrencyTable, SupportedCurrency, format_amount, round_amount
from .host import ProjectDetailsLookup, TaxRateLookup
from .models.errors import MintologyError, NotFoundError, TransportError, UpstreamError, ValidationError
from .models.pricing import LineItem, OrderSummary, PricedOrder
from .models.result import Result
from .resources.payments import PaymentsResource
from .resources.projects import ProjectsResource

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """Vendor number (int, float, numeric string or None) as a Decimal; 0 when unreadable."""
    if value is None or value == "":
        return ZERO
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning("Treating unreadable amount %r as 0", value)
        return ZERO
    if not amount.is_finite():
        logger.warning("Treating non-finite amount %r as 0", value)
        return ZERO
    return amount


def split_tariff(tariff: Mapping[str, Any]) -> Tuple[Decimal, Decimal, Decimal]:
    """``(contract_price, wallet_price, base_price)`` from a tariff payload.

    Without itemized prices the whole tariff is the contract line. Without a
    ``price`` the base is the sum of the itemized lines.
    """
    price = tariff.get("price")
    contract = tariff.get("contractPrice")
    wallet = tariff.get("walletPrice")

    if contract is None and wallet is None:
        base = to_decimal(price)
        return base, ZERO, base

    contract_price = to_decimal(contract)
    wallet_price = to_decimal(wallet)
    base = to_decimal(price) if price is not None else contract_price + wallet_price
    return contract_price, wallet_price, base


class ProjectsApiDetails(ProjectDetailsLookup):
    """Project details read from the vendor API; 404 means unknown."""

    def __init__(self, projects: ProjectsResource):
        self._projects = projects

    async def get(self, project_id: str) -> Optional[Dict[str, Any]]:
        result = await self._projects.retrieve(project_id)
        if result.is_err:
            if isinstance(result.error, UpstreamError) and result.error.status_code == 404:
                return None
            raise result.error  # type: ignore[misc]
        payload = result.value
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        return payload if isinstance(payload, dict) else None


class PricingEngine:
    """
    Computes priced orders and checkout summaries.

    Args:
        payments: Payments resource used for tariffs (and tax when ``tax`` is not given)
        projects: Source of project contract/wallet types
        tax: Tax rate source, defaults to ``payments``
        currencies: Country to currency table, defaults to the bundled table
        display_currencies: Symbols and minor units used for rounding and formatting
        settings: Default country and currency
    """

    def __init__(
        self,
        payments: PaymentsResource,
        projects: ProjectDetailsLookup,
        tax: Optional[TaxRateLookup] = None,
        currencies: Optional[CountryCurrencyTable] = None,
        display_currencies: Mapping[str, SupportedCurrency] = DEFAULT_CURRENCIES,
        settings: Optional[MintologySettings] = None,
    ):
        self._payments = payments
        self._projects = projects
        self._tax = tax or payments
        self._settings = settings or load_settings()
        self._currencies = currencies or CountryCurrencyTable(default=self._settings.default_currency)
        self._display = display_currencies

    async def calculate_price(self, project_id: str, country_code: Optional[str] = None) -> Result[PricedOrder]:
        """Price an order for a project billed in ``country_code``.

        Returns:
            ``ok(PricedOrder)``; ``err(ValidationError)`` without a project id,
            ``err(NotFoundError)`` for an unknown project, or the tariff/tax
            lookup's error.
        """
        if not project_id:
            return Result.err(ValidationError("Project id is required", field="project_id"))

        country = (country_code or self._settings.default_country).upper()

        try:
            details = await self._projects.get(project_id)
        except TransportError:
            raise
        except MintologyError as exc:
            return Result.err(exc)
        if details is None:
            return Result.err(NotFoundError("Project", project_id))

        contract_type = str(details.get("contract_type") or "").lower()
        wallet_type = str(details.get("wallet_type") or "").lower()
        currency = self._currencies.currency_for(country, self._settings.default_currency)

        tax = await self._tax.get_tax_rate({"country": country})
        if tax.is_err:
            logger.warning("Tax rate lookup for %s failed: %s", country, tax.error)
            return Result.err(tax.error)  # type: ignore[arg-type]

        tariff = await self._payments.price(contract_type, wallet_type)
        if tariff.is_err:
            logger.warning("Tariff lookup for %s/%s failed: %s", contract_type, wallet_type, tariff.error)
            return Result.err(tariff.error)  # type: ignore[arg-type]

        percentage = to_decimal((tax.value or {}).get("percentage"))
        contract_raw, wallet_raw, base_raw = split_tariff(tariff.value or {})

        def rounded(amount: Decimal) -> Decimal:
            return round_amount(amount, currency, self._display)

        base_price = rounded(base_raw)
        gst_amount = rounded(base_price * percentage / HUNDRED) if percentage > 0 else rounded(ZERO)
        contract_price = rounded(contract_raw)
        wallet_price = rounded(wallet_raw)

        order = PricedOrder(
            project_id=project_id,
            country_code=country,
            currency=currency,
            contract_type=contract_type or None,
            wallet_type=wallet_type or None,
            contract_price=contract_price,
            wallet_price=wallet_price,
            base_price=base_price,
            gst_percentage=percentage if percentage > 0 else ZERO,
            gst_amount=gst_amount,
            subtotal=contract_price + wallet_price + gst_amount,
            total_amount=base_price + gst_amount,
        )
        logger.debug(
            "Priced %s for %s: %s %s (GST %s%%)",
            project_id, country, order.total_amount, currency, order.gst_percentage,
        )
        return Result.ok(order)

    async def build_order_summary(self, project_id: str, country_code: Optional[str] = None) -> Result[OrderSummary]:
        """Display-ready summary with Contract and Wallet lines and the GST line."""
        priced = await self.calculate_price(project_id, country_code)
        if priced.is_err:
            return Result.err(priced.error)  # type: ignore[arg-type]

        order: PricedOrder = priced.value  # type: ignore[assignment]

        def fmt(amount: Decimal) -> str:
            return format_amount(amount, order.currency, self._display)

        return Result.ok(
            OrderSummary(
                order=order,
                line_items=[
                    LineItem(label="Contract", amount=order.contract_price, formatted=fmt(order.contract_price)),
                    LineItem(label="Wallet", amount=order.wallet_price, formatted=fmt(order.wallet_price)),
                ],
                gst_percentage=order.gst_percentage,
                gst_amount=fmt(order.gst_amount) if order.gst_amount > 0 else None,
                subtotal=fmt(order.subtotal),
                total=fmt(order.total_amount),
            )
        )


__all__ = ["PricingEngine", "ProjectsApiDetails", "split_tariff", "to_decimal"]
