"""
Country currency lookup and amount formatting.

Currencies are resolved from the bundled ``data/countries.json`` table: the
first listed currency of a country wins, and unknown countries fall back to
the default currency (SGD).
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from importlib import resources
from typing import Any, Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "SGD"
COUNTRIES_RESOURCE = "data/countries.json"


@dataclass(frozen=True)
class SupportedCurrency:
    """Display settings for a currency."""
    code: str  # ISO 4217 code
    name: str
    symbol: str
    decimal_places: int = 2


DEFAULT_CURRENCIES: Dict[str, SupportedCurrency] = {
    "SGD": SupportedCurrency(
        code="SGD", name="Singapore Dollar", symbol="S$", decimal_places=2
    ),
    "USD": SupportedCurrency(
        code="USD", name="US Dollar", symbol="$", decimal_places=2
    ),
    "EUR": SupportedCurrency(
        code="EUR", name="Euro", symbol="€", decimal_places=2
    ),
    "GBP": SupportedCurrency(
        code="GBP", name="British Pound", symbol="£", decimal_places=2
    ),
    "JPY": SupportedCurrency(
        code="JPY", name="Japanese Yen", symbol="¥", decimal_places=0
    ),
    "KRW": SupportedCurrency(
        code="KRW", name="South Korean Won", symbol="₩", decimal_places=0
    ),
    "AUD": SupportedCurrency(
        code="AUD", name="Australian Dollar", symbol="A$", decimal_places=2
    ),
    "CAD": SupportedCurrency(
        code="CAD", name="Canadian Dollar", symbol="CA$", decimal_places=2
    ),
    "HKD": SupportedCurrency(
        code="HKD", name="Hong Kong Dollar", symbol="HK$", decimal_places=2
    ),
    "INR": SupportedCurrency(
        code="INR", name="Indian Rupee", symbol="₹", decimal_places=2
    ),
    "MYR": SupportedCurrency(
        code="MYR", name="Malaysian Ringgit", symbol="RM", decimal_places=2
    ),
    "CHF": SupportedCurrency(
        code="CHF", name="Swiss Franc", symbol="CHF", decimal_places=2
    ),
    "CNY": SupportedCurrency(
        code="CNY", name="Chinese Yuan", symbol="CN¥", decimal_places=2
    ),
    "VND": SupportedCurrency(
        code="VND", name="Vietnamese Dong", symbol="₫", decimal_places=0
    ),
}


def decimal_places_for(currency_code: str, currencies: Mapping[str, SupportedCurrency] = DEFAULT_CURRENCIES) -> int:
    currency = currencies.get(currency_code.upper())
    return currency.decimal_places if currency else 2


def round_amount(
    amount: Decimal,
    currency_code: str,
    currencies: Mapping[str, SupportedCurrency] = DEFAULT_CURRENCIES,
) -> Decimal:
    """Round amount to the correct decimal places for the currency."""
    decimal_places = decimal_places_for(currency_code, currencies)
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return Decimal(amount).quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)


def format_amount(
    amount: Decimal,
    currency_code: str,
    currencies: Mapping[str, SupportedCurrency] = DEFAULT_CURRENCIES,
) -> str:
    """Format an amount with the currency symbol.

    Currencies without display settings are rendered as ``"1,234.50 XYZ"``.
    """
    rounded = round_amount(amount, currency_code, currencies)
    currency = currencies.get(currency_code.upper())
    if not currency:
        return f"{rounded:,.2f} {currency_code.upper()}"

    # Format based on decimal places
    if currency.decimal_places == 0:
        formatted = f"{int(rounded):,}"
    else:
        formatted = f"{rounded:,.{currency.decimal_places}f}"

    return f"{currency.symbol}{formatted}"


class CountryCurrencyTable:
    """
    ISO alpha-2 country code to currency code.

    Args:
        rows: Country records shaped like the bundled table
            (``alpha2Code`` and ``currencies[0].code``); the bundled table is
            loaded when omitted
        default: Currency for countries missing from the table
    """

    def __init__(
        self,
        rows: Optional[Iterable[Mapping[str, Any]]] = None,
        default: str = DEFAULT_CURRENCY,
    ):
        self.default = default.upper()
        self._by_country: Dict[str, str] = {}
        for row in rows if rows is not None else self._load_bundled():
            code = row.get("alpha2Code")
            currencies = row.get("currencies") or []
            if not code or not currencies:
                continue
            self._by_country[str(code).upper()] = str(currencies[0]["code"]).upper()

    @staticmethod
    def _load_bundled() -> list:
        payload = resources.files("mintology_sdk").joinpath(COUNTRIES_RESOURCE).read_text(encoding="utf-8")
        rows = json.loads(payload)
        logger.debug("Loaded %d countries from bundled currency table", len(rows))
        return rows

    def currency_for(self, country_code: Optional[str], default: Optional[str] = None) -> str:
        """Currency of a country; ``default`` (or the table default) when unknown."""
        fallback = (default or self.default).upper()
        if not country_code:
            return fallback
        return self._by_country.get(country_code.upper(), fallback)

    def __contains__(self, country_code: object) -> bool:
        return isinstance(country_code, str) and country_code.upper() in self._by_country

    def __len__(self) -> int:
        return len(self._by_country)


__all__ = [
    "CountryCurrencyTable",
    "DEFAULT_CURRENCIES",
    "DEFAULT_CURRENCY",
    "SupportedCurrency",
    "format_amount",
    "round_amount",
]
