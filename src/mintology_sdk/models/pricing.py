"""Pricing models."""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from .base import MintologyModel


class PricedOrder(MintologyModel):
    """Priced order for a project. Recomputed on every request."""

    project_id: str
    country_code: str
    currency: str
    contract_type: Optional[str] = None
    wallet_type: Optional[str] = None
    contract_price: Decimal = Decimal("0")
    wallet_price: Decimal = Decimal("0")
    base_price: Decimal = Decimal("0")
    gst_percentage: Decimal = Decimal("0")
    gst_amount: Decimal = Decimal("0")
    subtotal: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")


class LineItem(MintologyModel):
    """A single priced line on the order summary."""

    label: str
    amount: Decimal
    formatted: str


class OrderSummary(MintologyModel):
    """Display-ready order summary for the checkout page."""

    order: PricedOrder
    line_items: List[LineItem] = Field(default_factory=list)
    gst_display_name: str = "GST"
    gst_percentage: Decimal = Decimal("0")
    gst_amount: Optional[str] = None
    subtotal: str
    total: str

    @property
    def gst_label(self) -> str:
        """Label for the tax line, e.g. ``"GST 9%"`` (whole percent)."""
        return f"{self.gst_display_name} {int(self.gst_percentage)}%"
