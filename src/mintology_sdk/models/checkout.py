"""Checkout request and receipt models."""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import ConfigDict, Field

from .base import MintologyModel


class BillingDetails(MintologyModel):
    """Billing fields posted by the checkout form."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    full_name: str = ""
    email: str = ""
    phone: str = ""
    country: str = "SG"


class PaymentRequest(MintologyModel):
    """A checkout submission for one project."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    project_id: str = Field(default="", alias="pid")
    billing: BillingDetails = Field(default_factory=BillingDetails)
    payment_method: str = Field(default="", alias="paymentMethod")


class ChargeReceipt(MintologyModel):
    """A successful charge."""

    project_id: str
    amount: Decimal
    currency: str
    status: str
    charge_id: Optional[str] = None
    message: str = "Well done! Your payment was successful."
    raw: Optional[Any] = Field(default=None, repr=False)
