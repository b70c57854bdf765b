"""
Checkout flow: validate billing details, price the order and charge it.

Billing fields are checked in a fixed order and the first failure is
returned. Invalid input never reaches the network.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from .models.checkout import ChargeReceipt, PaymentRequest
from .models.errors import PaymentDeclinedError, UpstreamError, ValidationError
from .models.result import Result
from .pricing import PricingEngine
from .resources.payments import PaymentsResource

logger = logging.getLogger(__name__)

CHARGE_SUCCEEDED = "succeeded"

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)+$")


def is_valid_email(email: str) -> bool:
    return bool(email) and len(email) <= 254 and EMAIL_PATTERN.match(email) is not None


def validate_request(request: PaymentRequest) -> Optional[ValidationError]:
    """First billing problem of the request, or None when it can be charged."""
    billing = request.billing
    if not billing.full_name:
        return ValidationError("Please enter Full name!", field="full_name", code="FNAME_EMPTY")
    if not billing.email:
        return ValidationError("Please enter Email address!", field="email", code="EMAIL_EMPTY")
    if not is_valid_email(billing.email):
        return ValidationError("Email address is invalid!", field="email", code="EMAIL_INVALID")
    if not billing.phone:
        return ValidationError("Please enter Phone number!", field="phone", code="PHONE_EMPTY")
    if not request.payment_method:
        return ValidationError(
            "Something went wrong due to attaching the payment method!",
            field="payment_method",
            code="PAYMENT_ISSUE_ATTACH",
        )
    return None


class CheckoutService:
    """
    Processes checkout submissions.

    Args:
        pricing: Engine used to price the order
        payments: Resource used to charge the payment method
    """

    def __init__(self, pricing: PricingEngine, payments: PaymentsResource):
        self._pricing = pricing
        self._payments = payments

    async def process_payment(self, request: PaymentRequest) -> Result[ChargeReceipt]:
        """Validate, price and charge a checkout submission.

        Returns:
            ``ok(ChargeReceipt)`` when the charge status is ``succeeded``;
            ``err(ValidationError)`` for bad input, the pricing error, or
            ``err(PaymentDeclinedError)`` carrying the vendor's message.
        """
        invalid = validate_request(request)
        if invalid is not None:
            return Result.err(invalid)

        priced = await self._pricing.calculate_price(request.project_id, request.billing.country)
        if priced.is_err:
            return Result.err(priced.error)  # type: ignore[arg-type]
        order = priced.value

        charged = await self._payments.charge(
            request.payment_method,
            order.total_amount,  # type: ignore[union-attr]
            order.currency,  # type: ignore[union-attr]
            metadata={"projectId": request.project_id},
        )
        if charged.is_err:
            error = charged.error
            if isinstance(error, UpstreamError):
                logger.warning("Charge for project %s rejected: %s", request.project_id, error.message)
                return Result.err(PaymentDeclinedError(error.status_code, error.body))
            return Result.err(error)  # type: ignore[arg-type]

        payload: Dict[str, Any] = charged.value if isinstance(charged.value, dict) else {}
        status = str(payload.get("status") or "")
        if status != CHARGE_SUCCEEDED:
            logger.warning("Charge for project %s ended with status %r", request.project_id, status)
            return Result.err(PaymentDeclinedError(200, payload, message=payload.get("message") or "Your payment was not successful."))

        receipt = ChargeReceipt(
            project_id=request.project_id,
            amount=order.total_amount,  # type: ignore[union-attr]
            currency=order.currency,  # type: ignore[union-attr]
            status=status,
            charge_id=str(payload.get("id") or payload.get("chargeId") or "") or None,
            raw=payload,
        )
        logger.info("Charged %s %s for project %s", receipt.amount, receipt.currency, receipt.project_id)
        return Result.ok(receipt)


__all__ = ["CheckoutService", "is_valid_email", "validate_request"]
