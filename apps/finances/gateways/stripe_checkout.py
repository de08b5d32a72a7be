"""Stripe Checkout: hosted card payments."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

import stripe
from django.conf import settings  # type: ignore

from apps.finances.choices import PaymentChannel
from shared.domain.errors import DomainValidationError, PaymentGatewayError
from shared.domain.value_objects import Money

from .base import PaymentGateway, VerificationResult

logger = logging.getLogger(__name__)


def _as_plain_dict(obj: Any) -> dict[str, Any]:
    """Turn a StripeObject (or a plain dict) into JSON-serializable data."""
    if type(obj) is dict:
        return obj
    for attr in ("to_dict_recursive", "to_dict"):
        converter = getattr(obj, attr, None)
        if callable(converter):
            return converter()
    return json.loads(str(obj))


class StripeCheckoutGateway(PaymentGateway):
    channel = PaymentChannel.STRIPE
    secret_setting = "STRIPE_SECRET_KEY"

    def create_checkout_session(
        self,
        *,
        amount: Decimal,
        customer_email: str,
        metadata: dict[str, str],
        purpose: str = "hostelBooking",
        description: str = "Hostel Booking Payment",
    ) -> dict[str, str]:
        """
        Open a hosted checkout page for ``amount`` naira. ``metadata`` is
        echoed back by Stripe on retrieval and carries the booking intent.
        """
        currency = getattr(settings, "PAYMENT_CURRENCY", "NGN")
        portal_url = getattr(settings, "STUDENT_PORTAL_URL", "http://localhost:3000").rstrip("/")
        unit_amount = Money(amount, currency).to_minor_units()
        try:
            session = stripe.checkout.Session.create(
                api_key=self.get_secret_key(),
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": currency.lower(),
                            "product_data": {"name": description},
                            "unit_amount": unit_amount,
                        },
                        "quantity": 1,
                    }
                ],
                mode="payment",
                customer_email=customer_email,
                metadata=metadata,
                success_url=f"{portal_url}/payment-status?session_id={{CHECKOUT_SESSION_ID}}&purpose={purpose}",
                cancel_url=f"{portal_url}/payment-status?status=cancelled&purpose={purpose}",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session creation failed: {e}")
            raise PaymentGatewayError(channel=self.channel) from e

        data = _as_plain_dict(session)
        logger.info(f"Created Stripe checkout session {data.get('id')} for reference {metadata.get('paymentReference')}")
        return {"session_id": data.get("id", ""), "checkout_url": data.get("url") or ""}

    def verify(self, external_reference: str, **options) -> VerificationResult:
        logger.info(f"Retrieving Stripe checkout session: {external_reference}")
        try:
            session = stripe.checkout.Session.retrieve(external_reference, api_key=self.get_secret_key())
        except stripe.InvalidRequestError as e:
            logger.warning(f"Stripe does not recognise session {external_reference}: {e}")
            raise DomainValidationError(
                "Checkout session could not be found.",
                code="verification_failed",
            ) from e
        except stripe.StripeError as e:
            logger.error(f"Stripe session retrieval failed for {external_reference}: {e}")
            raise PaymentGatewayError(channel=self.channel) from e

        data = _as_plain_dict(session)
        try:
            amount = Money.from_minor_units(data.get("amount_total") or 0).amount
        except ValueError as e:
            raise PaymentGatewayError(channel=self.channel) from e

        payment_intent = data.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")
        metadata = data.get("metadata") or {}
        payment_status = str(data.get("payment_status") or "")
        return VerificationResult(
            success=payment_status == "paid",
            amount_paid=amount,
            transaction_id=str(payment_intent or data.get("id") or external_reference),
            channel=self.channel,
            status=payment_status,
            reference=metadata.get("paymentReference"),
            metadata=dict(metadata),
            raw=data,
        )
