"""Lookup of gateway adapters by payment channel."""

from __future__ import annotations

from apps.finances.choices import PaymentChannel

from .base import PaymentGateway
from .flutterwave import FlutterwaveGateway
from .paystack import PaystackGateway
from .stripe_checkout import StripeCheckoutGateway

GATEWAYS: dict[str, type[PaymentGateway]] = {
    PaymentChannel.STRIPE: StripeCheckoutGateway,
    PaymentChannel.PAYSTACK: PaystackGateway,
    PaymentChannel.FLUTTERWAVE: FlutterwaveGateway,
}


def get_gateway(channel: str) -> PaymentGateway:
    try:
        return GATEWAYS[channel]()
    except KeyError:
        raise ValueError(f"No payment gateway for channel {channel!r}") from None
