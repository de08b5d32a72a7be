"""Paystack transaction verification."""

from __future__ import annotations

import logging
from urllib.parse import quote

from django.conf import settings  # type: ignore

from apps.finances.choices import PaymentChannel
from shared.domain.errors import PaymentGatewayError
from shared.domain.value_objects import Money

from .base import JSONVerifyGateway, VerificationResult

logger = logging.getLogger(__name__)


class PaystackGateway(JSONVerifyGateway):
    channel = PaymentChannel.PAYSTACK
    secret_setting = "PAYSTACK_SECRET_KEY"

    def verify(self, external_reference: str, **options) -> VerificationResult:
        logger.info(f"Verifying Paystack payment for reference: {external_reference}")
        base_url = getattr(settings, "PAYSTACK_API_BASE_URL", "https://api.paystack.co").rstrip("/")
        data = self._get_json(f"{base_url}/transaction/verify/{quote(external_reference, safe='')}")

        try:
            # Paystack reports amounts in kobo
            amount = Money.from_minor_units(data.get("amount", 0)).amount
        except ValueError as e:
            raise PaymentGatewayError(channel=self.channel) from e

        gateway_status = str(data.get("status") or "")
        metadata = data.get("metadata")
        return VerificationResult(
            success=gateway_status == "success",
            amount_paid=amount,
            transaction_id=str(data.get("reference") or external_reference),
            channel=self.channel,
            status=gateway_status,
            reference=None,
            metadata=metadata if isinstance(metadata, dict) else {},
            raw=data,
        )
