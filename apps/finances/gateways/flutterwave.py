"""Flutterwave transaction verification."""

from __future__ import annotations

import logging
from urllib.parse import quote

from django.conf import settings  # type: ignore

from apps.finances.choices import PaymentChannel
from shared.domain.errors import PaymentGatewayError
from shared.domain.value_objects import Money

from .base import JSONVerifyGateway, VerificationResult

logger = logging.getLogger(__name__)


class FlutterwaveGateway(JSONVerifyGateway):
    channel = PaymentChannel.FLUTTERWAVE
    secret_setting = "FLUTTERWAVE_SECRET_KEY"

    def verify(self, external_reference: str, expected_tx_ref: str | None = None, **options) -> VerificationResult:
        """
        ``external_reference`` is Flutterwave's numeric transaction id. When
        ``expected_tx_ref`` is given the transaction only counts as
        successful if it was raised for that tx_ref.
        """
        logger.info(
            f"Verifying Flutterwave payment for transaction ID: {external_reference}, tx_ref: {expected_tx_ref}"
        )
        base_url = getattr(settings, "FLUTTERWAVE_API_BASE_URL", "https://api.flutterwave.com/v3").rstrip("/")
        data = self._get_json(f"{base_url}/transactions/{quote(str(external_reference), safe='')}/verify")

        try:
            # Flutterwave already reports major units
            amount = Money(data.get("amount", 0)).amount
        except ValueError as e:
            raise PaymentGatewayError(channel=self.channel) from e

        gateway_status = str(data.get("status") or "")
        tx_ref = str(data.get("tx_ref") or "").strip()
        success = gateway_status == "successful"
        if expected_tx_ref is not None and tx_ref != expected_tx_ref.strip():
            logger.error(
                f"Flutterwave tx_ref mismatch for transaction {external_reference}: "
                f"expected {expected_tx_ref}, received {tx_ref}"
            )
            success = False

        meta = data.get("meta")
        return VerificationResult(
            success=success,
            amount_paid=amount,
            transaction_id=str(data.get("id") or external_reference),
            channel=self.channel,
            status=gateway_status,
            reference=f"UMS-{tx_ref}" if tx_ref else None,
            metadata=meta if isinstance(meta, dict) else {},
            raw=data,
        )
