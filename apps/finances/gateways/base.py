"""
Common contract for payment gateway adapters.

Every processor answers "did this transaction succeed, for how much, and
under which id" in its own dialect. Adapters translate that answer into a
``VerificationResult`` so the booking commit logic can stay generic.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import requests
from django.conf import settings  # type: ignore

from shared.domain.errors import DomainValidationError, PaymentGatewayError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    success: bool
    amount_paid: Decimal
    transaction_id: str
    channel: str
    status: str = ""
    reference: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)


class PaymentGateway(ABC):
    """One adapter per processor; stateless apart from configuration."""

    channel: str = ""
    secret_setting: str = ""

    def get_secret_key(self) -> str:
        key = getattr(settings, self.secret_setting, "")
        if not key:
            raise PaymentGatewayError(
                f"{self.channel} is not configured.",
                code="gateway_not_configured",
                channel=self.channel,
            )
        return key

    @property
    def timeout(self) -> int:
        return int(getattr(settings, "PAYMENT_GATEWAY_TIMEOUT", 30))

    @abstractmethod
    def verify(self, external_reference: str, **options) -> VerificationResult:
        """Ask the processor about ``external_reference``."""


class JSONVerifyGateway(PaymentGateway):
    """Processors that expose verification as an authenticated JSON GET."""

    def _get_json(self, url: str) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self.get_secret_key()}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.get(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"{self.channel} verification request failed: {e}")
            raise PaymentGatewayError(channel=self.channel) from e

        if 400 <= response.status_code < 500:
            logger.warning(f"{self.channel} rejected verification ({response.status_code}): {response.text[:200]}")
            raise DomainValidationError(
                "Transaction could not be verified with the payment provider.",
                code="verification_failed",
            )
        try:
            response.raise_for_status()
            payload = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"{self.channel} verification returned an unusable response: {e}")
            raise PaymentGatewayError(channel=self.channel) from e

        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            logger.error(f"{self.channel} verification payload has no data object")
            raise PaymentGatewayError(channel=self.channel)
        return payload["data"]
