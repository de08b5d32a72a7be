"""Payment receipts for hostel bookings and school fees."""

from __future__ import annotations

import secrets
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .choices import PaymentChannel, PaymentStatus


def generate_payment_reference(prefix: str | None = None) -> str:
    """``UMS-HB-<yyyymmddHHMMSS>-<random>``; the suffix keeps same-second references unique."""
    prefix = prefix or getattr(settings, "PAYMENT_REFERENCE_PREFIX", "UMS-HB")
    stamp = timezone.now().strftime("%Y%m%d%H%M%S")
    return f"{prefix}-{stamp}-{secrets.token_hex(3).upper()}"


class PaymentReceipt(models.Model):
    """
    One payment event (or, while PENDING, an invoice awaiting payment).

    ``reference`` is generated here and globally unique. ``transaction_id``
    is assigned by the gateway; together with ``channel`` it identifies a
    single external payment and makes completion replay-safe.
    """

    Status = PaymentStatus
    Channel = PaymentChannel

    student = models.ForeignKey(
        "students.Student",
        on_delete=models.CASCADE,
        related_name="payment_receipts",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    school_fee = models.ForeignKey(
        "students.SchoolFee",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    season = models.ForeignKey(
        "hostels.Season",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payment_receipts",
    )
    amount_expected = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    reference = models.CharField(max_length=64, unique=True)
    transaction_id = models.CharField(max_length=128, null=True, blank=True)
    channel = models.CharField(max_length=20, choices=PaymentChannel.choices)
    description = models.CharField(max_length=255, blank=True)
    gateway_response = models.JSONField(default=dict, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment receipt")
        verbose_name_plural = _("Payment receipts")
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["transaction_id", "channel"],
                condition=models.Q(transaction_id__isnull=False),
                name="receipt_unique_gateway_transaction",
            ),
        ]
        indexes = [
            models.Index(fields=["booking", "status"], name="receipt_booking_status_idx"),
            models.Index(fields=["student", "season"], name="receipt_student_season_idx"),
        ]

    def __str__(self) -> str:
        return f"Receipt {self.reference} ({self.status})"
