"""Choice sets shared by fee bills and payment receipts."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PaymentStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    PAID = "paid", _("Paid")
    PARTIAL = "partial", _("Partially paid")
    WAIVED = "waived", _("Waived")
    OVERDUE = "overdue", _("Overdue")
    CANCELLED = "cancelled", _("Cancelled")


class PaymentChannel(models.TextChoices):
    STRIPE = "stripe", _("Stripe (card)")
    PAYSTACK = "paystack", _("Paystack")
    FLUTTERWAVE = "flutterwave", _("Flutterwave")
    BANK_TRANSFER = "bank_transfer", _("Bank transfer")
