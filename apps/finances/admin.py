"""Admin registration for payment receipts."""

from __future__ import annotations

from django.contrib import admin

from .models import PaymentReceipt


@admin.register(PaymentReceipt)
class PaymentReceiptAdmin(admin.ModelAdmin):
    list_display = (
        "reference",
        "student",
        "channel",
        "status",
        "amount_expected",
        "amount_paid",
        "payment_date",
    )
    list_filter = ("status", "channel", "season")
    search_fields = ("reference", "transaction_id", "student__name", "student__reg_no")
    raw_id_fields = ("student", "booking", "school_fee")
    readonly_fields = ("reference", "transaction_id", "gateway_response", "created_at", "updated_at")
