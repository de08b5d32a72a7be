"""Serializers for the finance domain (payments)."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .choices import PaymentChannel
from .models import PaymentReceipt


class PaymentReceiptSerializer(serializers.ModelSerializer):
    """Receipt as shown to students and the bursary."""

    student_id = serializers.ReadOnlyField(source="student.id")
    booking_id = serializers.ReadOnlyField(source="booking.id")
    school_fee_id = serializers.ReadOnlyField(source="school_fee.id")
    season_id = serializers.ReadOnlyField(source="season.id")

    class Meta:
        model = PaymentReceipt
        fields = [
            "id",
            "student_id",
            "booking_id",
            "school_fee_id",
            "season_id",
            "reference",
            "transaction_id",
            "channel",
            "status",
            "amount_expected",
            "amount_paid",
            "description",
            "payment_date",
            "created_at",
        ]
        read_only_fields = fields


class LedgerPaymentSerializer(serializers.Serializer):
    """One incremental payment against an existing bill."""

    bill_id = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    reference = serializers.CharField(max_length=64)
    season_id = serializers.IntegerField(min_value=1)
    student_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    channel = serializers.ChoiceField(choices=PaymentChannel.choices, default=PaymentChannel.BANK_TRANSFER)
    transaction_id = serializers.CharField(max_length=128, required=False, allow_null=True, allow_blank=True)
    payment_date = serializers.DateTimeField(required=False, allow_null=True)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate_amount(self, value):  # type: ignore
        if value <= 0:
            raise serializers.ValidationError("Payment amount must be greater than zero.")
        return value
