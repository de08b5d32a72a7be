"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.domain.intent import BookingIntent
from apps.finances.models import PaymentReceipt

from .models import Booking


class PrepareBookingSerializer(serializers.Serializer):
    """Room selection submitted by a student asking for a quote."""

    hostel_id = serializers.IntegerField(min_value=1)
    room_id = serializers.IntegerField(min_value=1)
    season_id = serializers.IntegerField(min_value=1)
    check_in_date = serializers.DateField(required=False, allow_null=True)
    check_out_date = serializers.DateField(required=False, allow_null=True)
    payment_deadline = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, attrs):  # type: ignore
        check_in = attrs.get("check_in_date")
        check_out = attrs.get("check_out_date")
        if check_in and check_out and check_out <= check_in:
            raise serializers.ValidationError("Check-out date must be after check-in date.")
        return attrs


class AllocateRoomSerializer(PrepareBookingSerializer):
    student_id = serializers.IntegerField(min_value=1)


class BookingDetailsField(serializers.DictField):
    """
    A quote echoed back by the client. Parsed into a ``BookingIntent``;
    malformed details surface as a domain validation error.
    """

    def to_internal_value(self, data):  # type: ignore
        details = super().to_internal_value(data)
        return BookingIntent.from_mapping(details)


class CreatePaymentSessionSerializer(serializers.Serializer):
    booking_details = BookingDetailsField()


class CompletePaymentSerializer(serializers.Serializer):
    session_id = serializers.CharField(max_length=255, trim_whitespace=True)


class VerifyPaystackSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=128, trim_whitespace=True)
    booking_details = BookingDetailsField()


class VerifyFlutterwaveSerializer(serializers.Serializer):
    transaction_id = serializers.CharField(max_length=128, trim_whitespace=True)
    tx_ref = serializers.CharField(max_length=128, trim_whitespace=True)
    booking_details = BookingDetailsField()


class BookingStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices, required=False)
    is_active = serializers.BooleanField(required=False)
    payment_deadline = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, attrs):  # type: ignore
        if not attrs:
            raise serializers.ValidationError("No data for update.")
        return attrs


class PaymentSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentReceipt
        fields = [
            "id",
            "reference",
            "transaction_id",
            "channel",
            "status",
            "amount_expected",
            "amount_paid",
            "payment_date",
            "created_at",
        ]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Booking with its room, season and payment trail."""

    student_id = serializers.ReadOnlyField(source="student.id")
    student_name = serializers.ReadOnlyField(source="student.name")
    student_reg_no = serializers.ReadOnlyField(source="student.reg_no")
    hostel_id = serializers.ReadOnlyField(source="hostel.id")
    hostel_name = serializers.ReadOnlyField(source="hostel.name")
    room_id = serializers.ReadOnlyField(source="room.id")
    room_number = serializers.ReadOnlyField(source="room.room_number")
    season_id = serializers.ReadOnlyField(source="season.id")
    season_name = serializers.ReadOnlyField(source="season.name")
    balance = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    payments = PaymentSummarySerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "student_id",
            "student_name",
            "student_reg_no",
            "hostel_id",
            "hostel_name",
            "room_id",
            "room_number",
            "season_id",
            "season_name",
            "fee_list",
            "amount_due",
            "amount_paid",
            "balance",
            "status",
            "is_active",
            "check_in_date",
            "check_out_date",
            "payment_deadline",
            "cancelled_at",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RoommateSerializer(serializers.ModelSerializer):
    student_id = serializers.ReadOnlyField(source="student.id")
    name = serializers.ReadOnlyField(source="student.name")
    reg_no = serializers.ReadOnlyField(source="student.reg_no")
    email = serializers.ReadOnlyField(source="student.email")

    class Meta:
        model = Booking
        fields = ["student_id", "name", "reg_no", "email", "check_in_date", "check_out_date"]
        read_only_fields = fields
