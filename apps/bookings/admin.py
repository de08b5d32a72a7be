"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "student",
        "hostel",
        "room",
        "season",
        "status",
        "is_active",
        "amount_due",
        "amount_paid",
        "created_at",
    )
    list_filter = ("status", "is_active", "season", "hostel")
    search_fields = ("booking_code", "student__name", "student__reg_no", "student__email")
    raw_id_fields = ("student", "room", "fee_list")
    readonly_fields = (
        "booking_code",
        "amount_paid",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
