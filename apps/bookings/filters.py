"""FilterSet definitions for booking listings."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import Q  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    """Filters used by the administrative booking list and my-bookings."""

    hostel = django_filters.NumberFilter(field_name="hostel_id", lookup_expr="exact")
    room = django_filters.NumberFilter(field_name="room_id", lookup_expr="exact")
    season = django_filters.NumberFilter(field_name="season_id", lookup_expr="exact")
    status = django_filters.ChoiceFilter(choices=Booking.Status.choices)
    is_active = django_filters.BooleanFilter(field_name="is_active")

    # matches student name, registration number, email or booking code
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Booking
        fields = ["hostel", "room", "season", "status", "is_active"]

    def filter_search(self, queryset, name, value):  # type: ignore
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(student__name__icontains=value)
            | Q(student__reg_no__icontains=value)
            | Q(student__email__icontains=value)
            | Q(booking_code__iexact=value)
        )
