"""Persistence access for bookings."""

from __future__ import annotations

from apps.hostels.models import Room
from shared.domain.errors import NotFoundError
from shared.infrastructure.db import lock_queryset_if_possible

from .models import Booking


class BookingRepository:
    def get(self, booking_id: int, *, lock: bool = False) -> Booking:
        qs = Booking.objects.filter(pk=booking_id)
        if lock:
            qs = lock_queryset_if_possible(qs)
        booking = qs.select_related("room", "hostel", "season", "student").first()
        if booking is None:
            raise NotFoundError("Booking not found.", code="booking_not_found")
        return booking

    def lock_room(self, room_id: int) -> Room:
        """
        Take the row lock that serializes every admission decision for the
        room. Must be called inside a transaction.
        """
        room = lock_queryset_if_possible(Room.objects.filter(pk=room_id)).first()
        if room is None:
            raise NotFoundError("Selected room not found.", code="room_not_found")
        return room

    def count_occupancy(self, room_id: int, season_id: int, *, exclude_booking_id: int | None = None) -> int:
        qs = Booking.objects.occupying(room_id, season_id)
        if exclude_booking_id is not None:
            qs = qs.exclude(pk=exclude_booking_id)
        return qs.count()

    def has_blocking_booking(self, student_id: int, season_id: int) -> bool:
        return Booking.objects.blocking_student(student_id, season_id).exists()

    def create(self, **fields) -> Booking:
        return Booking.objects.create(**fields)

    def save(self, booking: Booking, update_fields: list[str] | None = None) -> None:
        if update_fields is not None and "updated_at" not in update_fields:
            update_fields = [*update_fields, "updated_at"]
        booking.save(update_fields=update_fields)

    def for_student(self, student_id: int):
        return (
            Booking.objects.filter(student_id=student_id)
            .select_related("hostel", "room", "season", "fee_list", "student")
            .prefetch_related("payments")
        )

    def roommates(self, student_id: int, season_id: int):
        """Other students with an active PAID booking in the student's room."""
        own = (
            Booking.objects.filter(
                student_id=student_id,
                season_id=season_id,
                status=Booking.Status.PAID,
                is_active=True,
            )
            .order_by("-created_at")
            .first()
        )
        if own is None:
            return own, Booking.objects.none()
        others = (
            Booking.objects.occupying(own.room_id, season_id)
            .exclude(student_id=student_id)
            .select_related("student")
            .order_by("student__name")
        )
        return own, others
