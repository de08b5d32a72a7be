"""
Capacity admission control.

A room admits a new PAID booking for a season only while it is physically
available and its occupancy is below capacity. Occupancy counts active,
fully-paid bookings; pending and partial bookings do not hold a slot.

The check is advisory when made without a lock (quote, session creation)
and authoritative when made after ``BookingRepository.lock_room`` inside
the committing transaction.
"""

from __future__ import annotations

import logging

from shared.domain.errors import ConflictError

logger = logging.getLogger(__name__)


class CapacityAdmissionController:
    def __init__(self, booking_repo=None):
        if booking_repo is None:
            from apps.bookings.repositories import BookingRepository

            booking_repo = BookingRepository()
        self.booking_repo = booking_repo

    def occupancy(self, room_id: int, season_id: int, *, exclude_booking_id: int | None = None) -> int:
        return self.booking_repo.count_occupancy(room_id, season_id, exclude_booking_id=exclude_booking_id)

    def admit(self, room, season_id: int, *, exclude_booking_id: int | None = None) -> bool:
        if not room.is_available:
            return False
        return self.occupancy(room.pk, season_id, exclude_booking_id=exclude_booking_id) < room.capacity

    def ensure_admissible(self, room, season_id: int, *, exclude_booking_id: int | None = None) -> None:
        """Raise ConflictError explaining why the room cannot take another booking."""
        if not room.is_available:
            raise ConflictError(
                "Selected room is physically not available for booking.",
                code="room_unavailable",
            )
        occupied = self.occupancy(room.pk, season_id, exclude_booking_id=exclude_booking_id)
        if occupied >= room.capacity:
            logger.info(f"Room {room.pk} full for season {season_id}: {occupied}/{room.capacity}")
            raise ConflictError(
                f"Room {room.room_number} is fully booked for this season. "
                f"It has reached its capacity of {room.capacity}.",
                code="room_full",
            )
