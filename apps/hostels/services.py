"""Catalog lookups used by the booking flow."""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db.models import Q  # type: ignore

from shared.domain.errors import DomainValidationError, NotFoundError

from .models import Hostel, HostelFeeList, Room, Season

logger = logging.getLogger(__name__)


class HostelCatalog:
    def get_hostel(self, hostel_id: int) -> Hostel:
        hostel = Hostel.objects.filter(pk=hostel_id).first()
        if hostel is None:
            raise NotFoundError("Hostel not found.", code="hostel_not_found")
        return hostel

    def get_room(self, room_id: int, hostel_id: int) -> Room:
        room = Room.objects.select_related("hostel").filter(pk=room_id, hostel_id=hostel_id).first()
        if room is None:
            raise NotFoundError("Room not found in specified hostel.", code="room_not_found")
        return room

    def get_open_season(self, season_id: int) -> Season:
        season = Season.objects.open_for_booking().filter(pk=season_id).first()
        if season is None:
            raise NotFoundError("Season not found or not open for booking.", code="season_not_found")
        return season

    def get_season(self, season_id: int) -> Season:
        season = Season.objects.filter(pk=season_id).first()
        if season is None:
            raise NotFoundError("Season not found.", code="season_not_found")
        return season

    def resolve_fee(self, hostel: Hostel, room: Room, season_id: int, gender: str | None) -> HostelFeeList:
        """
        Pick the fee entry that prices ``room`` for the season.

        A room-specific entry wins over a hostel-wide one. The hostel must
        be mixed or match the student's gender.
        """
        if not hostel.accepts_gender(gender):
            raise NotFoundError(
                "No applicable hostel fee configured for the selected hostel, room, and season.",
                code="fee_not_found",
            )
        active = HostelFeeList.objects.filter(hostel=hostel, season_id=season_id, is_active=True)
        fee = active.filter(room=room).order_by("-created_at", "-id").first()
        if fee is None:
            fee = active.filter(room__isnull=True).order_by("-created_at", "-id").first()
        if fee is None:
            raise NotFoundError(
                "No applicable hostel fee configured for the selected hostel, room, and season.",
                code="fee_not_found",
            )
        return fee

    def quote_matches_fee(
        self,
        *,
        fee_list_id: int | None,
        amount_due: Decimal,
        hostel_id: int,
        room: Room,
        season_id: int,
    ) -> bool:
        """
        Whether a paid quote is honoured. The fee entry named by the quote
        must price this room and season at the quoted amount; a newer or
        deactivated entry does not invalidate it. Quotes without a fee
        entry are checked against the current one.
        """
        scope = HostelFeeList.objects.filter(hostel_id=hostel_id, season_id=season_id).filter(
            Q(room__isnull=True) | Q(room_id=room.pk)
        )
        if fee_list_id is not None:
            fee = scope.filter(pk=fee_list_id).first()
        else:
            active = scope.filter(is_active=True).order_by("-created_at", "-id")
            fee = active.filter(room_id=room.pk).first() or active.filter(room__isnull=True).first()
        if fee is None:
            logger.warning(f"No fee entry {fee_list_id} for hostel {hostel_id}, room {room.pk}, season {season_id}")
            return False
        return fee.amount == amount_due

    def confirm_quoted_fee(
        self,
        *,
        fee_list_id: int | None,
        amount_due: Decimal,
        hostel: Hostel,
        room: Room,
        season_id: int,
        gender: str | None,
    ) -> HostelFeeList:
        """Reject a quote whose price no longer matches the catalog."""
        fee = self.resolve_fee(hostel, room, season_id, gender)
        if fee_list_id is not None and fee.pk != fee_list_id:
            logger.warning(f"Quoted fee list {fee_list_id} differs from current {fee.pk} for room {room.pk}")
            raise DomainValidationError(
                "The hostel fee has changed. Please prepare the booking again.",
                code="stale_quote",
            )
        if fee.amount != amount_due:
            logger.warning(f"Quoted amount {amount_due} differs from fee {fee.pk} amount {fee.amount}")
            raise DomainValidationError(
                "The quoted amount does not match the hostel fee. Please prepare the booking again.",
                code="stale_quote",
            )
        return fee
