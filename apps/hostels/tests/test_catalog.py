"""Tests for hostel catalog lookups and fee resolution."""

from __future__ import annotations

from decimal import Decimal

from django.test import TestCase

from apps.bookings.tests.factories import make_fee, make_hostel, make_room, make_season
from apps.hostels.services import HostelCatalog
from apps.students.models import Gender
from shared.domain.errors import DomainValidationError, NotFoundError


class HostelCatalogTests(TestCase):
    def setUp(self) -> None:
        self.season = make_season()
        self.hostel = make_hostel()
        self.room = make_room(self.hostel)
        self.catalog = HostelCatalog()

    def test_newest_hostel_wide_fee_wins(self) -> None:
        make_fee(self.hostel, self.season, "40000.00")
        newest = make_fee(self.hostel, self.season, "45000.00")

        fee = self.catalog.resolve_fee(self.hostel, self.room, self.season.pk, Gender.MALE)

        self.assertEqual(fee.pk, newest.pk)

    def test_single_gender_hostel_rejects_other_gender(self) -> None:
        hostel = make_hostel(gender=Gender.FEMALE)
        room = make_room(hostel)
        make_fee(hostel, self.season, "40000.00")

        self.assertEqual(
            self.catalog.resolve_fee(hostel, room, self.season.pk, Gender.FEMALE).amount,
            Decimal("40000.00"),
        )
        with self.assertRaises(NotFoundError):
            self.catalog.resolve_fee(hostel, room, self.season.pk, Gender.MALE)

    def test_room_lookup_is_scoped_to_hostel(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self.catalog.get_room(self.room.pk, make_hostel().pk)
        self.assertEqual(ctx.exception.code, "room_not_found")

    def test_inactive_season_is_not_open(self) -> None:
        closed = make_season(is_active=False)

        with self.assertRaises(NotFoundError):
            self.catalog.get_open_season(closed.pk)
        self.assertEqual(self.catalog.get_season(closed.pk), closed)

    def test_quote_with_changed_price_is_stale(self) -> None:
        fee = make_fee(self.hostel, self.season, "40000.00")

        with self.assertRaises(DomainValidationError) as ctx:
            self.catalog.confirm_quoted_fee(
                fee_list_id=fee.pk,
                amount_due=Decimal("35000.00"),
                hostel=self.hostel,
                room=self.room,
                season_id=self.season.pk,
                gender=Gender.MALE,
            )
        self.assertEqual(ctx.exception.code, "stale_quote")
