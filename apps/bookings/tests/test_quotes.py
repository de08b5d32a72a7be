"""Tests for the booking quote and payment-session use cases."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from django.test import TestCase, override_settings

from apps.bookings.application.quotes import (
    BookingQuoteBuilder,
    CreatePaymentSessionCommand,
    CreatePaymentSessionHandler,
    PrepareBookingCommand,
)
from apps.bookings.domain.intent import BookingIntent
from apps.bookings.models import Booking
from apps.students.models import Gender
from apps.users.actors import Actor
from shared.domain.errors import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
)

from .factories import (
    make_booking,
    make_fee,
    make_hostel,
    make_room,
    make_season,
    make_student,
    pay_school_fee,
)


class BookingQuoteBuilderTests(TestCase):
    def setUp(self) -> None:
        self.season = make_season()
        self.hostel = make_hostel()
        self.room = make_room(self.hostel, capacity=2)
        self.fee = make_fee(self.hostel, self.season, "50000.00")
        self.student = make_student()
        pay_school_fee(self.student, self.season)
        self.builder = BookingQuoteBuilder()

    def _command(self, **overrides) -> PrepareBookingCommand:
        data = {
            "student_id": self.student.pk,
            "hostel_id": self.hostel.pk,
            "room_id": self.room.pk,
            "season_id": self.season.pk,
        }
        data.update(overrides)
        return PrepareBookingCommand(**data)

    def test_quote_prices_room_from_hostel_fee(self) -> None:
        intent = self.builder.handle(self._command())

        self.assertEqual(intent.amount_due, Decimal("50000.00"))
        self.assertEqual(intent.fee_list_id, self.fee.pk)
        self.assertEqual(intent.student_email, self.student.email)
        self.assertEqual(Booking.objects.count(), 0)

    def test_room_specific_fee_wins_over_hostel_default(self) -> None:
        room_fee = make_fee(self.hostel, self.season, "65000.00", room=self.room)

        intent = self.builder.handle(self._command())

        self.assertEqual(intent.fee_list_id, room_fee.pk)
        self.assertEqual(intent.amount_due, Decimal("65000.00"))

    def test_rejects_invalid_ids_and_dates(self) -> None:
        with self.assertRaises(DomainValidationError):
            self.builder.handle(self._command(room_id=0))
        with self.assertRaises(DomainValidationError) as ctx:
            self.builder.handle(
                self._command(check_in_date=date(2025, 9, 10), check_out_date=date(2025, 9, 1))
            )
        self.assertEqual(ctx.exception.code, "invalid_dates")

    def test_graduated_student_is_not_found(self) -> None:
        self.student.is_graduated = True
        self.student.save()

        with self.assertRaises(NotFoundError):
            self.builder.handle(self._command())

    def test_missing_gender_is_rejected(self) -> None:
        self.student.gender = None
        self.student.save()

        with self.assertRaises(DomainValidationError) as ctx:
            self.builder.handle(self._command())
        self.assertEqual(ctx.exception.code, "missing_gender")

    def test_room_of_other_hostel_is_not_found(self) -> None:
        other_room = make_room(make_hostel())

        with self.assertRaises(NotFoundError):
            self.builder.handle(self._command(room_id=other_room.pk))

    def test_closed_season_is_not_found(self) -> None:
        self.season.is_complete = True
        self.season.save()

        with self.assertRaises(NotFoundError):
            self.builder.handle(self._command())

    def test_full_room_conflicts(self) -> None:
        make_booking(make_student(), self.room, self.season)
        make_booking(make_student(), self.room, self.season)

        with self.assertRaises(ConflictError) as ctx:
            self.builder.handle(self._command())
        self.assertEqual(ctx.exception.code, "room_full")

    def test_pending_bookings_do_not_fill_the_room(self) -> None:
        make_booking(make_student(), self.room, self.season, status=Booking.Status.PENDING)
        make_booking(make_student(), self.room, self.season, status=Booking.Status.PENDING)

        intent = self.builder.handle(self._command())

        self.assertEqual(intent.room_id, self.room.pk)

    def test_unavailable_room_conflicts(self) -> None:
        self.room.is_available = False
        self.room.save()

        with self.assertRaises(ConflictError) as ctx:
            self.builder.handle(self._command())
        self.assertEqual(ctx.exception.code, "room_unavailable")

    def test_existing_pending_booking_conflicts(self) -> None:
        other_room = make_room(self.hostel)
        make_booking(self.student, other_room, self.season, status=Booking.Status.PENDING)

        with self.assertRaises(ConflictError) as ctx:
            self.builder.handle(self._command())
        self.assertEqual(ctx.exception.code, "existing_booking")

    def test_cancelled_booking_does_not_block(self) -> None:
        make_booking(self.student, self.room, self.season, status=Booking.Status.CANCELLED, is_active=False)

        intent = self.builder.handle(self._command())

        self.assertEqual(intent.student_id, self.student.pk)

    def test_unpaid_school_fee_is_forbidden(self) -> None:
        student = make_student()

        with self.assertRaises(ForbiddenError) as ctx:
            self.builder.handle(self._command(student_id=student.pk))
        self.assertEqual(ctx.exception.code, "school_fee_unpaid")

    def test_gender_restricted_hostel_has_no_fee(self) -> None:
        self.hostel.gender = Gender.FEMALE
        self.hostel.save()

        with self.assertRaises(NotFoundError) as ctx:
            self.builder.handle(self._command())
        self.assertEqual(ctx.exception.code, "fee_not_found")

    def test_inactive_fee_is_ignored(self) -> None:
        self.fee.is_active = False
        self.fee.save()

        with self.assertRaises(NotFoundError):
            self.builder.handle(self._command())


@override_settings(CARD_GATEWAY_MIN_AMOUNT=100)
class CreatePaymentSessionHandlerTests(TestCase):
    def setUp(self) -> None:
        self.season = make_season()
        self.hostel = make_hostel()
        self.room = make_room(self.hostel, capacity=1)
        self.fee = make_fee(self.hostel, self.season, "50000.00")
        self.student = make_student()
        pay_school_fee(self.student, self.season)
        self.intent = BookingQuoteBuilder().handle(
            PrepareBookingCommand(
                student_id=self.student.pk,
                hostel_id=self.hostel.pk,
                room_id=self.room.pk,
                season_id=self.season.pk,
            )
        )
        self.gateway = MagicMock()
        self.gateway.create_checkout_session.return_value = {
            "session_id": "cs_test_123",
            "checkout_url": "https://checkout.stripe.test/cs_test_123",
        }
        self.handler = CreatePaymentSessionHandler(gateway=self.gateway)
        self.actor = Actor(kind=Actor.STUDENT, id=self.student.pk)

    def test_session_carries_intent_as_metadata(self) -> None:
        result = self.handler.handle(CreatePaymentSessionCommand(intent=self.intent), self.actor)

        self.assertEqual(result["session_id"], "cs_test_123")
        self.assertTrue(result["reference"].startswith("UMS-HB-"))
        kwargs = self.gateway.create_checkout_session.call_args.kwargs
        self.assertEqual(kwargs["amount"], Decimal("50000.00"))
        self.assertEqual(kwargs["customer_email"], self.student.email)
        metadata = kwargs["metadata"]
        self.assertEqual(metadata["paymentReference"], result["reference"])
        self.assertEqual(BookingIntent.from_metadata(metadata).room_id, self.room.pk)

    def test_foreign_intent_is_forbidden(self) -> None:
        other = make_student()

        with self.assertRaises(ForbiddenError):
            self.handler.handle(
                CreatePaymentSessionCommand(intent=self.intent),
                Actor(kind=Actor.STUDENT, id=other.pk),
            )
        self.gateway.create_checkout_session.assert_not_called()

    def test_tampered_amount_is_rejected(self) -> None:
        tampered = BookingIntent.from_mapping({**self.intent.to_dict(), "amount_due": "10.00"})

        with self.assertRaises(DomainValidationError) as ctx:
            self.handler.handle(CreatePaymentSessionCommand(intent=tampered), self.actor)
        self.assertEqual(ctx.exception.code, "stale_quote")

    def test_full_room_conflicts_before_charging(self) -> None:
        make_booking(make_student(), self.room, self.season)

        with self.assertRaises(ConflictError):
            self.handler.handle(CreatePaymentSessionCommand(intent=self.intent), self.actor)
        self.gateway.create_checkout_session.assert_not_called()

    def test_amount_below_card_minimum_is_rejected(self) -> None:
        self.fee.amount = Decimal("50.00")
        self.fee.save()
        intent = BookingIntent.from_mapping({**self.intent.to_dict(), "amount_due": "50.00"})

        with self.assertRaises(DomainValidationError) as ctx:
            self.handler.handle(CreatePaymentSessionCommand(intent=intent), self.actor)
        self.assertEqual(ctx.exception.code, "amount_below_minimum")
