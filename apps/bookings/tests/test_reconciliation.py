"""Tests for turning verified gateway payments into bookings."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from unittest.mock import patch

from django.db import connection
from django.test import TestCase

from apps.bookings.application.cancellation import CancelBookingCommand, CancelBookingHandler
from apps.bookings.application.reconciliation import PaymentReconciler
from apps.bookings.domain.events import RefundRequired
from apps.bookings.domain.intent import BookingIntent
from apps.bookings.models import Booking
from apps.bookings.repositories import BookingRepository
from apps.finances.choices import PaymentChannel, PaymentStatus
from apps.finances.gateways.base import PaymentGateway, VerificationResult
from apps.finances.models import PaymentReceipt
from apps.users.actors import Actor
from shared.domain.errors import (
    BookingExistsAfterPaymentError,
    CapacityLostAfterPaymentError,
    ConflictError,
    DomainValidationError,
    QuoteMismatchAfterPaymentError,
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


class FakeGateway(PaymentGateway):
    """Answers verification from a dict of canned results."""

    channel = PaymentChannel.PAYSTACK

    def __init__(self, results: dict[str, VerificationResult] | None = None):
        self.results = results or {}
        self.calls: list[str] = []

    def paid(self, reference: str, amount: str, *, success: bool = True, metadata=None, channel=None) -> None:
        self.results[reference] = VerificationResult(
            success=success,
            amount_paid=Decimal(amount),
            transaction_id=f"txn-{reference}",
            channel=channel or self.channel,
            status="success" if success else "failed",
            metadata=metadata or {},
            raw={"reference": reference, "amount": amount},
        )

    def verify(self, external_reference: str, **options) -> VerificationResult:
        self.calls.append(external_reference)
        return self.results[external_reference]


class PaymentReconcilerTests(TestCase):
    def setUp(self) -> None:
        self.season = make_season()
        self.hostel = make_hostel()
        self.room = make_room(self.hostel, capacity=2)
        self.fee = make_fee(self.hostel, self.season, "50000.00")
        self.gateway = FakeGateway()
        self.reconciler = PaymentReconciler()

    def _student(self):
        student = make_student()
        pay_school_fee(student, self.season)
        return student

    def _intent(self, student, room=None) -> BookingIntent:
        room = room or self.room
        return BookingIntent(
            student_id=student.pk,
            hostel_id=room.hostel_id,
            room_id=room.pk,
            season_id=self.season.pk,
            fee_list_id=self.fee.pk,
            amount_due=Decimal("50000.00"),
        )

    def _pay(self, student, reference: str, amount: str = "50000.00"):
        self.gateway.paid(reference, amount)
        return self.reconciler.complete(self.gateway, reference, intent=self._intent(student))

    def test_successful_payment_commits_paid_booking_and_receipt(self) -> None:
        student = self._student()

        result = self._pay(student, "ref-a")

        self.assertTrue(result.created)
        booking = result.booking
        self.assertEqual(booking.status, Booking.Status.PAID)
        self.assertTrue(booking.is_active)
        self.assertEqual(booking.amount_paid, Decimal("50000.00"))
        self.assertEqual(booking.fee_list_id, self.fee.pk)
        receipt = result.receipt
        self.assertEqual(receipt.status, PaymentStatus.PAID)
        self.assertEqual(receipt.booking_id, booking.pk)
        self.assertEqual(receipt.transaction_id, "txn-ref-a")
        self.assertEqual(receipt.channel, PaymentChannel.PAYSTACK)
        self.assertEqual(receipt.gateway_response["reference"], "ref-a")

    def test_replayed_completion_returns_stored_result(self) -> None:
        student = self._student()
        first = self._pay(student, "ref-a")

        second = self.reconciler.complete(self.gateway, "ref-a", intent=self._intent(student))

        self.assertFalse(second.created)
        self.assertEqual(second.receipt.pk, first.receipt.pk)
        self.assertEqual(second.booking.pk, first.booking.pk)
        self.assertEqual(Booking.objects.count(), 1)
        self.assertEqual(PaymentReceipt.objects.count(), 1)

    def test_underpayment_creates_nothing(self) -> None:
        student = self._student()

        with self.assertRaises(DomainValidationError) as ctx:
            self._pay(student, "ref-a", amount="49999.99")

        self.assertEqual(ctx.exception.code, "amount_mismatch")
        self.assertFalse(Booking.objects.exists())
        self.assertFalse(PaymentReceipt.objects.exists())

    def test_overpayment_is_recorded(self) -> None:
        student = self._student()

        result = self._pay(student, "ref-a", amount="50500.00")

        self.assertEqual(result.booking.amount_due, Decimal("50000.00"))
        self.assertEqual(result.booking.amount_paid, Decimal("50500.00"))
        self.assertEqual(result.receipt.amount_paid, Decimal("50500.00"))

    def test_unsuccessful_payment_is_rejected(self) -> None:
        student = self._student()
        self.gateway.paid("ref-a", "50000.00", success=False)

        with self.assertRaises(DomainValidationError) as ctx:
            self.reconciler.complete(self.gateway, "ref-a", intent=self._intent(student))

        self.assertEqual(ctx.exception.code, "payment_not_successful")
        self.assertFalse(Booking.objects.exists())

    def test_blank_reference_is_rejected_without_calling_gateway(self) -> None:
        with self.assertRaises(DomainValidationError):
            self.reconciler.complete(self.gateway, "  ", intent=self._intent(self._student()))
        self.assertEqual(self.gateway.calls, [])

    def test_student_with_paid_booking_conflicts(self) -> None:
        student = self._student()
        self._pay(student, "ref-a")

        with self.assertRaises(ConflictError) as ctx:
            self._pay(student, "ref-b")

        self.assertEqual(ctx.exception.code, "already_booked")
        self.assertEqual(Booking.objects.filter(student=student).count(), 1)

    def test_intent_is_read_from_checkout_metadata(self) -> None:
        student = self._student()
        metadata = self._intent(student).to_metadata("UMS-HB-20250101000000-ABC123")
        self.gateway.paid("cs_1", "50000.00", metadata=metadata, channel=PaymentChannel.STRIPE)

        result = self.reconciler.complete(self.gateway, "cs_1")

        self.assertEqual(result.booking.student_id, student.pk)
        self.assertEqual(result.receipt.channel, PaymentChannel.STRIPE)

    def test_missing_metadata_is_rejected(self) -> None:
        self.gateway.paid("cs_1", "50000.00", channel=PaymentChannel.STRIPE)

        with self.assertRaises(DomainValidationError) as ctx:
            self.reconciler.complete(self.gateway, "cs_1")
        self.assertEqual(ctx.exception.code, "invalid_booking_intent")

    def test_room_of_other_hostel_is_rejected(self) -> None:
        student = self._student()
        other_room = make_room(make_hostel())
        intent = BookingIntent(
            student_id=student.pk,
            hostel_id=self.hostel.pk,
            room_id=other_room.pk,
            season_id=self.season.pk,
            amount_due=Decimal("50000.00"),
        )
        self.gateway.paid("ref-a", "50000.00")

        with self.assertRaises(DomainValidationError):
            self.reconciler.complete(self.gateway, "ref-a", intent=intent)
        self.assertFalse(Booking.objects.exists())

    @patch("apps.bookings.application.reconciliation.message_bus")
    def test_capacity_lost_after_payment_requests_refund(self, bus) -> None:
        make_booking(make_student(), self.room, self.season)
        make_booking(make_student(), self.room, self.season)
        student = self._student()

        with self.assertRaises(CapacityLostAfterPaymentError) as ctx:
            self._pay(student, "ref-c")

        self.assertEqual(ctx.exception.code, "capacity_lost_after_payment")
        self.assertFalse(Booking.objects.filter(student=student).exists())
        self.assertFalse(PaymentReceipt.objects.exists())
        bus.publish_events.assert_called_once()
        (event,) = bus.publish_events.call_args.args[0]
        self.assertIsInstance(event, RefundRequired)
        self.assertEqual(event.transaction_id, "txn-ref-c")
        self.assertEqual(event.student_id, student.pk)
        self.assertEqual(event.amount_paid, Decimal("50000.00"))

    @patch("apps.bookings.application.reconciliation.message_bus")
    def test_capacity_two_scenario_with_cancellation(self, bus) -> None:
        student_a, student_b, student_c = self._student(), self._student(), self._student()

        booking_a = self._pay(student_a, "ref-a").booking
        self._pay(student_b, "ref-b")
        with self.assertRaises(CapacityLostAfterPaymentError):
            self._pay(student_c, "ref-c")

        CancelBookingHandler().handle(
            CancelBookingCommand(booking_id=booking_a.pk),
            Actor(kind=Actor.STUDENT, id=student_a.pk),
        )
        result = self._pay(student_c, "ref-c2")

        self.assertTrue(result.created)
        self.assertEqual(Booking.objects.occupying(self.room.pk, self.season.pk).count(), 2)
        self.assertEqual(
            set(Booking.objects.occupying(self.room.pk, self.season.pk).values_list("student_id", flat=True)),
            {student_b.pk, student_c.pk},
        )

    @patch("apps.bookings.application.reconciliation.message_bus")
    def test_allocation_made_after_quote_requests_refund(self, bus) -> None:
        student = self._student()
        make_booking(student, make_room(self.hostel), self.season, status=Booking.Status.PENDING)

        with self.assertRaises(BookingExistsAfterPaymentError) as ctx:
            self._pay(student, "ref-a")

        self.assertEqual(ctx.exception.code, "already_booked")
        self.assertFalse(PaymentReceipt.objects.exists())
        (event,) = bus.publish_events.call_args.args[0]
        self.assertEqual(event.reason, "already_booked")
        self.assertEqual(event.amount_paid, Decimal("50000.00"))

    def test_quote_survives_a_newer_fee_entry(self) -> None:
        student = self._student()
        make_fee(self.hostel, self.season, "60000.00")

        result = self._pay(student, "ref-a")

        self.assertEqual(result.booking.amount_due, Decimal("50000.00"))
        self.assertEqual(result.booking.fee_list_id, self.fee.pk)

    @patch("apps.bookings.application.reconciliation.message_bus")
    def test_quote_priced_off_its_fee_entry_requests_refund(self, bus) -> None:
        student = self._student()
        intent = replace(self._intent(student), amount_due=Decimal("40000.00"))
        self.gateway.paid("ref-a", "40000.00")

        with self.assertRaises(QuoteMismatchAfterPaymentError):
            self.reconciler.complete(self.gateway, "ref-a", intent=intent)

        self.assertFalse(Booking.objects.exists())
        (event,) = bus.publish_events.call_args.args[0]
        self.assertEqual(event.reason, "quote_mismatch_after_payment")

    def test_admission_is_decided_under_the_room_lock(self) -> None:
        student = self._student()
        repo = BookingRepository()
        calls: list[tuple[str, int]] = []
        lock_room, count_occupancy = repo.lock_room, repo.count_occupancy

        def record_lock(room_id):
            calls.append(("lock_room", len(connection.savepoint_ids)))
            return lock_room(room_id)

        def record_count(*args, **kwargs):
            calls.append(("count_occupancy", len(connection.savepoint_ids)))
            return count_occupancy(*args, **kwargs)

        outer_depth = len(connection.savepoint_ids)
        self.gateway.paid("ref-a", "50000.00")
        with patch.object(repo, "lock_room", side_effect=record_lock), patch.object(
            repo, "count_occupancy", side_effect=record_count
        ):
            PaymentReconciler(booking_repo=repo).complete(self.gateway, "ref-a", intent=self._intent(student))

        self.assertEqual([name for name, _ in calls], ["lock_room", "count_occupancy"])
        lock_depth = calls[0][1]
        self.assertGreater(lock_depth, outer_depth)
        self.assertEqual(calls[1][1], lock_depth)
