"""Tests for incremental payments against hostel and school-fee bills."""

from __future__ import annotations

from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.bookings.tests.factories import (
    make_admin,
    make_booking,
    make_hostel,
    make_room,
    make_season,
    make_student,
)
from apps.finances.choices import PaymentChannel, PaymentStatus
from apps.finances.models import PaymentReceipt
from apps.finances.services import LedgerPaymentCommand, PaymentLedger
from apps.students.models import SchoolFee
from apps.users.actors import Actor
from shared.domain.errors import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
)


class BookingLedgerTests(TestCase):
    def setUp(self) -> None:
        self.season = make_season()
        self.room = make_room(make_hostel(), capacity=1)
        self.student = make_student()
        self.booking = make_booking(self.student, self.room, self.season, status=Booking.Status.PENDING)
        self.owner = Actor(kind=Actor.STUDENT, id=self.student.pk)
        self.admin = Actor(kind=Actor.ADMIN, id=1)
        self.ledger = PaymentLedger()

    def _command(self, amount: str, reference: str, **kwargs) -> LedgerPaymentCommand:
        kwargs.setdefault("season_id", self.season.pk)
        return LedgerPaymentCommand(
            bill_id=kwargs.pop("bill_id", self.booking.pk),
            amount=Decimal(amount),
            reference=reference,
            **kwargs,
        )

    def test_two_instalments_settle_the_booking(self) -> None:
        first = self.ledger.apply_booking_payment(self._command("20000.00", "BANK-1"), self.owner)

        self.assertEqual(first.bill.status, Booking.Status.PARTIAL)
        self.assertEqual(first.balance, Decimal("30000.00"))
        self.assertEqual(first.receipt.status, PaymentStatus.PAID)
        self.assertEqual(first.receipt.amount_paid, Decimal("20000.00"))
        self.assertEqual(first.receipt.channel, PaymentChannel.BANK_TRANSFER)
        self.assertFalse(first.bill.occupies_slot)

        second = self.ledger.apply_booking_payment(self._command("30000.00", "BANK-2"), self.owner)

        self.assertEqual(second.bill.status, Booking.Status.PAID)
        self.assertEqual(second.balance, Decimal("0.00"))
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.amount_paid, Decimal("50000.00"))
        self.assertTrue(self.booking.occupies_slot)
        self.assertEqual(PaymentReceipt.objects.filter(booking=self.booking).count(), 2)

    def test_duplicate_reference_conflicts_and_changes_nothing(self) -> None:
        self.ledger.apply_booking_payment(self._command("20000.00", "BANK-1"), self.owner)

        with self.assertRaises(ConflictError) as ctx:
            self.ledger.apply_booking_payment(self._command("10000.00", "BANK-1"), self.owner)

        self.assertEqual(ctx.exception.code, "duplicate_reference")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.amount_paid, Decimal("20000.00"))
        self.assertEqual(PaymentReceipt.objects.count(), 1)

    def test_non_positive_amount_is_rejected(self) -> None:
        with self.assertRaises(DomainValidationError) as ctx:
            self.ledger.apply_booking_payment(self._command("0", "BANK-1"), self.owner)
        self.assertEqual(ctx.exception.code, "invalid_amount")

    def test_other_student_is_forbidden(self) -> None:
        other = Actor(kind=Actor.STUDENT, id=make_student().pk)

        with self.assertRaises(ForbiddenError):
            self.ledger.apply_booking_payment(self._command("20000.00", "BANK-1"), other)

    def test_admin_must_name_the_bill_owner(self) -> None:
        with self.assertRaises(DomainValidationError) as ctx:
            self.ledger.apply_booking_payment(self._command("20000.00", "BANK-1"), self.admin)
        self.assertEqual(ctx.exception.code, "student_mismatch")

        result = self.ledger.apply_booking_payment(
            self._command("20000.00", "BANK-1", student_id=self.student.pk),
            self.admin,
        )
        self.assertEqual(result.bill.status, Booking.Status.PARTIAL)

    def test_season_mismatch_is_rejected(self) -> None:
        other_season = make_season()

        with self.assertRaises(DomainValidationError) as ctx:
            self.ledger.apply_booking_payment(
                self._command("20000.00", "BANK-1", season_id=other_season.pk),
                self.owner,
            )
        self.assertEqual(ctx.exception.code, "season_mismatch")

    def test_settled_booking_takes_no_payments(self) -> None:
        self.booking.status = Booking.Status.PAID
        self.booking.save()

        with self.assertRaises(DomainValidationError) as ctx:
            self.ledger.apply_booking_payment(self._command("100.00", "BANK-1"), self.owner)
        self.assertEqual(ctx.exception.code, "bill_settled")

    def test_final_instalment_respects_room_capacity(self) -> None:
        make_booking(make_student(), self.room, self.season)

        with self.assertRaises(ConflictError) as ctx:
            self.ledger.apply_booking_payment(self._command("50000.00", "BANK-1"), self.owner)

        self.assertEqual(ctx.exception.code, "room_full")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.PENDING)
        self.assertFalse(PaymentReceipt.objects.exists())

    def test_missing_booking_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self.ledger.apply_booking_payment(self._command("100.00", "BANK-1", bill_id=999999), self.owner)


class SchoolFeeLedgerTests(TestCase):
    def setUp(self) -> None:
        self.season = make_season()
        self.student = make_student()
        self.fee = SchoolFee.objects.create(student=self.student, season=self.season, amount=Decimal("150000.00"))
        self.owner = Actor(kind=Actor.STUDENT, id=self.student.pk)
        self.ledger = PaymentLedger()

    def _command(self, amount: str, reference: str) -> LedgerPaymentCommand:
        return LedgerPaymentCommand(
            bill_id=self.fee.pk,
            amount=Decimal(amount),
            reference=reference,
            season_id=self.season.pk,
        )

    def test_instalments_advance_school_fee_status(self) -> None:
        partial = self.ledger.apply_school_fee_payment(self._command("100000.00", "SF-1"), self.owner)
        self.assertEqual(partial.bill.status, PaymentStatus.PARTIAL)
        self.assertEqual(partial.balance, Decimal("50000.00"))
        self.assertEqual(partial.receipt.school_fee_id, self.fee.pk)

        paid = self.ledger.apply_school_fee_payment(self._command("50000.00", "SF-2"), self.owner)
        self.assertEqual(paid.bill.status, PaymentStatus.PAID)
        self.assertEqual(paid.balance, Decimal("0.00"))

    def test_paid_school_fee_takes_no_payments(self) -> None:
        self.ledger.apply_school_fee_payment(self._command("150000.00", "SF-1"), self.owner)

        with self.assertRaises(DomainValidationError) as ctx:
            self.ledger.apply_school_fee_payment(self._command("1.00", "SF-2"), self.owner)
        self.assertEqual(ctx.exception.code, "bill_settled")

    def test_missing_school_fee_is_not_found(self) -> None:
        command = self._command("100.00", "SF-1")
        command.bill_id = 999999

        with self.assertRaises(NotFoundError):
            self.ledger.apply_school_fee_payment(command, self.owner)


class LedgerAPITests(APITestCase):
    """Incremental payments and receipt listing over HTTP."""

    BASE = "/api/v1/finances/payments/"

    def setUp(self) -> None:
        self.season = make_season()
        self.room = make_room(make_hostel(), capacity=2)
        self.student = make_student(with_user=True)
        self.booking = make_booking(self.student, self.room, self.season, status=Booking.Status.PENDING)
        self.client.force_authenticate(self.student.user)

    def test_student_records_hostel_instalment(self) -> None:
        response = self.client.post(
            f"{self.BASE}hostel/",
            {"bill_id": self.booking.pk, "amount": "20000.00", "reference": "BANK-1", "season_id": self.season.pk},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        data = response.data["data"]
        self.assertEqual(data["balance"], "30000.00")
        self.assertEqual(data["booking"]["status"], Booking.Status.PARTIAL)
        self.assertEqual(data["payment"]["reference"], "BANK-1")

    def test_invalid_amount_is_rejected(self) -> None:
        response = self.client.post(
            f"{self.BASE}hostel/",
            {"bill_id": self.booking.pk, "amount": "-5", "reference": "BANK-1", "season_id": self.season.pk},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(PaymentReceipt.objects.exists())

    def test_duplicate_reference_returns_conflict(self) -> None:
        payload = {"bill_id": self.booking.pk, "amount": "1000.00", "reference": "BANK-1", "season_id": self.season.pk}
        self.client.post(f"{self.BASE}hostel/", payload, format="json")

        response = self.client.post(f"{self.BASE}hostel/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "duplicate_reference")

    def test_admin_records_school_fee_payment(self) -> None:
        fee = SchoolFee.objects.create(student=self.student, season=self.season, amount=Decimal("150000.00"))
        self.client.force_authenticate(make_admin())

        response = self.client.post(
            f"{self.BASE}school-fee/",
            {
                "bill_id": fee.pk,
                "amount": "150000.00",
                "reference": "SF-1",
                "season_id": self.season.pk,
                "student_id": self.student.pk,
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["data"]["school_fee"]["status"], PaymentStatus.PAID)
        self.assertEqual(response.data["data"]["balance"], "0.00")

    def test_students_only_list_their_own_receipts(self) -> None:
        PaymentReceipt.objects.create(
            student=self.student,
            booking=self.booking,
            season=self.season,
            amount_expected=Decimal("50000.00"),
            reference="OWN-1",
            channel=PaymentChannel.BANK_TRANSFER,
        )
        other = make_student()
        PaymentReceipt.objects.create(
            student=other,
            season=self.season,
            amount_expected=Decimal("50000.00"),
            reference="OTHER-1",
            channel=PaymentChannel.BANK_TRANSFER,
        )

        response = self.client.get(self.BASE)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["reference"] for row in response.data["results"]], ["OWN-1"])
