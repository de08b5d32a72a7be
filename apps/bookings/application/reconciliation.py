"""
Booking commit and payment reconciliation

One generic routine turns a verified gateway payment into a PAID booking
and its receipt. Every processor (card checkout, Paystack, Flutterwave)
goes through ``PaymentReconciler.complete``; only the adapter differs.

Strategy:
1. Verify with the processor (outside any transaction)
2. Obtain the booking intent (explicit, or from checkout metadata)
3. Reject unsuccessful and underpaid payments
4. Return the stored result if (transaction_id, channel) was seen before
5. Inside one transaction, holding the room row lock: re-check replay,
   check the quote against the fee entry it names, the student's active
   bookings and capacity, then insert the booking and the receipt together
6. Storage constraints back the checks up; a violation caused by a
   concurrent replay resolves to the stored result

A captured payment that cannot become a booking is reported for refund.
"""

from dataclasses import dataclass
import logging

import structlog
from django.db import DatabaseError, IntegrityError
from django.utils import timezone

from apps.bookings.domain.capacity import CapacityAdmissionController
from apps.bookings.domain.events import BookingCommitted, RefundRequired
from apps.bookings.domain.intent import BookingIntent
from apps.bookings.models import Booking
from apps.bookings.repositories import BookingRepository
from apps.finances.choices import PaymentStatus
from apps.finances.gateways.base import PaymentGateway, VerificationResult
from apps.finances.models import PaymentReceipt, generate_payment_reference
from apps.finances.repositories import PaymentReceiptRepository
from apps.hostels.services import HostelCatalog
from apps.students.services import StudentEligibilityService
from shared.application.message_bus import message_bus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.errors import (
    BookingExistsAfterPaymentError,
    CapacityLostAfterPaymentError,
    DomainValidationError,
    InternalError,
    PaymentNotBookableError,
    QuoteMismatchAfterPaymentError,
)

logger = logging.getLogger(__name__)
audit_logger = structlog.get_logger("apps.bookings.payments")


@dataclass
class CommitResult:
    receipt: PaymentReceipt
    booking: Booking | None
    created: bool


class PaymentReconciler:
    def __init__(self, booking_repo=None, receipt_repo=None, capacity=None, students=None, catalog=None):
        self.booking_repo = booking_repo or BookingRepository()
        self.receipt_repo = receipt_repo or PaymentReceiptRepository()
        self.capacity = capacity or CapacityAdmissionController(self.booking_repo)
        self.students = students or StudentEligibilityService()
        self.catalog = catalog or HostelCatalog()

    def complete(
        self,
        gateway: PaymentGateway,
        external_reference: str,
        intent: BookingIntent | None = None,
        **verify_options,
    ) -> CommitResult:
        if not external_reference or not str(external_reference).strip():
            raise DomainValidationError("Payment reference is required.", code="missing_reference")

        verification = gateway.verify(str(external_reference).strip(), **verify_options)

        if intent is None:
            intent = BookingIntent.from_metadata(verification.metadata)

        if not verification.success:
            logger.warning(
                f"{verification.channel} payment {external_reference} not successful: {verification.status}"
            )
            raise DomainValidationError(
                f"Payment not completed. Status: {verification.status or 'unknown'}",
                code="payment_not_successful",
            )

        if verification.amount_paid < intent.amount_due:
            logger.error(
                f"{verification.channel} amount mismatch for {external_reference}: "
                f"expected {intent.amount_due}, paid {verification.amount_paid}"
            )
            raise DomainValidationError(
                "Payment amount mismatch with expected booking amount.",
                code="amount_mismatch",
            )

        existing = self._find_existing(verification)
        if existing is not None:
            return existing

        try:
            return self._commit(verification, intent)
        except PaymentNotBookableError as e:
            self._report_refund(verification, intent, e.code)
            raise
        except IntegrityError as e:
            existing = self._find_existing(verification)
            if existing is not None:
                return existing
            logger.warning(f"Integrity conflict committing {verification.channel} payment {external_reference}: {e}")
            self._report_refund(verification, intent, BookingExistsAfterPaymentError.default_code)
            raise BookingExistsAfterPaymentError(transaction_id=verification.transaction_id) from e
        except DatabaseError as e:
            logger.error(
                f"Database error committing {verification.channel} payment {external_reference}: {e}",
                exc_info=True,
            )
            raise InternalError(transaction_id=verification.transaction_id) from e

    def _find_existing(self, verification: VerificationResult) -> CommitResult | None:
        receipt = self.receipt_repo.find_by_transaction(verification.transaction_id, verification.channel)
        if receipt is None:
            return None
        logger.info(
            f"Transaction {verification.transaction_id} ({verification.channel}) already processed; "
            f"returning receipt {receipt.pk}"
        )
        return CommitResult(receipt=receipt, booking=receipt.booking, created=False)

    def _commit(self, verification: VerificationResult, intent: BookingIntent) -> CommitResult:
        student = self.students.get_student(intent.student_id)
        season = self.catalog.get_season(intent.season_id)

        with DjangoUnitOfWork() as uow:
            room = self.booking_repo.lock_room(intent.room_id)
            if room.hostel_id != intent.hostel_id:
                raise DomainValidationError("Room does not belong to the selected hostel.", code="room_hostel_mismatch")

            existing = self._find_existing(verification)
            if existing is not None:
                return existing

            if not self.catalog.quote_matches_fee(
                fee_list_id=intent.fee_list_id,
                amount_due=intent.amount_due,
                hostel_id=intent.hostel_id,
                room=room,
                season_id=season.pk,
            ):
                raise QuoteMismatchAfterPaymentError(transaction_id=verification.transaction_id)

            if self.booking_repo.has_blocking_booking(student.pk, season.pk):
                logger.warning(
                    f"Student {student.pk} already has an active booking for season {season.pk}; "
                    f"refusing {verification.channel} transaction {verification.transaction_id}"
                )
                raise BookingExistsAfterPaymentError(transaction_id=verification.transaction_id)

            if not self.capacity.admit(room, season.pk):
                raise CapacityLostAfterPaymentError(
                    transaction_id=verification.transaction_id,
                    room_id=room.pk,
                )

            booking = self.booking_repo.create(
                student=student,
                hostel_id=intent.hostel_id,
                room=room,
                season=season,
                fee_list_id=intent.fee_list_id,
                amount_due=intent.amount_due,
                amount_paid=verification.amount_paid,
                status=Booking.Status.PAID,
                is_active=True,
                check_in_date=intent.check_in_date,
                check_out_date=intent.check_out_date,
                payment_deadline=intent.payment_deadline,
            )
            receipt = self.receipt_repo.create(
                student=student,
                booking=booking,
                season=season,
                amount_expected=intent.amount_due,
                amount_paid=verification.amount_paid,
                status=PaymentStatus.PAID,
                reference=verification.reference or generate_payment_reference(),
                transaction_id=verification.transaction_id,
                channel=verification.channel,
                description="Hostel booking payment",
                gateway_response=verification.raw,
                payment_date=timezone.now(),
            )
            uow.add_event(
                BookingCommitted(
                    aggregate_id=booking.pk,
                    booking_id=booking.pk,
                    student_id=student.pk,
                    room_id=room.pk,
                    season_id=season.pk,
                    channel=verification.channel,
                    transaction_id=verification.transaction_id,
                    amount_paid=verification.amount_paid,
                )
            )

        logger.info(
            f"Committed booking {booking.pk} and receipt {receipt.pk} for "
            f"{verification.channel} transaction {verification.transaction_id}"
        )
        return CommitResult(receipt=receipt, booking=booking, created=True)

    def _report_refund(self, verification: VerificationResult, intent: BookingIntent, reason: str) -> None:
        audit_logger.error(
            "payment_not_bookable",
            reason=reason,
            transaction_id=verification.transaction_id,
            channel=verification.channel,
            reference=verification.reference,
            amount_paid=str(verification.amount_paid),
            student_id=intent.student_id,
            room_id=intent.room_id,
            season_id=intent.season_id,
        )
        message_bus.publish_events([
            RefundRequired(
                student_id=intent.student_id,
                room_id=intent.room_id,
                season_id=intent.season_id,
                channel=verification.channel,
                transaction_id=verification.transaction_id,
                amount_paid=verification.amount_paid,
                reference=verification.reference,
                reason=reason,
            )
        ])
