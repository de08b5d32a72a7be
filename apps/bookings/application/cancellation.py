"""
Booking cancellation and payment-record cleanup

Commands:
- CancelBookingCommand: owner or admin cancels a PENDING or PAID booking
- DeletePendingPaymentCommand: admin removes an unpaid receipt; the last
  one going cancels its still-pending booking
"""

from dataclasses import dataclass
import logging

from apps.bookings.domain.events import BookingCancelled, PendingPaymentPurged
from apps.bookings.models import Booking
from apps.bookings.repositories import BookingRepository
from apps.finances.choices import PaymentStatus
from apps.finances.repositories import PaymentReceiptRepository
from apps.users.actors import Actor
from shared.application.uow import DjangoUnitOfWork
from shared.domain.errors import DomainValidationError, ForbiddenError

logger = logging.getLogger(__name__)


@dataclass
class CancelBookingCommand:
    booking_id: int


@dataclass
class DeletePendingPaymentCommand:
    receipt_id: int


@dataclass
class PendingPaymentDeletion:
    message: str
    receipt_id: int
    booking_id: int | None
    booking_cancelled: bool


class CancelBookingHandler:
    """
    Cancelling a PAID booking releases its slot; PAID receipts are kept
    for the refund trail while PENDING receipts are dropped.
    """

    def __init__(self, booking_repo=None, receipt_repo=None):
        self.booking_repo = booking_repo or BookingRepository()
        self.receipt_repo = receipt_repo or PaymentReceiptRepository()

    def handle(self, command: CancelBookingCommand, actor: Actor) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = self.booking_repo.get(command.booking_id, lock=True)

            if actor.is_student and booking.student_id != actor.id:
                raise ForbiddenError("You can only cancel your own bookings.", code="booking_not_owned")

            if booking.status not in Booking.CANCELLABLE_STATUSES:
                raise DomainValidationError(
                    f"Cannot cancel a booking with status {booking.get_status_display()}.",
                    code="not_cancellable",
                )

            released_slot = booking.occupies_slot
            booking.mark_cancelled()
            purged = self.receipt_repo.delete_pending_for_booking(booking.pk)

            uow.add_event(
                BookingCancelled(
                    aggregate_id=booking.pk,
                    booking_id=booking.pk,
                    student_id=booking.student_id,
                    room_id=booking.room_id,
                    season_id=booking.season_id,
                    cancelled_by=actor.kind,
                    released_slot=released_slot,
                )
            )

        logger.info(
            f"Booking {booking.pk} cancelled by {actor.kind} {actor.id}; "
            f"{purged} pending receipts removed"
        )
        return booking


class DeletePendingPaymentHandler:
    def __init__(self, booking_repo=None, receipt_repo=None):
        self.booking_repo = booking_repo or BookingRepository()
        self.receipt_repo = receipt_repo or PaymentReceiptRepository()

    def handle(self, command: DeletePendingPaymentCommand, actor: Actor) -> PendingPaymentDeletion:
        if not actor.is_admin:
            raise ForbiddenError("Only administrators can delete payment records.")

        with DjangoUnitOfWork() as uow:
            receipt = self.receipt_repo.get(command.receipt_id)
            if receipt.status != PaymentStatus.PENDING:
                raise DomainValidationError(
                    f"Payment record is not PENDING (current status: {receipt.get_status_display()}). "
                    "Only pending payment records can be deleted.",
                    code="receipt_not_pending",
                )

            receipt_id, reference, booking_id = receipt.pk, receipt.reference, receipt.booking_id
            self.receipt_repo.delete(receipt)

            booking_cancelled = False
            if booking_id is not None:
                booking = self.booking_repo.get(booking_id, lock=True)
                others_pending = self.receipt_repo.pending_for_booking(booking_id).exists()
                if (
                    not others_pending
                    and booking.status == Booking.Status.PENDING
                    and booking.is_active
                ):
                    booking.mark_cancelled()
                    booking_cancelled = True
                    uow.add_event(
                        BookingCancelled(
                            aggregate_id=booking.pk,
                            booking_id=booking.pk,
                            student_id=booking.student_id,
                            room_id=booking.room_id,
                            season_id=booking.season_id,
                            cancelled_by=actor.kind,
                            released_slot=False,
                        )
                    )

            uow.add_event(
                PendingPaymentPurged(
                    aggregate_id=booking_id,
                    receipt_id=receipt_id,
                    reference=reference,
                    booking_id=booking_id,
                    booking_cancelled=booking_cancelled,
                )
            )

        if booking_cancelled:
            message = (
                f"Pending payment record {reference} deleted. "
                f"Booking {booking_id} had no other pending payments and was cancelled."
            )
        elif booking_id is not None:
            message = f"Pending payment record {reference} deleted. Booking {booking_id} was left unchanged."
        else:
            message = f"Pending payment record {reference} deleted."
        logger.info(message)
        return PendingPaymentDeletion(
            message=message,
            receipt_id=receipt_id,
            booking_id=booking_id,
            booking_cancelled=booking_cancelled,
        )
