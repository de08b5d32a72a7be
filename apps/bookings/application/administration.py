"""
Administrative booking operations

Commands:
- AllocateRoomCommand: place a student in a room with an unpaid invoice
- UpdateBookingStatusCommand: manual override of status/active/deadline
"""

from dataclasses import dataclass, field
from datetime import date, datetime
import logging

from django.db import IntegrityError
from django.utils import timezone

from apps.bookings.application.quotes import BookingQuoteBuilder, PrepareBookingCommand
from apps.bookings.domain.capacity import CapacityAdmissionController
from apps.bookings.models import Booking
from apps.bookings.repositories import BookingRepository
from apps.finances.choices import PaymentChannel, PaymentStatus
from apps.finances.models import PaymentReceipt, generate_payment_reference
from apps.finances.repositories import PaymentReceiptRepository
from apps.users.actors import Actor
from shared.application.uow import DjangoUnitOfWork
from shared.domain.errors import ConflictError, DomainValidationError, ForbiddenError

logger = logging.getLogger(__name__)

UNSET = object()


@dataclass
class AllocateRoomCommand:
    student_id: int
    hostel_id: int
    room_id: int
    season_id: int
    check_in_date: date | None = None
    check_out_date: date | None = None
    payment_deadline: datetime | None = None


@dataclass
class UpdateBookingStatusCommand:
    booking_id: int
    status: str | None = None
    is_active: bool | None = None
    payment_deadline: object = field(default=UNSET)


@dataclass
class Allocation:
    booking: Booking
    invoice: PaymentReceipt


class AllocateRoomHandler:
    """
    Creates a PENDING booking and its PENDING invoice. A pending booking
    does not hold a slot; it turns into one when the ledger marks it PAID.
    """

    def __init__(self, quote_builder=None, booking_repo=None, receipt_repo=None):
        self.booking_repo = booking_repo or BookingRepository()
        self.receipt_repo = receipt_repo or PaymentReceiptRepository()
        self.quote_builder = quote_builder or BookingQuoteBuilder(booking_repo=self.booking_repo)

    def handle(self, command: AllocateRoomCommand, actor: Actor) -> Allocation:
        if not actor.is_admin:
            raise ForbiddenError("Only administrators can allocate rooms.")

        intent = self.quote_builder.handle(
            PrepareBookingCommand(
                student_id=command.student_id,
                hostel_id=command.hostel_id,
                room_id=command.room_id,
                season_id=command.season_id,
                check_in_date=command.check_in_date,
                check_out_date=command.check_out_date,
                payment_deadline=command.payment_deadline,
            )
        )

        try:
            with DjangoUnitOfWork():
                booking = self.booking_repo.create(
                    student_id=intent.student_id,
                    hostel_id=intent.hostel_id,
                    room_id=intent.room_id,
                    season_id=intent.season_id,
                    fee_list_id=intent.fee_list_id,
                    amount_due=intent.amount_due,
                    status=Booking.Status.PENDING,
                    is_active=True,
                    check_in_date=intent.check_in_date,
                    check_out_date=intent.check_out_date,
                    payment_deadline=intent.payment_deadline,
                )
                invoice = self.receipt_repo.create(
                    student_id=intent.student_id,
                    booking=booking,
                    season_id=intent.season_id,
                    amount_expected=intent.amount_due,
                    status=PaymentStatus.PENDING,
                    reference=generate_payment_reference(),
                    channel=PaymentChannel.BANK_TRANSFER,
                    description="Hostel allocation invoice",
                )
        except IntegrityError as e:
            raise ConflictError(
                "The student already has an active booking for this season.",
                code="existing_booking",
            ) from e

        logger.info(f"Admin {actor.id} allocated room {intent.room_id} to student {intent.student_id} (booking {booking.pk})")
        return Allocation(booking=booking, invoice=invoice)


class UpdateBookingStatusHandler:
    """
    Direct override for administrators. It skips the payment flow but not
    admission control: a change that makes the booking hold a slot is
    checked against capacity under the room lock.
    """

    def __init__(self, booking_repo=None, capacity=None):
        self.booking_repo = booking_repo or BookingRepository()
        self.capacity = capacity or CapacityAdmissionController(self.booking_repo)

    def handle(self, command: UpdateBookingStatusCommand, actor: Actor) -> Booking:
        if not actor.is_admin:
            raise ForbiddenError("Unauthorized to update booking status.")
        if command.status is not None and command.status not in Booking.Status.values:
            raise DomainValidationError(f"Unknown booking status {command.status!r}.", code="invalid_status")

        try:
            with DjangoUnitOfWork():
                booking = self.booking_repo.get(command.booking_id, lock=True)
                held_slot = booking.occupies_slot
                update_fields: list[str] = []

                if command.status is not None and command.status != booking.status:
                    booking.status = command.status
                    update_fields.append("status")
                    if command.status == Booking.Status.CANCELLED and command.is_active is None:
                        booking.is_active = False
                        update_fields.append("is_active")
                    if command.status == Booking.Status.CANCELLED and booking.cancelled_at is None:
                        booking.cancelled_at = timezone.now()
                        update_fields.append("cancelled_at")
                if command.is_active is not None and command.is_active != booking.is_active:
                    booking.is_active = command.is_active
                    update_fields.append("is_active")
                if command.payment_deadline is not UNSET:
                    booking.payment_deadline = command.payment_deadline
                    update_fields.append("payment_deadline")

                if booking.occupies_slot and not held_slot:
                    room = self.booking_repo.lock_room(booking.room_id)
                    self.capacity.ensure_admissible(room, booking.season_id, exclude_booking_id=booking.pk)

                if update_fields:
                    self.booking_repo.save(booking, update_fields=sorted(set(update_fields)))
        except IntegrityError as e:
            raise ConflictError(
                "The student already has another active booking for this season.",
                code="booking_conflict",
            ) from e

        logger.info(f"Admin {actor.id} updated booking {booking.pk}: {update_fields}")
        return booking
