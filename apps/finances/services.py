"""
Partial payment ledger.

Records incremental payments against an existing bill, either a hostel
booking or a school-fee bill, and advances the bill's status. Each call
inserts exactly one PAID receipt for the increment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import IntegrityError  # type: ignore
from django.db.models import Model  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.capacity import CapacityAdmissionController
from apps.bookings.models import Booking
from apps.bookings.repositories import BookingRepository
from apps.students.models import SchoolFee
from apps.users.actors import Actor
from shared.application.uow import DjangoUnitOfWork
from shared.infrastructure.db import lock_queryset_if_possible
from shared.domain.errors import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
)

from .choices import PaymentChannel, PaymentStatus
from .models import PaymentReceipt
from .repositories import PaymentReceiptRepository

logger = logging.getLogger(__name__)


@dataclass
class LedgerPaymentCommand:
    """``bill_id`` is a booking id or a school-fee id depending on the call."""

    bill_id: int
    amount: Decimal
    reference: str
    season_id: int
    student_id: int | None = None
    channel: str = PaymentChannel.BANK_TRANSFER
    transaction_id: str | None = None
    payment_date: datetime | None = None
    description: str = ""


@dataclass
class LedgerResult:
    receipt: PaymentReceipt
    bill: Model
    balance: Decimal


def _next_status(amount_due: Decimal, new_total: Decimal) -> str:
    if new_total >= amount_due:
        return PaymentStatus.PAID
    if new_total > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


class PaymentLedger:
    def __init__(self, receipt_repo=None, booking_repo=None, capacity=None):
        self.receipt_repo = receipt_repo or PaymentReceiptRepository()
        self.booking_repo = booking_repo or BookingRepository()
        self.capacity = capacity or CapacityAdmissionController(self.booking_repo)

    # --- validation shared by both bills ---------------------------------
    def _validate_command(self, command: LedgerPaymentCommand) -> None:
        if command.amount is None or command.amount <= 0:
            raise DomainValidationError("Payment amount must be greater than zero.", code="invalid_amount")
        if command.channel not in PaymentChannel.values:
            raise DomainValidationError(f"Unknown payment channel {command.channel!r}.", code="invalid_channel")
        if not command.reference or not command.reference.strip():
            raise DomainValidationError("Payment reference is required.", code="missing_reference")

    def _authorize(self, owner_student_id: int, command: LedgerPaymentCommand, actor: Actor) -> None:
        if actor.is_student:
            if owner_student_id != actor.id:
                raise ForbiddenError("You can only pay for your own bills.", code="bill_not_owned")
            return
        if command.student_id is None or command.student_id != owner_student_id:
            raise DomainValidationError(
                "Student ID does not match the owner of this bill.",
                code="student_mismatch",
            )

    def _record_receipt(self, command: LedgerPaymentCommand, *, student_id: int, amount_due: Decimal, **links):
        return self.receipt_repo.create(
            student_id=student_id,
            season_id=command.season_id,
            amount_expected=amount_due,
            amount_paid=command.amount,
            status=PaymentStatus.PAID,
            reference=command.reference.strip(),
            transaction_id=command.transaction_id or None,
            channel=command.channel,
            description=command.description,
            payment_date=command.payment_date or timezone.now(),
            **links,
        )

    # --- hostel bookings ---------------------------------------------------
    def apply_booking_payment(self, command: LedgerPaymentCommand, actor: Actor) -> LedgerResult:
        self._validate_command(command)
        try:
            with DjangoUnitOfWork():
                booking = self.booking_repo.get(command.bill_id, lock=True)
                self._authorize(booking.student_id, command, actor)

                if booking.season_id != command.season_id:
                    raise DomainValidationError(
                        "Booking does not belong to the given season.",
                        code="season_mismatch",
                    )
                if booking.status in Booking.SETTLED_STATUSES or not booking.is_active:
                    raise DomainValidationError(
                        f"Booking is already {booking.get_status_display().lower()} and cannot take payments.",
                        code="bill_settled",
                    )

                new_total = booking.amount_paid + command.amount
                new_status = _next_status(booking.amount_due, new_total)
                if new_status == PaymentStatus.PAID:
                    # becoming PAID makes the booking hold a slot
                    room = self.booking_repo.lock_room(booking.room_id)
                    self.capacity.ensure_admissible(room, booking.season_id, exclude_booking_id=booking.pk)

                receipt = self._record_receipt(
                    command,
                    student_id=booking.student_id,
                    amount_due=booking.amount_due,
                    booking=booking,
                )
                booking.amount_paid = new_total
                booking.status = new_status
                self.booking_repo.save(booking, update_fields=["amount_paid", "status"])
        except IntegrityError as e:
            raise ConflictError(
                "A payment with this reference has already been recorded.",
                code="duplicate_reference",
            ) from e

        logger.info(
            f"Recorded {command.amount} against booking {booking.pk}: "
            f"{booking.amount_paid}/{booking.amount_due} ({booking.status})"
        )
        return LedgerResult(receipt=receipt, bill=booking, balance=booking.amount_due - booking.amount_paid)

    # --- school fees -------------------------------------------------------
    def apply_school_fee_payment(self, command: LedgerPaymentCommand, actor: Actor) -> LedgerResult:
        self._validate_command(command)
        try:
            with DjangoUnitOfWork():
                fee = lock_queryset_if_possible(SchoolFee.objects.filter(pk=command.bill_id)).first()
                if fee is None:
                    raise NotFoundError("School fee record not found.", code="school_fee_not_found")
                self._authorize(fee.student_id, command, actor)

                if fee.season_id != command.season_id:
                    raise DomainValidationError(
                        "School fee does not belong to the given season.",
                        code="season_mismatch",
                    )
                if fee.status in (PaymentStatus.PAID, PaymentStatus.WAIVED, PaymentStatus.CANCELLED):
                    raise DomainValidationError(
                        f"School fee is already {fee.get_status_display().lower()} and cannot take payments.",
                        code="bill_settled",
                    )

                new_total = fee.amount_paid + command.amount
                receipt = self._record_receipt(
                    command,
                    student_id=fee.student_id,
                    amount_due=fee.amount,
                    school_fee=fee,
                )
                fee.amount_paid = new_total
                fee.status = _next_status(fee.amount, new_total)
                fee.save(update_fields=["amount_paid", "status", "updated_at"])
        except IntegrityError as e:
            raise ConflictError(
                "A payment with this reference has already been recorded.",
                code="duplicate_reference",
            ) from e

        logger.info(f"Recorded {command.amount} against school fee {fee.pk}: {fee.amount_paid}/{fee.amount} ({fee.status})")
        return LedgerResult(receipt=receipt, bill=fee, balance=fee.amount - fee.amount_paid)
