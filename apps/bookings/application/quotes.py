"""
Booking quote and payment-session use cases.

Commands:
- PrepareBookingCommand: check every precondition and price the room
- CreatePaymentSessionCommand: open a hosted card checkout for a quote
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
import logging

from django.conf import settings

from apps.bookings.domain.capacity import CapacityAdmissionController
from apps.bookings.domain.intent import BookingIntent
from apps.bookings.repositories import BookingRepository
from apps.finances.models import generate_payment_reference
from apps.hostels.services import HostelCatalog
from apps.students.services import StudentEligibilityService
from apps.users.actors import Actor
from shared.domain.errors import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
)

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class PrepareBookingCommand:
    student_id: int
    hostel_id: int
    room_id: int
    season_id: int
    check_in_date: date | None = None
    check_out_date: date | None = None
    payment_deadline: datetime | None = None


@dataclass
class CreatePaymentSessionCommand:
    intent: BookingIntent


# ===== Handlers =====

class BookingQuoteBuilder:
    """
    Handler for PrepareBooking command

    Runs the eligibility checks in a fixed order so each failure is
    reported with its own error, then prices the room. Nothing is written.
    """

    def __init__(self, students=None, catalog=None, booking_repo=None, capacity=None):
        self.students = students or StudentEligibilityService()
        self.catalog = catalog or HostelCatalog()
        self.booking_repo = booking_repo or BookingRepository()
        self.capacity = capacity or CapacityAdmissionController(self.booking_repo)

    def handle(self, command: PrepareBookingCommand) -> BookingIntent:
        logger.info(
            f"Preparing booking for student {command.student_id}, hostel {command.hostel_id}, "
            f"room {command.room_id}, season {command.season_id}"
        )
        for name in ("student_id", "hostel_id", "room_id", "season_id"):
            value = getattr(command, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise DomainValidationError(f"Invalid {name}.", code="invalid_id")
        if (
            command.check_in_date is not None
            and command.check_out_date is not None
            and command.check_out_date <= command.check_in_date
        ):
            raise DomainValidationError("Check-out date must be after check-in date.", code="invalid_dates")

        student = self.students.get_bookable_student(command.student_id)
        gender = self.students.require_gender(student)
        hostel = self.catalog.get_hostel(command.hostel_id)
        room = self.catalog.get_room(command.room_id, hostel.pk)
        season = self.catalog.get_open_season(command.season_id)

        self.capacity.ensure_admissible(room, season.pk)

        if self.booking_repo.has_blocking_booking(student.pk, season.pk):
            raise ConflictError(
                "You have an existing active or pending booking for this season. "
                "Please complete or resolve it.",
                code="existing_booking",
            )

        if not self.students.has_paid_school_fee(student.pk, season.pk):
            raise ForbiddenError(
                "You must pay your school fees for this season before booking a hostel.",
                code="school_fee_unpaid",
            )

        fee = self.catalog.resolve_fee(hostel, room, season.pk, gender)

        return BookingIntent(
            student_id=student.pk,
            hostel_id=hostel.pk,
            room_id=room.pk,
            season_id=season.pk,
            fee_list_id=fee.pk,
            amount_due=fee.amount,
            check_in_date=command.check_in_date,
            check_out_date=command.check_out_date,
            payment_deadline=command.payment_deadline,
            student_name=student.name,
            student_email=student.email,
        )


class IntentAuthorizer:
    """
    Re-checks a client-held intent. Before money is taken it must belong to
    the caller and still match the catalog price; once money has been taken
    only ownership is checked here and the reconciler judges the price.
    """

    def __init__(self, students=None, catalog=None):
        self.students = students or StudentEligibilityService()
        self.catalog = catalog or HostelCatalog()

    def ensure_owner(self, intent: BookingIntent, actor: Actor) -> None:
        if actor.is_student and actor.id != intent.student_id:
            logger.warning(f"Student {actor.id} presented an intent for student {intent.student_id}")
            raise ForbiddenError("This booking belongs to another student.", code="intent_not_owned")

    def authorize(self, intent: BookingIntent, actor: Actor):
        self.ensure_owner(intent, actor)
        student = self.students.get_bookable_student(intent.student_id)
        hostel = self.catalog.get_hostel(intent.hostel_id)
        room = self.catalog.get_room(intent.room_id, hostel.pk)
        self.catalog.confirm_quoted_fee(
            fee_list_id=intent.fee_list_id,
            amount_due=intent.amount_due,
            hostel=hostel,
            room=room,
            season_id=intent.season_id,
            gender=student.gender,
        )
        return student, room


class CreatePaymentSessionHandler:
    """
    Handler for CreatePaymentSession command

    The capacity check here is advisory: it fails fast before the student
    pays, but only the commit step decides under the room lock.
    """

    def __init__(self, gateway=None, authorizer=None, booking_repo=None, capacity=None):
        if gateway is None:
            from apps.finances.gateways.stripe_checkout import StripeCheckoutGateway

            gateway = StripeCheckoutGateway()
        self.gateway = gateway
        self.authorizer = authorizer or IntentAuthorizer()
        self.booking_repo = booking_repo or BookingRepository()
        self.capacity = capacity or CapacityAdmissionController(self.booking_repo)

    def handle(self, command: CreatePaymentSessionCommand, actor: Actor) -> dict:
        intent = command.intent
        if not actor.is_student:
            raise ForbiddenError("Only students can start a booking payment.")
        student, room = self.authorizer.authorize(intent, actor)

        self.capacity.ensure_admissible(room, intent.season_id)
        if self.booking_repo.has_blocking_booking(student.pk, intent.season_id):
            raise ConflictError(
                "You have an existing active or pending booking for this season.",
                code="existing_booking",
            )

        minimum = Decimal(str(getattr(settings, "CARD_GATEWAY_MIN_AMOUNT", 100)))
        if intent.amount_due < minimum:
            raise DomainValidationError(
                f"Amount must be at least NGN {minimum} for card payments.",
                code="amount_below_minimum",
            )

        reference = generate_payment_reference()
        session = self.gateway.create_checkout_session(
            amount=intent.amount_due,
            customer_email=student.email,
            metadata=intent.to_metadata(reference),
        )
        logger.info(f"Payment session {session['session_id']} opened for student {student.pk} ({reference})")
        return {
            "session_id": session["session_id"],
            "reference": reference,
            "checkout_url": session["checkout_url"],
        }
