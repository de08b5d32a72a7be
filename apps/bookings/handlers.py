"""
Booking event handlers

Audit trail for the booking lifecycle. Each event becomes one structured
log line; RefundRequired goes out at error level so the bursary can pick
it up from the log pipeline.
"""

import structlog

from shared.application.message_bus import message_bus

from .domain.events import (
    BookingCancelled,
    BookingCommitted,
    PendingPaymentPurged,
    RefundRequired,
)

audit_logger = structlog.get_logger("apps.bookings.audit")


def log_booking_committed(event: BookingCommitted) -> None:
    audit_logger.info("booking_committed", **event.log_context())


def log_booking_cancelled(event: BookingCancelled) -> None:
    context = event.log_context()
    if not event.released_slot:
        # pending bookings never held a slot
        context["note"] = "no_slot_released"
    audit_logger.info("booking_cancelled", **context)


def log_pending_payment_purged(event: PendingPaymentPurged) -> None:
    audit_logger.info("pending_payment_purged", **event.log_context())


def log_refund_required(event: RefundRequired) -> None:
    audit_logger.error("refund_required", **event.log_context())


def register_handlers() -> None:
    message_bus.register_event_handler(BookingCommitted, log_booking_committed)
    message_bus.register_event_handler(BookingCancelled, log_booking_cancelled)
    message_bus.register_event_handler(PendingPaymentPurged, log_pending_payment_purged)
    message_bus.register_event_handler(RefundRequired, log_refund_required)
