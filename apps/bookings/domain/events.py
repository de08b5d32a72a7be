"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits, except
RefundRequired which is published after the failed commit rolls back.
"""

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.base import DomainEvent


@dataclass
class BookingCommitted(DomainEvent):
    """
    Event: A verified payment produced a PAID booking

    Triggers:
    - Audit log entry
    """
    booking_id: int
    student_id: int
    room_id: int
    season_id: int
    channel: str
    transaction_id: str
    amount_paid: Decimal


@dataclass
class BookingCancelled(DomainEvent):
    """Event: A booking was cancelled and its slot released"""
    booking_id: int
    student_id: int
    room_id: int
    season_id: int
    cancelled_by: str
    released_slot: bool


@dataclass
class PendingPaymentPurged(DomainEvent):
    """Event: A PENDING receipt was deleted, possibly cancelling its booking"""
    receipt_id: int
    reference: str
    booking_id: int | None
    booking_cancelled: bool


@dataclass
class RefundRequired(DomainEvent):
    """
    Event: Money was captured but no booking could be committed

    Triggers:
    - Error log entry for the bursary to refund manually
    """
    student_id: int
    room_id: int
    season_id: int
    channel: str
    transaction_id: str
    amount_paid: Decimal
    reference: str | None = None
    reason: str = ""
