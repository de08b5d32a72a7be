"""
Booking Intent

A validated, unpersisted proposal to book a room. It is produced by the
quote step, travels to the card processor as checkout metadata (or is
echoed back by the client for the other processors) and is consumed by
the commit step once payment has been verified.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from django.utils.dateparse import parse_date, parse_datetime

from shared.domain.errors import DomainValidationError

HOSTEL_BOOKING_PURPOSE = 'HostelBooking'


def _invalid(detail: str) -> DomainValidationError:
    return DomainValidationError(
        f"Required booking details are missing or invalid ({detail}).",
        code='invalid_booking_intent',
    )


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise _invalid(name)
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        raise _invalid(name) from None
    if parsed <= 0:
        raise _invalid(name)
    return parsed


def _optional_int(value: Any, name: str) -> int | None:
    if value in (None, '', 'null', 'None'):
        return None
    return _positive_int(value, name)


def _amount(value: Any, name: str) -> Decimal:
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise _invalid(name) from None
    if not parsed.is_finite() or parsed <= 0:
        raise _invalid(name)
    return parsed.quantize(Decimal('0.01'))


def _optional_date(value: Any, name: str) -> date | None:
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    parsed = parse_date(text[:10]) if len(text) >= 10 else None
    if parsed is None:
        raise _invalid(name)
    return parsed


def _optional_datetime(value: Any, name: str) -> datetime | None:
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).replace('Z', '+00:00')
    try:
        parsed = parse_datetime(text)
    except ValueError:
        parsed = None
    if parsed is None:
        day = parse_date(text) if len(text) == 10 else None
        if day is None:
            raise _invalid(name)
        parsed = datetime(day.year, day.month, day.day)
    return parsed


@dataclass(frozen=True)
class BookingIntent:
    student_id: int
    hostel_id: int
    room_id: int
    season_id: int
    amount_due: Decimal
    fee_list_id: int | None = None
    check_in_date: date | None = None
    check_out_date: date | None = None
    payment_deadline: datetime | None = None
    purpose: str = HOSTEL_BOOKING_PURPOSE
    student_name: str = ''
    student_email: str = ''

    def __post_init__(self):
        if self.purpose != HOSTEL_BOOKING_PURPOSE:
            raise _invalid('purpose')
        if (
            self.check_in_date is not None
            and self.check_out_date is not None
            and self.check_out_date <= self.check_in_date
        ):
            raise DomainValidationError(
                "Check-out date must be after check-in date.",
                code='invalid_dates',
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'BookingIntent':
        """Build from snake_case keys as sent by API clients."""
        if not isinstance(data, Mapping):
            raise _invalid('booking details')
        return cls(
            student_id=_positive_int(data.get('student_id'), 'student_id'),
            hostel_id=_positive_int(data.get('hostel_id'), 'hostel_id'),
            room_id=_positive_int(data.get('room_id'), 'room_id'),
            season_id=_positive_int(data.get('season_id'), 'season_id'),
            fee_list_id=_optional_int(data.get('fee_list_id'), 'fee_list_id'),
            amount_due=_amount(data.get('amount_due'), 'amount_due'),
            check_in_date=_optional_date(data.get('check_in_date'), 'check_in_date'),
            check_out_date=_optional_date(data.get('check_out_date'), 'check_out_date'),
            payment_deadline=_optional_datetime(data.get('payment_deadline'), 'payment_deadline'),
            purpose=data.get('purpose') or HOSTEL_BOOKING_PURPOSE,
            student_name=str(data.get('student_name') or ''),
            student_email=str(data.get('student_email') or ''),
        )

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any] | None) -> 'BookingIntent':
        """Rebuild from checkout metadata (camelCase, every value a string)."""
        if not metadata:
            raise DomainValidationError(
                "Session metadata missing. Cannot complete payment.",
                code='invalid_booking_intent',
            )
        if not metadata.get('paymentReference'):
            raise _invalid('paymentReference')
        if metadata.get('paymentPurpose') != HOSTEL_BOOKING_PURPOSE:
            raise _invalid('paymentPurpose')
        return cls(
            student_id=_positive_int(metadata.get('studentId'), 'studentId'),
            hostel_id=_positive_int(metadata.get('hostelId'), 'hostelId'),
            room_id=_positive_int(metadata.get('roomId'), 'roomId'),
            season_id=_positive_int(metadata.get('seasonId'), 'seasonId'),
            fee_list_id=_optional_int(metadata.get('hostelFeeListId'), 'hostelFeeListId'),
            amount_due=_amount(metadata.get('amountDue'), 'amountDue'),
            check_in_date=_optional_date(metadata.get('checkInDate'), 'checkInDate'),
            check_out_date=_optional_date(metadata.get('checkOutDate'), 'checkOutDate'),
            payment_deadline=_optional_datetime(metadata.get('paymentDeadline'), 'paymentDeadline'),
        )

    def to_metadata(self, payment_reference: str) -> dict[str, str]:
        """Flatten into the string-only form checkout metadata accepts."""
        return {
            'paymentReference': payment_reference,
            'studentId': str(self.student_id),
            'hostelId': str(self.hostel_id),
            'roomId': str(self.room_id),
            'seasonId': str(self.season_id),
            'hostelFeeListId': str(self.fee_list_id) if self.fee_list_id else '',
            'amountDue': str(self.amount_due),
            'checkInDate': self.check_in_date.isoformat() if self.check_in_date else '',
            'checkOutDate': self.check_out_date.isoformat() if self.check_out_date else '',
            'paymentDeadline': self.payment_deadline.isoformat() if self.payment_deadline else '',
            'paymentPurpose': self.purpose,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            'student_id': self.student_id,
            'hostel_id': self.hostel_id,
            'room_id': self.room_id,
            'season_id': self.season_id,
            'fee_list_id': self.fee_list_id,
            'amount_due': str(self.amount_due),
            'check_in_date': self.check_in_date.isoformat() if self.check_in_date else None,
            'check_out_date': self.check_out_date.isoformat() if self.check_out_date else None,
            'payment_deadline': self.payment_deadline.isoformat() if self.payment_deadline else None,
            'purpose': self.purpose,
            'student_name': self.student_name,
            'student_email': self.student_email,
        }
