"""
Domain Error Taxonomy

Every business-rule violation is raised as a DomainError carrying a
``kind`` from a small fixed set. The API boundary translates the kind
into an HTTP status (see shared.infrastructure.exception_handler).
"""

from __future__ import annotations


class ErrorKind:
    VALIDATION = 'validation'
    NOT_FOUND = 'not_found'
    FORBIDDEN = 'forbidden'
    CONFLICT = 'conflict'
    INTERNAL = 'internal'


class DomainError(Exception):
    """Base class for typed domain failures."""

    kind = ErrorKind.INTERNAL
    default_code = 'error'
    default_message = 'Request could not be completed.'

    def __init__(self, message: str | None = None, *, code: str | None = None, **context):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'status': 'error', 'code': self.code, 'message': self.message}


class DomainValidationError(DomainError):
    kind = ErrorKind.VALIDATION
    default_code = 'validation_error'
    default_message = 'Invalid request.'


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    default_code = 'not_found'
    default_message = 'Resource not found.'


class ForbiddenError(DomainError):
    kind = ErrorKind.FORBIDDEN
    default_code = 'forbidden'
    default_message = 'You are not allowed to perform this action.'


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT
    default_code = 'conflict'
    default_message = 'Request conflicts with the current state.'


class InternalError(DomainError):
    kind = ErrorKind.INTERNAL
    default_code = 'internal_error'
    default_message = 'An unexpected error occurred.'


class PaymentGatewayError(InternalError):
    """The payment processor could not be reached or replied with garbage."""

    default_code = 'payment_gateway_error'
    default_message = 'Payment gateway is unavailable. Please try again later.'


class PaymentNotBookableError(ConflictError):
    """
    Payment was captured but no booking can be committed for it.
    Operators must refund the payer manually.
    """

    default_code = 'payment_not_bookable'
    default_message = (
        'Your payment was received but the booking could not be completed. '
        'A refund will be processed; please contact the hostel office.'
    )


class CapacityLostAfterPaymentError(PaymentNotBookableError):
    """The room filled up between quote and commit."""

    default_code = 'capacity_lost_after_payment'
    default_message = (
        'Your payment was received but the room is no longer available. '
        'A refund will be processed; please contact the hostel office.'
    )


class BookingExistsAfterPaymentError(PaymentNotBookableError):
    """The student gained an active booking for the season after the quote."""

    default_code = 'already_booked'
    default_message = (
        'Your payment was received but you already have an active booking for this season. '
        'A refund will be processed; please contact the hostel office.'
    )


class QuoteMismatchAfterPaymentError(PaymentNotBookableError):
    """The quoted price does not match the fee entry it names."""

    default_code = 'quote_mismatch_after_payment'
    default_message = (
        'Your payment was received but it does not match the hostel fee for this booking. '
        'A refund will be processed; please contact the hostel office.'
    )
