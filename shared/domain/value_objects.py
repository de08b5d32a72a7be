"""
Common Value Objects

Value objects used across multiple domains:
- Money: Represents monetary amounts with currency and minor-unit conversion
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from shared.domain.base import ValueObject

SUPPORTED_CURRENCIES = ('NGN', 'USD')
MINOR_UNITS_PER_MAJOR = Decimal('100')
TWO_PLACES = Decimal('0.01')


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a non-negative monetary amount with currency.
    Gateways report amounts either in major units (naira) or in minor
    units (kobo); both are normalized here to a two-place Decimal.
    """
    amount: Decimal
    currency: str = 'NGN'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, 'amount', Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as exc:
                raise ValueError(f"Invalid amount: {self.amount!r}") from exc
        if not self.amount.is_finite():
            raise ValueError(f"Invalid amount: {self.amount!r}")
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")
        object.__setattr__(
            self, 'amount', self.amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
        )

    @classmethod
    def from_minor_units(cls, value, currency: str = 'NGN') -> 'Money':
        """Build from an integer count of minor units (kobo, cents)."""
        try:
            minor = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"Invalid minor-unit amount: {value!r}") from exc
        return cls(minor / MINOR_UNITS_PER_MAJOR, currency)

    def to_minor_units(self) -> int:
        """Convert to an integer count of minor units, rounding half up."""
        minor = (self.amount * MINOR_UNITS_PER_MAJOR).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        return int(minor)

