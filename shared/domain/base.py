"""
Base Domain Classes

- ValueObject: immutable, compared by value
- DomainEvent: a fact recorded by a use case and published after commit
"""

from abc import ABC
from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from django.utils import timezone


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable object without identity; equal when all attributes are equal."""


@dataclass(kw_only=True)
class DomainEvent:
    """
    Base class for booking and payment events.

    Subclasses are plain dataclasses; their fields are what audit handlers
    write to the log, so keep them to ids, codes and amounts.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=timezone.now)
    aggregate_id: int | None = None

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def log_context(self) -> dict:
        """Field values in a form structlog's JSON renderer accepts."""
        context = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (Decimal, UUID)):
                value = str(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            context[f.name] = value
        return context
