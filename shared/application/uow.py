"""
Unit of Work

One database transaction per use case. Events recorded with ``add_event``
are handed to the message bus from ``transaction.on_commit``, so nothing
observes a booking or receipt that was later rolled back. Inside an outer
atomic block (tests, nested use cases) publication waits for the outermost
commit.
"""

from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Usage:
        with DjangoUnitOfWork() as uow:
            room = booking_repo.lock_room(room_id)
            booking = booking_repo.create(...)
            uow.add_event(BookingCommitted(...))
    """

    def __init__(self, using: str | None = None):
        self.using = using
        self._atomic = None
        self._events: List[DomainEvent] = []

    def __enter__(self):
        self._atomic = transaction.atomic(using=self.using)
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publication()
            elif self._events:
                logger.info(f"Transaction rolled back, dropping {len(self._events)} events")
        finally:
            self._events = []
            self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def add_event(self, event: DomainEvent):
        self._events.append(event)

    def _schedule_publication(self):
        if not self._events:
            return
        events = list(self._events)
        transaction.on_commit(lambda: self._publish(events), using=self.using)

    @staticmethod
    def _publish(events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        message_bus.publish_events(events)
