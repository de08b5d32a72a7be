"""Tests for booking events, their dispatch and the audit handlers."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch

from django.test import SimpleTestCase, TestCase

from apps.bookings.domain.events import BookingCancelled, RefundRequired
from apps.bookings.handlers import log_refund_required
from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import DomainEvent


def _refund() -> RefundRequired:
    return RefundRequired(
        student_id=1,
        room_id=2,
        season_id=3,
        channel="paystack",
        transaction_id="PSK-9",
        amount_paid=Decimal("50000.00"),
    )


class MessageBusTests(SimpleTestCase):
    def test_handlers_on_base_class_see_every_event(self) -> None:
        bus = MessageBus()
        seen: list[str] = []
        bus.register_event_handler(DomainEvent, lambda e: seen.append(f"any:{e.name}"))
        bus.register_event_handler(RefundRequired, lambda e: seen.append("refund"))

        bus.publish_events([_refund()])

        self.assertEqual(seen, ["refund", "any:RefundRequired"])

    def test_failing_handler_does_not_stop_others(self) -> None:
        bus = MessageBus()
        seen: list[str] = []

        def broken(event):
            raise RuntimeError("boom")

        bus.register_event_handler(RefundRequired, broken)
        bus.register_event_handler(RefundRequired, lambda e: seen.append(e.transaction_id))

        bus.publish_events([_refund()])

        self.assertEqual(seen, ["PSK-9"])

    def test_duplicate_subscription_is_ignored(self) -> None:
        bus = MessageBus()
        seen: list[int] = []

        def handler(event):
            seen.append(1)

        bus.register_event_handler(RefundRequired, handler)
        bus.register_event_handler(RefundRequired, handler)
        bus.publish_events([_refund()])

        self.assertEqual(seen, [1])


class EventLogContextTests(SimpleTestCase):
    def test_context_is_json_friendly(self) -> None:
        context = _refund().log_context()

        self.assertEqual(context["amount_paid"], "50000.00")
        self.assertIsInstance(context["event_id"], str)
        self.assertIsInstance(context["occurred_at"], str)
        self.assertIsNone(context["reference"])

    @patch("apps.bookings.handlers.audit_logger")
    def test_refund_is_logged_at_error_level(self, audit_logger) -> None:
        log_refund_required(_refund())

        audit_logger.error.assert_called_once()
        args, kwargs = audit_logger.error.call_args
        self.assertEqual(args, ("refund_required",))
        self.assertEqual(kwargs["transaction_id"], "PSK-9")


class UnitOfWorkTests(TestCase):
    def _cancelled(self) -> BookingCancelled:
        return BookingCancelled(
            booking_id=1,
            student_id=1,
            room_id=1,
            season_id=1,
            cancelled_by="student",
            released_slot=True,
        )

    @patch("shared.application.message_bus.message_bus.publish_events")
    def test_events_are_published_on_commit(self, publish) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            with DjangoUnitOfWork() as uow:
                uow.add_event(self._cancelled())

        publish.assert_called_once()
        (event,) = publish.call_args.args[0]
        self.assertIsInstance(event, BookingCancelled)

    @patch("shared.application.message_bus.message_bus.publish_events")
    def test_events_are_dropped_on_rollback(self, publish) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(ValueError):
                with DjangoUnitOfWork() as uow:
                    uow.add_event(self._cancelled())
                    raise ValueError("abort")

        publish.assert_not_called()
