"""Hostel booking model."""

from __future__ import annotations

import secrets
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class BookingQuerySet(models.QuerySet):
    def occupying(self, room_id: int, season_id: int):
        """Bookings that hold a slot in the room for the season."""
        return self.filter(
            room_id=room_id,
            season_id=season_id,
            status=Booking.Status.PAID,
            is_active=True,
        )

    def blocking_student(self, student_id: int, season_id: int):
        """Bookings that stop the student from booking again this season."""
        return self.filter(
            student_id=student_id,
            season_id=season_id,
            status__in=[Booking.Status.PENDING, Booking.Status.PARTIAL, Booking.Status.PAID],
            is_active=True,
        )


class Booking(models.Model):
    """A student's reservation of a slot in a hostel room for a season."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending payment")
        PARTIAL = "partial", _("Partially paid")
        PAID = "paid", _("Paid")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")

    CANCELLABLE_STATUSES = (Status.PENDING, Status.PAID)
    SETTLED_STATUSES = (Status.PAID, Status.CONFIRMED, Status.CANCELLED)

    student = models.ForeignKey(
        "students.Student",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    hostel = models.ForeignKey("hostels.Hostel", on_delete=models.PROTECT, related_name="bookings")
    room = models.ForeignKey("hostels.Room", on_delete=models.PROTECT, related_name="bookings")
    season = models.ForeignKey("hostels.Season", on_delete=models.PROTECT, related_name="bookings")
    fee_list = models.ForeignKey(
        "hostels.HostelFeeList",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    booking_code = models.CharField(max_length=12, unique=True, editable=False)
    amount_due = models.DecimalField(max_digits=12, decimal_places=2)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    is_active = models.BooleanField(default=True)
    check_in_date = models.DateField(null=True, blank=True)
    check_out_date = models.DateField(null=True, blank=True)
    payment_deadline = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "season"],
                condition=models.Q(is_active=True),
                name="booking_one_active_per_student_season",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(check_in_date__isnull=True)
                    | models.Q(check_out_date__isnull=True)
                    | models.Q(check_out_date__gt=models.F("check_in_date"))
                ),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["room", "season", "status", "is_active"], name="booking_occupancy_idx"),
            models.Index(fields=["student", "season"], name="booking_student_season_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code} ({self.status})"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_code:
            self.booking_code = self.generate_booking_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_code() -> str:
        return secrets.token_hex(4).upper()

    @property
    def balance(self) -> Decimal:
        return max(self.amount_due - self.amount_paid, Decimal("0.00"))

    @property
    def occupies_slot(self) -> bool:
        return self.is_active and self.status == self.Status.PAID

    def mark_cancelled(self) -> None:
        self.status = self.Status.CANCELLED
        self.is_active = False
        self.cancelled_at = timezone.now()
        self.save(update_fields=["status", "is_active", "cancelled_at", "updated_at"])
