"""Hostel catalog models."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.students.models import Gender


class SeasonQuerySet(models.QuerySet):
    def open_for_booking(self):
        return self.filter(is_active=True, is_complete=False)


class Season(models.Model):
    """Academic session during which rooms are let."""

    name = models.CharField(max_length=50, unique=True)
    is_active = models.BooleanField(default=False)
    is_complete = models.BooleanField(default=False)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = SeasonQuerySet.as_manager()

    class Meta:
        verbose_name = _("Season")
        verbose_name_plural = _("Seasons")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name

    @property
    def is_open_for_booking(self) -> bool:
        return self.is_active and not self.is_complete


class Hostel(models.Model):
    name = models.CharField(max_length=255, unique=True)
    address = models.CharField(max_length=255, blank=True)
    capacity = models.PositiveIntegerField(default=0, help_text=_("Total beds across all rooms."))
    gender = models.CharField(
        max_length=10,
        choices=Gender.choices,
        null=True,
        blank=True,
        help_text=_("Empty means the hostel is mixed."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Hostel")
        verbose_name_plural = _("Hostels")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def accepts_gender(self, gender: str | None) -> bool:
        return self.gender is None or self.gender == gender


class Room(models.Model):
    hostel = models.ForeignKey(Hostel, on_delete=models.CASCADE, related_name="rooms")
    room_number = models.CharField(max_length=20)
    capacity = models.PositiveIntegerField(help_text=_("Number of students the room holds."))
    is_available = models.BooleanField(
        default=True,
        help_text=_("Physical availability, e.g. false while under maintenance."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Room")
        verbose_name_plural = _("Rooms")
        ordering = ["hostel", "room_number"]
        constraints = [
            models.UniqueConstraint(fields=["hostel", "room_number"], name="room_unique_number_per_hostel"),
        ]

    def __str__(self) -> str:
        return f"{self.hostel.name} / {self.room_number}"


class HostelFeeList(models.Model):
    """
    Price of a hostel (optionally a specific room) for a season.

    Entries with a room take precedence over hostel-wide entries; among
    several active candidates the newest one wins.
    """

    hostel = models.ForeignKey(Hostel, on_delete=models.CASCADE, related_name="fee_lists")
    room = models.ForeignKey(
        Room,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="fee_lists",
    )
    season = models.ForeignKey(Season, on_delete=models.CASCADE, related_name="hostel_fee_lists")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Hostel fee")
        verbose_name_plural = _("Hostel fees")
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["hostel", "room", "season", "is_active"], name="hostel_fee_lookup_idx"),
        ]

    def __str__(self) -> str:
        scope = self.room.room_number if self.room_id else "all rooms"
        return f"{self.hostel.name} ({scope}) {self.season.name}: {self.amount}"
