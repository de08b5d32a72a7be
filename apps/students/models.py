"""Student records and school-fee bills."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.finances.choices import PaymentStatus


class Gender(models.TextChoices):
    MALE = "male", _("Male")
    FEMALE = "female", _("Female")


class Student(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="student_profile",
    )
    reg_no = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    gender = models.CharField(
        max_length=10,
        choices=Gender.choices,
        null=True,
        blank=True,
        help_text=_("Required before a hostel can be booked."),
    )
    is_active = models.BooleanField(default=True)
    is_graduated = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Student")
        verbose_name_plural = _("Students")
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.reg_no})"

    @property
    def is_eligible_for_booking(self) -> bool:
        return self.is_active and not self.is_graduated


class SchoolFee(models.Model):
    """A school-fee bill for one student and season."""

    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="school_fees")
    season = models.ForeignKey("hostels.Season", on_delete=models.PROTECT, related_name="school_fees")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    description = models.CharField(max_length=255, blank=True)
    due_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("School fee")
        verbose_name_plural = _("School fees")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["student", "season"], name="school_fee_unique_student_season"),
        ]
        indexes = [
            models.Index(fields=["student", "season", "status"], name="school_fee_status_idx"),
        ]

    def __str__(self) -> str:
        return f"School fee {self.student_id}/{self.season_id} ({self.status})"

    @property
    def balance(self) -> Decimal:
        return max(self.amount - self.amount_paid, Decimal("0.00"))
