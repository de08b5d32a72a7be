"""Eligibility rules a student must satisfy before booking a hostel."""

from __future__ import annotations

import logging

from apps.finances.choices import PaymentStatus
from shared.domain.errors import DomainValidationError, NotFoundError

from .models import SchoolFee, Student

logger = logging.getLogger(__name__)


class StudentEligibilityService:
    """Read-only view of the student registry used by the booking flow."""

    def get_bookable_student(self, student_id: int) -> Student:
        """Return the student if active and not graduated."""
        student = (
            Student.objects.filter(pk=student_id, is_active=True, is_graduated=False)
            .first()
        )
        if student is None:
            raise NotFoundError(
                "Student not found, inactive or graduated.",
                code="student_not_found",
            )
        return student

    def require_gender(self, student: Student) -> str:
        if not student.gender:
            raise DomainValidationError(
                "Student gender information is missing. Complete your profile before booking.",
                code="missing_gender",
            )
        return student.gender

    def has_paid_school_fee(self, student_id: int, season_id: int) -> bool:
        return SchoolFee.objects.filter(
            student_id=student_id,
            season_id=season_id,
            status=PaymentStatus.PAID,
        ).exists()

    def get_student(self, student_id: int) -> Student:
        student = Student.objects.filter(pk=student_id).first()
        if student is None:
            raise NotFoundError("Student not found.", code="student_not_found")
        return student
