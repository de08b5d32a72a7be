"""Resolution of the authenticated caller into a domain actor."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.errors import ForbiddenError


@dataclass(frozen=True)
class Actor:
    """
    Who is performing an operation.

    For students ``id`` is the Student record id (the id bookings and
    receipts refer to); for administrative accounts it is the user id.
    """

    STUDENT = "student"
    ADMIN = "admin"

    kind: str
    id: int

    @property
    def is_student(self) -> bool:
        return self.kind == self.STUDENT

    @property
    def is_admin(self) -> bool:
        return self.kind == self.ADMIN

    @classmethod
    def from_user(cls, user) -> "Actor":
        if user is None or not user.is_authenticated:
            raise ForbiddenError("Authentication required.")
        if user.is_administrative():
            return cls(kind=cls.ADMIN, id=user.pk)
        student = getattr(user, "student_profile", None)
        if student is None:
            raise ForbiddenError("No student profile is linked to this account.", code="no_student_profile")
        return cls(kind=cls.STUDENT, id=student.pk)
