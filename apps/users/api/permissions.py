"""Role based permission classes for the portal API."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def _is_admin(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_administrative") and user.is_administrative()


def _is_student(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    return hasattr(user, "is_student") and user.is_student()


class IsStudent(permissions.BasePermission):
    """Only accounts with the student role."""

    message = "Only students can perform this action."

    def has_permission(self, request, view) -> bool:  # type: ignore
        return _is_student(request.user)


class IsAdminOrStaff(permissions.BasePermission):
    """Hostel administrators, ICT staff and platform superusers."""

    message = "Only administrators can perform this action."

    def has_permission(self, request, view) -> bool:  # type: ignore
        return _is_admin(request.user)


class IsStudentOrAdmin(permissions.BasePermission):
    """
    Students and administrators. Ownership of the target record is
    checked by the domain services, not here.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        return _is_student(request.user) or _is_admin(request.user)
