"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    student_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "role",
            "student_id",
        ]
        read_only_fields = fields

    def get_student_id(self, obj) -> int | None:
        student = getattr(obj, "student_profile", None)
        return student.pk if student is not None else None
