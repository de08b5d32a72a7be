"""Admin registration for students."""

from __future__ import annotations

from django.contrib import admin

from .models import SchoolFee, Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ("reg_no", "name", "email", "gender", "is_active", "is_graduated")
    list_filter = ("gender", "is_active", "is_graduated")
    search_fields = ("reg_no", "name", "email")


@admin.register(SchoolFee)
class SchoolFeeAdmin(admin.ModelAdmin):
    list_display = ("student", "season", "amount", "amount_paid", "status", "due_date")
    list_filter = ("status", "season")
    search_fields = ("student__reg_no", "student__name")
