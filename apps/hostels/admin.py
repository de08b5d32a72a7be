"""Admin registration for the hostel catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Hostel, HostelFeeList, Room, Season


class RoomInline(admin.TabularInline):
    model = Room
    extra = 0


@admin.register(Hostel)
class HostelAdmin(admin.ModelAdmin):
    list_display = ("name", "gender", "capacity")
    list_filter = ("gender",)
    search_fields = ("name",)
    inlines = [RoomInline]


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("room_number", "hostel", "capacity", "is_available")
    list_filter = ("hostel", "is_available")
    search_fields = ("room_number", "hostel__name")


@admin.register(Season)
class SeasonAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "is_complete", "start_date", "end_date")
    list_filter = ("is_active", "is_complete")


@admin.register(HostelFeeList)
class HostelFeeListAdmin(admin.ModelAdmin):
    list_display = ("hostel", "room", "season", "amount", "is_active", "created_at")
    list_filter = ("season", "hostel", "is_active")
