"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import BookingViewSet

router = SimpleRouter()
router.register(r"", BookingViewSet, basename="booking")

app_name = "bookings"

urlpatterns = [
    path(
        "cancel/<int:pk>/",
        BookingViewSet.as_view({"patch": "cancel"}),
        name="booking-cancel",
    ),
    path(
        "payments/pending/<int:pk>/",
        BookingViewSet.as_view({"delete": "delete_pending_payment"}),
        name="booking-delete-pending-payment",
    ),
    path("", include(router.urls)),
]
