"""URL routing for the finance domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import PaymentReceiptViewSet

router = SimpleRouter()
router.register(r"payments", PaymentReceiptViewSet, basename="payment")

app_name = "finances"

urlpatterns = [
    path("", include(router.urls)),
]
