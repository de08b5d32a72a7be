"""API views for payment receipts and the partial payment ledger.

Receipts are read-only over the API: they are written by the booking
commit, by administrative allocation and by the ledger endpoints below.
"""

from __future__ import annotations

from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.serializers import BookingSerializer
from apps.users.actors import Actor
from apps.users.api.permissions import IsStudentOrAdmin

from .models import PaymentReceipt
from .serializers import LedgerPaymentSerializer, PaymentReceiptSerializer
from .services import LedgerPaymentCommand, LedgerResult, PaymentLedger


class PaymentReceiptViewSet(viewsets.ReadOnlyModelViewSet):
    """Viewset for payment receipts and incremental payments."""

    queryset = PaymentReceipt.objects.select_related("student", "booking", "school_fee", "season")
    serializer_class = PaymentReceiptSerializer
    permission_classes = [IsStudentOrAdmin]
    filterset_fields = ["status", "channel", "season", "booking", "school_fee"]
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if user.is_administrative():
            return qs
        student = getattr(user, "student_profile", None)
        if student is None:
            return qs.none()
        return qs.filter(student=student)

    def _apply(self, request, apply) -> LedgerResult:
        serializer = LedgerPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = LedgerPaymentCommand(**serializer.validated_data)
        return apply(command, Actor.from_user(request.user))

    @action(detail=False, methods=["post"], url_path="hostel")
    def hostel(self, request):  # type: ignore
        result = self._apply(request, PaymentLedger().apply_booking_payment)
        return Response(
            {
                "status": "success",
                "message": "Hostel payment recorded.",
                "data": {
                    "payment": PaymentReceiptSerializer(result.receipt).data,
                    "booking": BookingSerializer(result.bill).data,
                    "balance": str(result.balance),
                },
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"], url_path="school-fee")
    def school_fee(self, request):  # type: ignore
        result = self._apply(request, PaymentLedger().apply_school_fee_payment)
        fee = result.bill
        return Response(
            {
                "status": "success",
                "message": "School fee payment recorded.",
                "data": {
                    "payment": PaymentReceiptSerializer(result.receipt).data,
                    "school_fee": {
                        "id": fee.pk,
                        "amount": str(fee.amount),
                        "amount_paid": str(fee.amount_paid),
                        "status": fee.status,
                    },
                    "balance": str(result.balance),
                },
            },
            status=status.HTTP_201_CREATED,
        )
