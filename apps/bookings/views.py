"""API views for the booking domain."""

from __future__ import annotations

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.finances.choices import PaymentChannel
from apps.finances.gateways.registry import get_gateway
from apps.users.actors import Actor
from apps.users.api.permissions import IsAdminOrStaff, IsStudent, IsStudentOrAdmin
from shared.domain.errors import DomainValidationError

from .application.administration import (
    AllocateRoomCommand,
    AllocateRoomHandler,
    UpdateBookingStatusCommand,
    UpdateBookingStatusHandler,
)
from .application.cancellation import (
    CancelBookingCommand,
    CancelBookingHandler,
    DeletePendingPaymentCommand,
    DeletePendingPaymentHandler,
)
from .application.quotes import (
    BookingQuoteBuilder,
    CreatePaymentSessionCommand,
    CreatePaymentSessionHandler,
    IntentAuthorizer,
    PrepareBookingCommand,
)
from .application.reconciliation import CommitResult, PaymentReconciler
from .filters import BookingFilterSet
from .models import Booking
from .repositories import BookingRepository
from .serializers import (
    AllocateRoomSerializer,
    BookingSerializer,
    BookingStatusUpdateSerializer,
    CompletePaymentSerializer,
    CreatePaymentSessionSerializer,
    PaymentSummarySerializer,
    PrepareBookingSerializer,
    RoommateSerializer,
    VerifyFlutterwaveSerializer,
    VerifyPaystackSerializer,
)


def _success(message: str | None = None, data=None, http_status: int = status.HTTP_200_OK) -> Response:
    body: dict = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return Response(body, status=http_status)


class BookingViewSet(viewsets.ReadOnlyModelViewSet):
    """Hostel bookings: quote, pay, commit, list and cancel."""

    queryset = Booking.objects.select_related("student", "hostel", "room", "season", "fee_list").prefetch_related(
        "payments"
    )
    serializer_class = BookingSerializer
    filterset_class = BookingFilterSet
    lookup_value_regex = r"\d+"

    action_permissions = {
        "prepare_booking": [IsStudent],
        "create_payment_session": [IsStudent],
        "complete_payment": [permissions.IsAuthenticated],
        "verify_paystack": [IsStudent],
        "verify_flutterwave": [IsStudent],
        "allocate": [IsAdminOrStaff],
        "my_bookings": [IsStudent],
        "my_roommates": [IsStudent],
        "cancel": [IsStudentOrAdmin],
        "update_status": [IsAdminOrStaff],
        "delete_pending_payment": [IsAdminOrStaff],
    }

    def get_permissions(self):  # type: ignore
        classes = self.action_permissions.get(self.action, [IsStudentOrAdmin])
        return [permission() for permission in classes]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if not user.is_authenticated:
            return qs.none()
        if user.is_administrative():
            return qs
        student = getattr(user, "student_profile", None)
        if student is None:
            return qs.none()
        return qs.filter(student=student)

    def get_actor(self) -> Actor:
        return Actor.from_user(self.request.user)

    def _commit_response(self, result: CommitResult) -> Response:
        data = {
            "payment": PaymentSummarySerializer(result.receipt).data,
            "booking": BookingSerializer(result.booking).data if result.booking is not None else None,
        }
        if result.created:
            return _success("Payment completed successfully.", data, status.HTTP_201_CREATED)
        return _success("Payment was already processed.", data)

    # --- quote and payment ---------------------------------------------------
    @action(detail=False, methods=["post"], url_path="prepare-booking")
    def prepare_booking(self, request):  # type: ignore
        serializer = PrepareBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        actor = self.get_actor()
        intent = BookingQuoteBuilder().handle(PrepareBookingCommand(student_id=actor.id, **serializer.validated_data))
        return _success("Hostel booking prepared for payment.", {"booking": intent.to_dict()})

    @action(detail=False, methods=["post"], url_path="create-payment-session")
    def create_payment_session(self, request):  # type: ignore
        serializer = CreatePaymentSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = CreatePaymentSessionHandler().handle(
            CreatePaymentSessionCommand(intent=serializer.validated_data["booking_details"]),
            self.get_actor(),
        )
        return _success("Payment session created.", session, status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"], url_path="complete-payment")
    def complete_payment(self, request):  # type: ignore
        serializer = CompletePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = PaymentReconciler().complete(
            get_gateway(PaymentChannel.STRIPE),
            serializer.validated_data["session_id"],
        )
        return self._commit_response(result)

    @action(detail=False, methods=["post"], url_path="verify-paystack")
    def verify_paystack(self, request):  # type: ignore
        serializer = VerifyPaystackSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        intent = serializer.validated_data["booking_details"]
        IntentAuthorizer().ensure_owner(intent, self.get_actor())
        result = PaymentReconciler().complete(
            get_gateway(PaymentChannel.PAYSTACK),
            serializer.validated_data["reference"],
            intent=intent,
        )
        return self._commit_response(result)

    @action(detail=False, methods=["post"], url_path="verify-flutterwave")
    def verify_flutterwave(self, request):  # type: ignore
        serializer = VerifyFlutterwaveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        intent = serializer.validated_data["booking_details"]
        IntentAuthorizer().ensure_owner(intent, self.get_actor())
        result = PaymentReconciler().complete(
            get_gateway(PaymentChannel.FLUTTERWAVE),
            serializer.validated_data["transaction_id"],
            intent=intent,
            expected_tx_ref=serializer.validated_data["tx_ref"],
        )
        return self._commit_response(result)

    # --- administration ------------------------------------------------------
    @action(detail=False, methods=["post"], url_path="allocate")
    def allocate(self, request):  # type: ignore
        serializer = AllocateRoomSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        allocation = AllocateRoomHandler().handle(AllocateRoomCommand(**serializer.validated_data), self.get_actor())
        return _success(
            "Room allocated; awaiting payment.",
            {
                "booking": BookingSerializer(allocation.booking).data,
                "invoice": PaymentSummarySerializer(allocation.invoice).data,
            },
            status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request, pk=None):  # type: ignore
        serializer = BookingStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = UpdateBookingStatusCommand(booking_id=int(pk), **serializer.validated_data)
        booking = UpdateBookingStatusHandler().handle(command, self.get_actor())
        return _success("Booking status updated.", {"booking": BookingSerializer(booking).data})

    # --- student views -------------------------------------------------------
    @action(detail=False, methods=["get"], url_path="my-bookings")
    def my_bookings(self, request):  # type: ignore
        qs = self.filter_queryset(BookingRepository().for_student(self.get_actor().id))
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(BookingSerializer(page, many=True).data)
        return _success(data={"bookings": BookingSerializer(qs, many=True).data})

    @action(detail=False, methods=["get"], url_path="my-roommates")
    def my_roommates(self, request):  # type: ignore
        season_id = request.query_params.get("season_id")
        if not season_id or not str(season_id).isdigit():
            raise DomainValidationError("A valid season_id query parameter is required.", code="invalid_season")
        own, roommates = BookingRepository().roommates(self.get_actor().id, int(season_id))
        return _success(
            data={
                "room": (
                    {"hostel": own.hostel.name, "room_number": own.room.room_number}
                    if own is not None
                    else None
                ),
                "roommates": RoommateSerializer(roommates, many=True).data,
            }
        )

    # --- cancellation and cleanup ----------------------------------------------
    def cancel(self, request, pk=None):  # type: ignore
        booking = CancelBookingHandler().handle(CancelBookingCommand(booking_id=int(pk)), self.get_actor())
        return _success("Hostel booking cancelled.", {"booking": BookingSerializer(booking).data})

    def delete_pending_payment(self, request, pk=None):  # type: ignore
        outcome = DeletePendingPaymentHandler().handle(
            DeletePendingPaymentCommand(receipt_id=int(pk)),
            self.get_actor(),
        )
        return _success(
            outcome.message,
            {"booking_id": outcome.booking_id, "booking_cancelled": outcome.booking_cancelled},
        )
