"""Persistence access for payment receipts."""

from __future__ import annotations

from shared.domain.errors import NotFoundError

from .choices import PaymentStatus
from .models import PaymentReceipt


class PaymentReceiptRepository:
    def get(self, receipt_id: int) -> PaymentReceipt:
        receipt = PaymentReceipt.objects.select_related("booking").filter(pk=receipt_id).first()
        if receipt is None:
            raise NotFoundError("Payment record not found.", code="receipt_not_found")
        return receipt

    def find_by_transaction(self, transaction_id: str, channel: str) -> PaymentReceipt | None:
        if not transaction_id:
            return None
        return (
            PaymentReceipt.objects.select_related("booking")
            .filter(transaction_id=transaction_id, channel=channel)
            .first()
        )

    def create(self, **fields) -> PaymentReceipt:
        return PaymentReceipt.objects.create(**fields)

    def delete(self, receipt: PaymentReceipt) -> None:
        receipt.delete()

    def pending_for_booking(self, booking_id: int):
        return PaymentReceipt.objects.filter(booking_id=booking_id, status=PaymentStatus.PENDING)

    def delete_pending_for_booking(self, booking_id: int) -> int:
        deleted, _ = self.pending_for_booking(booking_id).delete()
        return deleted
