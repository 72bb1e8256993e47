"""Payment aggregate (CQRS): one charge attempt against an order.

State Machine:
    pending → completed → refunded
    pending → failed
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, String, ValueObject

from storefront.domain import storefront
from storefront.payment.events import (
    PaymentCompleted,
    PaymentFailed,
    PaymentInitiated,
    PaymentRefunded,
)
from storefront.shared.errors import InvalidStateError
from storefront.shared.money import Money


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),  # Terminal
    PaymentStatus.REFUNDED: set(),  # Terminal
}


def idempotency_key_for(order_id) -> str:
    return f"order-{order_id}"


@storefront.aggregate
class Payment:
    order_id = Identifier(required=True)
    amount = ValueObject(Money, required=True)
    method = String(required=True, max_length=50)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    transaction_id = String(max_length=255)
    idempotency_key = String(required=True, max_length=255)
    failure_reason = String(max_length=500)
    refund_id = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def initiate(cls, order_id, amount, currency, method):
        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            amount=Money.of(amount, currency),
            method=method,
            status=PaymentStatus.PENDING.value,
            idempotency_key=idempotency_key_for(order_id),
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentInitiated(
                payment_id=str(payment.id),
                order_id=str(order_id),
                amount=payment.amount.amount,
                currency=payment.amount.currency,
                method=method,
                idempotency_key=payment.idempotency_key,
                initiated_at=now,
            )
        )
        return payment

    def _assert_can_transition(self, target_status: PaymentStatus) -> None:
        current = PaymentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateError({"status": [f"Cannot transition payment from {current.value} to {target_status.value}"]})

    def complete(self, transaction_id):
        self._assert_can_transition(PaymentStatus.COMPLETED)

        now = datetime.now(UTC)
        self.status = PaymentStatus.COMPLETED.value
        self.transaction_id = transaction_id
        self.updated_at = now

        self.raise_(
            PaymentCompleted(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                amount=self.amount.amount,
                transaction_id=transaction_id,
                completed_at=now,
            )
        )

    def fail(self, reason):
        self._assert_can_transition(PaymentStatus.FAILED)

        now = datetime.now(UTC)
        self.status = PaymentStatus.FAILED.value
        self.failure_reason = reason
        self.updated_at = now

        self.raise_(
            PaymentFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                reason=reason,
                failed_at=now,
            )
        )

    def refund(self, refund_id):
        self._assert_can_transition(PaymentStatus.REFUNDED)

        now = datetime.now(UTC)
        self.status = PaymentStatus.REFUNDED.value
        self.refund_id = refund_id
        self.updated_at = now

        self.raise_(
            PaymentRefunded(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                amount=self.amount.amount,
                refund_id=refund_id,
                refunded_at=now,
            )
        )
