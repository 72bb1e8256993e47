"""Order aggregate (CQRS): the order lifecycle state machine.

State Machine:
    pending → processing → shipped → delivered → refunded (approved return)
    pending → payment_failed
    pending | processing → canceled

Lines and the total are fixed when the order is placed. After that only the
status fields, the return fields and the tracking number change.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.order.events import (
    OrderCanceled,
    OrderDelivered,
    OrderPaid,
    OrderPaymentFailed,
    OrderPlaced,
    OrderRefunded,
    OrderShipped,
    ReturnApproved,
    ReturnRejected,
    ReturnRequested,
)
from storefront.shared.errors import InvalidStateError, ValidationError
from storefront.shared.money import ZERO, Money, line_total


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELED = "canceled"
    PAYMENT_FAILED = "payment_failed"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class ReturnStatus(Enum):
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING,
        OrderStatus.PAYMENT_FAILED,
        OrderStatus.CANCELED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},  # Through an approved return
    OrderStatus.PAYMENT_FAILED: set(),  # Terminal; the cart is kept for a new checkout
    OrderStatus.CANCELED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderLine:
    """A purchased product, with the price it was sold at.

    Lines are written once, when the order is placed.
    """

    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    product_name = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = ValueObject(Money, required=True)
    reservation_id = Identifier()

    @property
    def subtotal(self):
        return line_total(self.unit_price.value, self.quantity)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    owner_id = Identifier(required=True)
    owner_email = String(max_length=254)
    lines = HasMany(OrderLine)
    total = ValueObject(Money, required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_id = Identifier()
    payment_method = String(max_length=50)
    shipping_address = Text()
    return_requested = Boolean(default=False)
    return_status = String(choices=ReturnStatus, default=ReturnStatus.NONE.value)
    return_reason = String(max_length=500)
    tracking_number = String(max_length=255)
    cancellation_reason = String(max_length=500)
    canceled_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_lines(self):
        if not self.lines:
            raise ValidationError({"lines": ["An order needs at least one line"]})

    @invariant.post
    def total_must_match_lines(self):
        if not self.lines or self.total is None:
            return
        expected = sum((line.subtotal for line in self.lines), ZERO)
        if self.total.value != expected:
            raise ValidationError({"total": [f"Order total {self.total.amount} does not match its lines ({expected})"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, order_id, owner_id, lines_data, owner_email=None, shipping_address=None, currency="USD"):
        """Create a pending order from priced, already reserved lines.

        Args:
            lines_data: List of dicts with product_id, vendor_id, product_name,
                        quantity, unit_price and reservation_id.
        """
        if not lines_data:
            raise ValidationError({"lines": ["An order needs at least one line"]})

        now = datetime.now(UTC)
        lines = [
            OrderLine(
                product_id=data["product_id"],
                vendor_id=data["vendor_id"],
                product_name=data["product_name"],
                quantity=data["quantity"],
                unit_price=Money.of(data["unit_price"], currency),
                reservation_id=data.get("reservation_id"),
            )
            for data in lines_data
        ]
        total = sum((line.subtotal for line in lines), ZERO)

        order = cls(
            id=str(order_id),
            owner_id=owner_id,
            owner_email=owner_email,
            lines=lines,
            total=Money.of(total, currency),
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            shipping_address=shipping_address,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                owner_id=str(owner_id),
                lines=json.dumps(
                    [
                        {
                            "product_id": str(line.product_id),
                            "vendor_id": str(line.vendor_id),
                            "quantity": line.quantity,
                            "unit_price": line.unit_price.amount,
                        }
                        for line in lines
                    ]
                ),
                total=order.total.amount,
                currency=currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def vendor_ids(self) -> set[str]:
        return {str(line.vendor_id) for line in self.lines or []}

    def has_vendor(self, vendor_id) -> bool:
        return str(vendor_id) in self.vendor_ids()

    def _touch(self):
        now = datetime.now(UTC)
        self.updated_at = now
        return now

    # -------------------------------------------------------------------
    # Payment outcome
    # -------------------------------------------------------------------
    def mark_paid(self, payment_id, payment_method=None):
        self._assert_can_transition(OrderStatus.PROCESSING)

        self.status = OrderStatus.PROCESSING.value
        self.payment_status = PaymentStatus.COMPLETED.value
        self.payment_id = payment_id
        self.payment_method = payment_method
        now = self._touch()

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                payment_id=str(payment_id),
                payment_method=payment_method,
                amount=self.total.amount,
                paid_at=now,
            )
        )

    def mark_payment_failed(self, reason, payment_id=None):
        self._assert_can_transition(OrderStatus.PAYMENT_FAILED)

        self.status = OrderStatus.PAYMENT_FAILED.value
        self.payment_status = PaymentStatus.FAILED.value
        if payment_id:
            self.payment_id = payment_id
        now = self._touch()

        self.raise_(
            OrderPaymentFailed(
                order_id=str(self.id),
                payment_id=str(payment_id) if payment_id else None,
                reason=reason,
                failed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def ship(self, shipped_by, tracking_number=None):
        self._assert_can_transition(OrderStatus.SHIPPED)

        self.status = OrderStatus.SHIPPED.value
        if tracking_number:
            self.tracking_number = tracking_number
        now = self._touch()

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                tracking_number=tracking_number,
                shipped_by=str(shipped_by),
                shipped_at=now,
            )
        )

    def deliver(self):
        self._assert_can_transition(OrderStatus.DELIVERED)

        self.status = OrderStatus.DELIVERED.value
        now = self._touch()

        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason, canceled_by, refunded=False):
        """Cancel a pending or processing order.

        ``refunded`` is set by the caller once the completed payment of a
        processing order has been refunded through the gateway.
        """
        self._assert_can_transition(OrderStatus.CANCELED)

        previous_status = self.status
        self.status = OrderStatus.CANCELED.value
        self.cancellation_reason = reason
        self.canceled_by = canceled_by
        if refunded:
            self.payment_status = PaymentStatus.REFUNDED.value
        now = self._touch()

        self.raise_(
            OrderCanceled(
                order_id=str(self.id),
                previous_status=previous_status,
                reason=reason,
                canceled_by=str(canceled_by),
                refunded=refunded,
                canceled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Returns
    # -------------------------------------------------------------------
    def request_return(self, reason):
        if OrderStatus(self.status) != OrderStatus.DELIVERED:
            raise InvalidStateError({"status": [f"Returns can only be requested for delivered orders, not {self.status}"]})
        if self.return_requested:
            raise InvalidStateError({"return_status": ["A return has already been requested for this order"]})

        self.return_requested = True
        self.return_status = ReturnStatus.PENDING.value
        self.return_reason = reason
        now = self._touch()

        self.raise_(ReturnRequested(order_id=str(self.id), reason=reason, requested_at=now))

    def _assert_return_pending(self):
        if ReturnStatus(self.return_status) != ReturnStatus.PENDING:
            raise InvalidStateError({"return_status": [f"No pending return to process (return status is {self.return_status})"]})

    def approve_return(self, approved_by):
        """Approve the pending return. The payment must already be refunded."""
        self._assert_return_pending()
        self._assert_can_transition(OrderStatus.REFUNDED)

        self.status = OrderStatus.REFUNDED.value
        self.return_status = ReturnStatus.APPROVED.value
        self.payment_status = PaymentStatus.REFUNDED.value
        now = self._touch()

        self.raise_(ReturnApproved(order_id=str(self.id), approved_by=str(approved_by), approved_at=now))
        self.raise_(OrderRefunded(order_id=str(self.id), amount=self.total.amount, refunded_at=now))

    def reject_return(self, rejected_by):
        self._assert_return_pending()

        self.return_status = ReturnStatus.REJECTED.value
        now = self._touch()

        self.raise_(ReturnRejected(order_id=str(self.id), rejected_by=str(rejected_by), rejected_at=now))
