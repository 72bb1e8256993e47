"""Domain events for the Order aggregate.

Every status change of an order is announced with one of these events.
Amounts travel as decimal strings.
"""

from protean.fields import Boolean, DateTime, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """An order was created from a cart with its stock reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: list of line dicts
    total = String(required=True)
    currency = String(default="USD")
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    payment_method = String(max_length=50)
    amount = String(required=True)
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier()
    reason = String(required=True)
    failed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderShipped:
    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String(max_length=255)
    shipped_by = Identifier(required=True)
    shipped_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCanceled:
    """The order was canceled; its stock is returned and any payment refunded."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(required=True)
    canceled_by = Identifier(required=True)
    refunded = Boolean(default=False)
    canceled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class ReturnRequested:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    requested_at = DateTime(required=True)


@storefront.event(part_of="Order")
class ReturnApproved:
    __version__ = 1

    order_id = Identifier(required=True)
    approved_by = Identifier(required=True)
    approved_at = DateTime(required=True)


@storefront.event(part_of="Order")
class ReturnRejected:
    __version__ = 1

    order_id = Identifier(required=True)
    rejected_by = Identifier(required=True)
    rejected_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    amount = String(required=True)
    refunded_at = DateTime(required=True)
