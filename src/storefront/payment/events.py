"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Payment")
class PaymentInitiated:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = String(required=True)
    currency = String(default="USD")
    method = String(required=True)
    idempotency_key = String(required=True)
    initiated_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class PaymentCompleted:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = String(required=True)
    transaction_id = String(required=True)
    completed_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class PaymentFailed:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class PaymentRefunded:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = String(required=True)
    refund_id = String(required=True)
    refunded_at = DateTime(required=True)
