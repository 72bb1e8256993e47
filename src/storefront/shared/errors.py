"""Error taxonomy for the Storefront domain.

Entity lookups raise Protean's ``ObjectNotFoundError`` and malformed input
raises Protean's ``ValidationError``. The kinds below cover the remaining
failure modes. Every exception carries a ``messages`` dict, the same shape
Protean uses, so the API can render ``{"error": messages}`` uniformly.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

__all__ = [
    "ForbiddenError",
    "InsufficientStockError",
    "InvalidStateError",
    "ObjectNotFoundError",
    "PaymentError",
    "StorefrontError",
    "UnauthorizedError",
    "ValidationError",
]


class StorefrontError(InvalidOperationError):
    """Base for refused operations. Protean's ``InvalidOperationError`` keeps no ``messages``."""

    def __init__(self, messages, **kwargs):
        self.messages = messages
        super().__init__(messages, **kwargs)


class InvalidStateError(StorefrontError):
    """An illegal state transition was attempted (e.g. shipping a pending order)."""


class InsufficientStockError(ValidationError):
    """A product cannot cover the requested quantity."""

    def __init__(self, product_id, requested, available):
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available
        super().__init__(
            {
                "quantity": [
                    f"Insufficient stock for product {product_id}: {available} available, {requested} requested"
                ]
            }
        )


class PaymentError(StorefrontError):
    """The payment gateway declined, timed out or failed.

    Payment errors are retryable by the caller: partial state has already
    been rolled back by the time the error is raised.
    """

    def __init__(self, reason, order_id=None, retryable=True):
        self.reason = reason
        self.order_id = str(order_id) if order_id else None
        self.retryable = retryable
        super().__init__({"payment": [reason]})


class ForbiddenError(StorefrontError):
    """The principal lacks the role or ownership the operation requires."""


class UnauthorizedError(StorefrontError):
    """No authenticated principal was supplied."""
