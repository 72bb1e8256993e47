"""Fire-and-forget customer notifications.

A failed notification is logged and never undoes the order operation
that triggered it.
"""

from enum import Enum

from storefront.domain import logger
from storefront.notification import get_notifier


class Template(Enum):
    ORDER_CONFIRMED = "order_confirmed"
    PAYMENT_FAILED = "payment_failed"
    ORDER_SHIPPED = "order_shipped"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELED = "order_canceled"
    RETURN_REQUESTED = "return_requested"
    RETURN_APPROVED = "return_approved"
    RETURN_REJECTED = "return_rejected"


def notify_customer(order, template: Template, **data) -> bool:
    """Send ``template`` to the order's customer. Returns whether it was delivered."""
    if not order.owner_email:
        logger.debug("No e-mail on order, notification skipped", order_id=str(order.id), template=template.value)
        return False

    payload = {
        "order_id": str(order.id),
        "status": order.status,
        "total": order.total.amount,
        **data,
    }
    try:
        get_notifier().notify(order.owner_email, template.value, payload)
    except Exception:
        logger.exception("Notification failed", order_id=str(order.id), template=template.value)
        return False

    logger.info("Notification sent", order_id=str(order.id), template=template.value)
    return True
