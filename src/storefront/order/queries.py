"""Read helpers over the Order repository."""

from storefront.order.order import Order
from storefront.shared.queries import find_all


def find_orders(**filters) -> list:
    """Every order matching ``filters``."""
    return find_all(Order, **filters)
