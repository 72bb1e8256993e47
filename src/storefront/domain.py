"""Storefront bounded context: Inventory, Cart, Orders, Payments and Returns.

Handles the order lifecycle and the inventory consistency around it:
cart → order → payment → stock decrement → refund/return → stock restoration.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)


def custom_setting(key, default=None):
    """Read an application setting from the ``[custom]`` section of domain.toml."""
    custom = storefront.config.get("custom") or {}
    return custom.get(key, default)
