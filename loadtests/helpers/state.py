"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state with no cross-user
sharing. State tracks the ids returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class VendorState:
    """Tracks a vendor's catalogue."""

    headers: dict = field(default_factory=dict)
    product_ids: list[str] = field(default_factory=list)
    active: bool = True


@dataclass
class ShopperState:
    """Tracks a single customer journey from cart to order."""

    headers: dict = field(default_factory=dict)
    vendor_headers: dict = field(default_factory=dict)
    product_id: str | None = None
    order_id: str | None = None
    current_status: str | None = None
