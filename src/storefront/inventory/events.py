"""Domain events for the Product aggregate (stock ledger)."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductRegistered:
    """A vendor registered a new product with its opening stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    name = String(required=True)
    price = String(required=True)  # decimal string
    currency = String(default="USD")
    stock = Integer(required=True)
    status = String(required=True)
    registered_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductPriceChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    previous_price = String(required=True)
    new_price = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductStatusChanged:
    """Product status moved between active, inactive and out_of_stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Product")
class StockReserved:
    """Stock was provisionally removed from the count for an order."""

    __version__ = 1

    product_id = Identifier(required=True)
    reservation_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    reserved_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ReservationCommitted:
    """A reservation was finalised after the order was paid."""

    __version__ = 1

    product_id = Identifier(required=True)
    reservation_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    committed_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ReservationReleased:
    """A reservation was released and its quantity returned to stock."""

    __version__ = 1

    product_id = Identifier(required=True)
    reservation_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    reason = String(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    released_at = DateTime(required=True)


@storefront.event(part_of="Product")
class StockRestored:
    """Stock from a canceled or refunded order was put back."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    reason = String(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    restored_at = DateTime(required=True)


@storefront.event(part_of="Product")
class StockReceived:
    """A vendor received new stock for a product."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    received_at = DateTime(required=True)
