"""Product aggregate (CQRS): the authoritative stock ledger row for a product.

Stock Model:
    stock:        units that can still be sold; reservations are already
                  subtracted, so stock never double counts held units
    reservations: provisional holds for pending orders; committed when the
                  order is paid, released (back into stock) when it is not

Status follows stock automatically: reaching 0 flips an active product to
out_of_stock, rising above 0 flips it back. An inactive product stays
inactive until a vendor reactivates it.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from storefront.domain import storefront
from storefront.inventory.events import (
    ProductPriceChanged,
    ProductRegistered,
    ProductStatusChanged,
    ReservationCommitted,
    ReservationReleased,
    StockReceived,
    StockReserved,
    StockRestored,
)
from storefront.shared.errors import (
    InsufficientStockError,
    InvalidStateError,
    ObjectNotFoundError,
    ValidationError,
)
from storefront.shared.money import Money


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out_of_stock"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Product")
class StockReservation:
    """An active hold on stock for one order.

    Only active holds are kept on the product: committing or releasing a
    reservation removes it.
    """

    order_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    reserved_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Product:
    vendor_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    price = ValueObject(Money, required=True)
    stock = Integer(default=0, min_value=0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    reservations = HasMany(StockReservation)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_cannot_be_negative(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

    @invariant.post
    def status_must_follow_stock(self):
        if self.stock == 0 and self.status == ProductStatus.ACTIVE.value:
            raise ValidationError({"status": ["A product without stock must be out_of_stock or inactive"]})
        if self.stock and self.stock > 0 and self.status == ProductStatus.OUT_OF_STOCK.value:
            raise ValidationError({"status": ["A product with stock cannot be out_of_stock"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(cls, vendor_id, name, price, stock=0, currency="USD", product_id=None):
        if stock is None or stock < 0:
            raise ValidationError({"stock": ["Opening stock must be zero or more"]})

        now = datetime.now(UTC)
        status = ProductStatus.ACTIVE if stock > 0 else ProductStatus.OUT_OF_STOCK
        kwargs = {"id": str(product_id)} if product_id else {}

        product = cls(
            vendor_id=vendor_id,
            name=name,
            price=Money.of(price, currency),
            stock=stock,
            status=status.value,
            created_at=now,
            updated_at=now,
            **kwargs,
        )
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                vendor_id=str(vendor_id),
                name=name,
                price=product.price.amount,
                currency=product.price.currency,
                stock=stock,
                status=status.value,
                registered_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def is_available(self) -> bool:
        return self.status != ProductStatus.INACTIVE.value

    def _find_reservation(self, reservation_id):
        reservation = next(
            (r for r in (self.reservations or []) if str(r.id) == str(reservation_id)),
            None,
        )
        if reservation is None:
            raise ObjectNotFoundError({"reservation_id": [f"Reservation {reservation_id} not found"]})
        return reservation

    def _status_for(self, stock):
        current = ProductStatus(self.status)
        if current == ProductStatus.INACTIVE:
            return current
        return ProductStatus.ACTIVE if stock > 0 else ProductStatus.OUT_OF_STOCK

    def _announce_status_change(self, previous_status, now):
        if self.status != previous_status:
            self.raise_(
                ProductStatusChanged(
                    product_id=str(self.id),
                    previous_status=previous_status,
                    new_status=self.status,
                    changed_at=now,
                )
            )

    @staticmethod
    def _require_positive(quantity):
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

    # -------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------
    def reserve(self, order_id, quantity, reservation_id=None):
        """Hold ``quantity`` units for an order, decrementing stock immediately."""
        self._require_positive(quantity)
        if not self.is_available:
            raise ValidationError({"product_id": [f"Product {self.id} is not available for sale"]})
        if self.stock < quantity:
            raise InsufficientStockError(self.id, quantity, self.stock)

        now = datetime.now(UTC)
        previous_stock = self.stock
        previous_status = self.status
        reservation = StockReservation(
            id=str(reservation_id or uuid4()),
            order_id=order_id,
            quantity=quantity,
            reserved_at=now,
        )

        with atomic_change(self):
            self.add_reservations(reservation)
            self.stock = previous_stock - quantity
            self.status = self._status_for(self.stock).value
        self.updated_at = now

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                reservation_id=str(reservation.id),
                order_id=str(order_id),
                quantity=quantity,
                previous_stock=previous_stock,
                new_stock=self.stock,
                reserved_at=now,
            )
        )
        self._announce_status_change(previous_status, now)
        return reservation

    def commit_reservation(self, reservation_id):
        """Finalise a reservation once its order is paid. Stock is unchanged."""
        reservation = self._find_reservation(reservation_id)
        now = datetime.now(UTC)

        self.remove_reservations(reservation)
        self.updated_at = now

        self.raise_(
            ReservationCommitted(
                product_id=str(self.id),
                reservation_id=str(reservation_id),
                order_id=str(reservation.order_id),
                quantity=reservation.quantity,
                committed_at=now,
            )
        )

    def release_reservation(self, reservation_id, reason):
        """Drop a reservation and return its quantity to stock."""
        reservation = self._find_reservation(reservation_id)
        now = datetime.now(UTC)
        previous_stock = self.stock
        previous_status = self.status

        with atomic_change(self):
            self.remove_reservations(reservation)
            self.stock = previous_stock + reservation.quantity
            self.status = self._status_for(self.stock).value
        self.updated_at = now

        self.raise_(
            ReservationReleased(
                product_id=str(self.id),
                reservation_id=str(reservation_id),
                order_id=str(reservation.order_id),
                quantity=reservation.quantity,
                reason=reason,
                previous_stock=previous_stock,
                new_stock=self.stock,
                released_at=now,
            )
        )
        self._announce_status_change(previous_status, now)

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def restore(self, quantity, order_id, reason):
        """Put back stock taken by a canceled or refunded order."""
        self._require_positive(quantity)
        now = datetime.now(UTC)
        previous_stock = self.stock
        previous_status = self.status

        with atomic_change(self):
            self.stock = previous_stock + quantity
            self.status = self._status_for(self.stock).value
        self.updated_at = now

        self.raise_(
            StockRestored(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                reason=reason,
                previous_stock=previous_stock,
                new_stock=self.stock,
                restored_at=now,
            )
        )
        self._announce_status_change(previous_status, now)

    def receive_stock(self, quantity):
        """Add newly received units to stock."""
        self._require_positive(quantity)
        now = datetime.now(UTC)
        previous_stock = self.stock
        previous_status = self.status

        with atomic_change(self):
            self.stock = previous_stock + quantity
            self.status = self._status_for(self.stock).value
        self.updated_at = now

        self.raise_(
            StockReceived(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous_stock,
                new_stock=self.stock,
                received_at=now,
            )
        )
        self._announce_status_change(previous_status, now)

    # -------------------------------------------------------------------
    # Catalogue maintenance
    # -------------------------------------------------------------------
    def change_price(self, new_price):
        """Change the live price. Orders already placed keep their frozen price."""
        previous = self.price.amount
        self.price = Money.of(new_price, self.price.currency)
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            ProductPriceChanged(
                product_id=str(self.id),
                previous_price=previous,
                new_price=self.price.amount,
                changed_at=now,
            )
        )

    def deactivate(self):
        if ProductStatus(self.status) == ProductStatus.INACTIVE:
            raise InvalidStateError({"status": ["Product is already inactive"]})

        previous_status = self.status
        now = datetime.now(UTC)
        self.status = ProductStatus.INACTIVE.value
        self.updated_at = now
        self._announce_status_change(previous_status, now)

    def activate(self):
        if ProductStatus(self.status) != ProductStatus.INACTIVE:
            raise InvalidStateError({"status": ["Only inactive products can be activated"]})

        previous_status = self.status
        now = datetime.now(UTC)
        self.status = (ProductStatus.ACTIVE if self.stock > 0 else ProductStatus.OUT_OF_STOCK).value
        self.updated_at = now
        self._announce_status_change(previous_status, now)
