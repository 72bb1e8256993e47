"""Cart aggregate (CQRS): one mutable cart per user.

The cart id is the owner's user id, so a user never has more than one cart.
Lines hold only a product reference and a quantity: prices are read from
the Product whenever the cart is priced and are frozen only when an order
is placed.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.fields import DateTime, HasMany, Identifier, Integer

from storefront.cart.events import (
    CartCleared,
    CartLineAdded,
    CartLineQuantityUpdated,
    CartLineRemoved,
)
from storefront.domain import storefront
from storefront.shared.errors import ObjectNotFoundError, ValidationError


@storefront.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@storefront.aggregate
class Cart:
    owner_id = Identifier(required=True)
    lines = HasMany(CartLine)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product(self):
        product_ids = [str(line.product_id) for line in self.lines or []]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"lines": ["A product can appear only once in a cart"]})

    @classmethod
    def open_for(cls, owner_id):
        now = datetime.now(UTC)
        return cls(id=str(owner_id), owner_id=owner_id, created_at=now, updated_at=now)

    def line_for(self, product_id):
        return next((line for line in self.lines or [] if str(line.product_id) == str(product_id)), None)

    def _require_line(self, product_id):
        line = self.line_for(product_id)
        if line is None:
            raise ObjectNotFoundError({"product_id": [f"Product {product_id} is not in the cart"]})
        return line

    @staticmethod
    def _require_positive(quantity):
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

    def add_line(self, product_id, quantity):
        """Add a product, merging into the existing line when there is one."""
        self._require_positive(quantity)
        now = datetime.now(UTC)

        existing = self.line_for(product_id)
        if existing:
            existing.quantity += quantity
            line_quantity = existing.quantity
        else:
            self.add_lines(CartLine(product_id=product_id, quantity=quantity, added_at=now))
            line_quantity = quantity

        self.updated_at = now
        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                product_id=str(product_id),
                quantity=quantity,
                line_quantity=line_quantity,
            )
        )

    def update_line_quantity(self, product_id, quantity):
        self._require_positive(quantity)
        line = self._require_line(product_id)

        previous_quantity = line.quantity
        line.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartLineQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_line(self, product_id):
        line = self._require_line(product_id)
        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartLineRemoved(cart_id=str(self.id), product_id=str(product_id)))

    def clear(self, reason="cleared"):
        for line in list(self.lines or []):
            self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), reason=reason))

    @property
    def is_empty(self) -> bool:
        return not self.lines
