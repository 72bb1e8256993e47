"""Cart line management: commands and handler.

Carts are opened lazily on the first add. Stock checks here are advisory:
they keep obviously unfulfillable quantities out of the cart, but the
inventory ledger makes the binding decision at checkout.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.domain import storefront
from storefront.inventory.product import Product
from storefront.shared.errors import InsufficientStockError, ObjectNotFoundError, ValidationError


@storefront.command(part_of="Cart")
class AddCartLine:
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@storefront.command(part_of="Cart")
class UpdateCartLineQuantity:
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@storefront.command(part_of="Cart")
class RemoveCartLine:
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ClearCart:
    owner_id = Identifier(required=True)
    reason = String(max_length=50, default="cleared")


def load_cart(owner_id, create=False):
    """Return the owner's cart, or ``None`` (or a fresh one) if they have none."""
    repo = current_domain.repository_for(Cart)
    try:
        return repo.get(str(owner_id))
    except ObjectNotFoundError:
        return Cart.open_for(owner_id) if create else None


def _check_purchasable(product_id, quantity):
    product = current_domain.repository_for(Product).get(product_id)
    if not product.is_available:
        raise ValidationError({"product_id": [f"Product {product_id} is not available for sale"]})
    if product.stock < quantity:
        raise InsufficientStockError(product_id, quantity, product.stock)
    return product


@storefront.command_handler(part_of=Cart)
class CartLinesHandler:
    @handle(AddCartLine)
    def add_cart_line(self, command):
        if command.quantity is None or command.quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        cart = load_cart(command.owner_id, create=True)
        existing = cart.line_for(command.product_id)
        line_quantity = command.quantity + (existing.quantity if existing else 0)
        _check_purchasable(command.product_id, line_quantity)

        cart.add_line(product_id=command.product_id, quantity=command.quantity)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(UpdateCartLineQuantity)
    def update_cart_line_quantity(self, command):
        if command.quantity is None or command.quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        cart = load_cart(command.owner_id)
        if cart is None or cart.line_for(command.product_id) is None:
            raise ObjectNotFoundError({"product_id": [f"Product {command.product_id} is not in the cart"]})
        _check_purchasable(command.product_id, command.quantity)

        cart.update_line_quantity(product_id=command.product_id, quantity=command.quantity)
        current_domain.repository_for(Cart).add(cart)

    @handle(RemoveCartLine)
    def remove_cart_line(self, command):
        cart = load_cart(command.owner_id)
        if cart is None:
            raise ObjectNotFoundError({"product_id": [f"Product {command.product_id} is not in the cart"]})

        cart.remove_line(command.product_id)
        current_domain.repository_for(Cart).add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = load_cart(command.owner_id)
        if cart is None:
            return

        cart.clear(reason=command.reason or "cleared")
        current_domain.repository_for(Cart).add(cart)
