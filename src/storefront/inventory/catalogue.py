"""Catalogue maintenance: commands and handler.

Vendors manage their own products; admins manage every product. Customers
may not touch the catalogue. The acting principal travels on each command
as ``actor_id`` / ``actor_role``.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.inventory.product import Product
from storefront.shared.errors import ForbiddenError, ValidationError
from storefront.shared.principal import Principal, Role


@storefront.command(part_of="Product")
class RegisterProduct:
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)
    name: String(required=True, max_length=100)
    price: String(required=True, max_length=32)
    stock: Integer(default=0)
    currency: String(max_length=3, default="USD")
    vendor_id: Identifier()  # Admins register on behalf of a vendor
    product_id: Identifier()


@storefront.command(part_of="Product")
class ChangeProductPrice:
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)
    product_id: Identifier(required=True)
    price: String(required=True, max_length=32)


@storefront.command(part_of="Product")
class ReceiveStock:
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)
    product_id: Identifier(required=True)
    quantity: Integer(required=True)


@storefront.command(part_of="Product")
class DeactivateProduct:
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)
    product_id: Identifier(required=True)


@storefront.command(part_of="Product")
class ActivateProduct:
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)
    product_id: Identifier(required=True)


def _actor(command) -> Principal:
    return Principal(id=str(command.actor_id), role=Role.parse(command.actor_role))


def _load_managed_product(command) -> Product:
    """Load a product the acting principal is allowed to manage."""
    actor = _actor(command)
    product = current_domain.repository_for(Product).get(command.product_id)

    if actor.role is Role.ADMIN:
        return product
    if actor.role is Role.VENDOR:
        if str(product.vendor_id) != actor.id:
            raise ForbiddenError({"product_id": ["Vendors may only manage their own products"]})
        return product
    if actor.role is Role.CUSTOMER:
        raise ForbiddenError({"principal": ["Customers cannot manage products"]})

    raise ForbiddenError({"principal": [f"Unsupported role {actor.role.value}"]})


@storefront.command_handler(part_of=Product)
class CatalogueHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        actor = _actor(command)

        if actor.role is Role.VENDOR:
            if command.vendor_id and str(command.vendor_id) != actor.id:
                raise ForbiddenError({"vendor_id": ["Vendors may only register their own products"]})
            vendor_id = actor.id
        elif actor.role is Role.ADMIN:
            if not command.vendor_id:
                raise ValidationError({"vendor_id": ["Admins must name the vendor of the product"]})
            vendor_id = str(command.vendor_id)
        elif actor.role is Role.CUSTOMER:
            raise ForbiddenError({"principal": ["Customers cannot register products"]})
        else:
            raise ForbiddenError({"principal": [f"Unsupported role {actor.role.value}"]})

        product = Product.register(
            vendor_id=vendor_id,
            name=command.name,
            price=command.price,
            stock=command.stock if command.stock is not None else 0,
            currency=command.currency or "USD",
            product_id=command.product_id,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product registered", product_id=str(product.id), vendor_id=vendor_id)
        return str(product.id)

    @handle(ChangeProductPrice)
    def change_product_price(self, command):
        product = _load_managed_product(command)
        product.change_price(command.price)
        current_domain.repository_for(Product).add(product)

    @handle(ReceiveStock)
    def receive_stock(self, command):
        product = _load_managed_product(command)
        product.receive_stock(command.quantity)
        current_domain.repository_for(Product).add(product)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        product = _load_managed_product(command)
        product.deactivate()
        current_domain.repository_for(Product).add(product)

    @handle(ActivateProduct)
    def activate_product(self, command):
        product = _load_managed_product(command)
        product.activate()
        current_domain.repository_for(Product).add(product)
