"""Stock reservation: commands and handler.

Each command is processed on its own so the Product row is persisted (and
its version checked) per reservation. The ledger wraps these commands with
the per-product lock.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.inventory.product import Product


@storefront.command(part_of="Product")
class ReserveStock:
    """Hold stock for an order. The caller supplies the reservation id."""

    product_id = Identifier(required=True)
    reservation_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)


@storefront.command(part_of="Product")
class CommitReservation:
    product_id = Identifier(required=True)
    reservation_id = Identifier(required=True)


@storefront.command(part_of="Product")
class ReleaseReservation:
    product_id = Identifier(required=True)
    reservation_id = Identifier(required=True)
    reason = String(required=True, max_length=255)


@storefront.command(part_of="Product")
class RestoreStock:
    """Return units of a canceled or refunded order to stock."""

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    reason = String(required=True, max_length=255)


@storefront.command_handler(part_of=Product)
class ReservationHandler:
    @handle(ReserveStock)
    def reserve_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.reserve(
            order_id=command.order_id,
            quantity=command.quantity,
            reservation_id=command.reservation_id,
        )
        repo.add(product)

    @handle(CommitReservation)
    def commit_reservation(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.commit_reservation(command.reservation_id)
        repo.add(product)

    @handle(ReleaseReservation)
    def release_reservation(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.release_reservation(
            reservation_id=command.reservation_id,
            reason=command.reason,
        )
        repo.add(product)

    @handle(RestoreStock)
    def restore_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restore(
            quantity=command.quantity,
            order_id=command.order_id,
            reason=command.reason,
        )
        repo.add(product)
