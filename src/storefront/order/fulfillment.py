"""Order fulfilment: commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class ShipOrder:
    order_id = Identifier(required=True)
    shipped_by = Identifier(required=True)
    tracking_number = String(max_length=255)


@storefront.command(part_of="Order")
class DeliverOrder:
    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class FulfillmentHandler:
    @handle(ShipOrder)
    def ship_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.ship(shipped_by=command.shipped_by, tracking_number=command.tracking_number)
        repo.add(order)

    @handle(DeliverOrder)
    def deliver_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.deliver()
        repo.add(order)
