"""Order placement: command and handler."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class PlaceOrder:
    order_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    owner_email = String(max_length=254)
    lines = Text(required=True)  # JSON: list of line dicts, prices as decimal strings
    shipping_address = Text()
    currency = String(max_length=3, default="USD")


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        lines_data = json.loads(command.lines) if isinstance(command.lines, str) else command.lines

        order = Order.place(
            order_id=command.order_id,
            owner_id=command.owner_id,
            owner_email=command.owner_email,
            lines_data=lines_data,
            shipping_address=command.shipping_address,
            currency=command.currency or "USD",
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
