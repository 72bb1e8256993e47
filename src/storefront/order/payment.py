"""Order payment outcome: commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class RecordOrderPaid:
    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    payment_method = String(max_length=50)


@storefront.command(part_of="Order")
class RecordOrderPaymentFailed:
    order_id = Identifier(required=True)
    payment_id = Identifier()
    reason = String(required=True, max_length=500)


@storefront.command_handler(part_of=Order)
class RecordOrderPaymentHandler:
    @handle(RecordOrderPaid)
    def record_order_paid(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_paid(payment_id=command.payment_id, payment_method=command.payment_method)
        repo.add(order)

    @handle(RecordOrderPaymentFailed)
    def record_order_payment_failed(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_payment_failed(reason=command.reason, payment_id=command.payment_id)
        repo.add(order)
