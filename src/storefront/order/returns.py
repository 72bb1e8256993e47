"""Order returns: commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class RequestReturn:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@storefront.command(part_of="Order")
class ApproveReturn:
    order_id = Identifier(required=True)
    approved_by = Identifier(required=True)


@storefront.command(part_of="Order")
class RejectReturn:
    order_id = Identifier(required=True)
    rejected_by = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class ReturnsHandler:
    @handle(RequestReturn)
    def request_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.request_return(reason=command.reason)
        repo.add(order)

    @handle(ApproveReturn)
    def approve_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.approve_return(approved_by=command.approved_by)
        repo.add(order)

    @handle(RejectReturn)
    def reject_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.reject_return(rejected_by=command.rejected_by)
        repo.add(order)
