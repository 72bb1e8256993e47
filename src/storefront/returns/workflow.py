"""Return and refund workflow.

    return_status: none → pending → approved | rejected

Approval refunds the payment through the gateway before anything else
changes. If the refund fails the order, payment and stock are untouched
and the admin can retry.
"""

from protean.utils.globals import current_domain

from storefront.domain import logger
from storefront.inventory.ledger import InventoryLedger
from storefront.notification.dispatch import Template, notify_customer
from storefront.order.access import authorize_return_request
from storefront.order.order import Order, OrderStatus, ReturnStatus
from storefront.order.returns import ApproveReturn, RejectReturn, RequestReturn
from storefront.payment.coordinator import PaymentCoordinator
from storefront.shared.errors import InvalidStateError, ValidationError
from storefront.shared.locks import order_locks
from storefront.shared.principal import Principal, Role, require_role

APPROVE = "approve"
REJECT = "reject"


class ReturnWorkflow:
    def __init__(self, ledger: InventoryLedger | None = None, coordinator: PaymentCoordinator | None = None):
        self.ledger = ledger or InventoryLedger()
        self.coordinator = coordinator or PaymentCoordinator(self.ledger)

    def request_return(self, order_id, reason, principal: Principal):
        if not reason or not str(reason).strip():
            raise ValidationError({"reason": ["A reason is required to request a return"]})

        with order_locks.hold(order_id):
            order = current_domain.repository_for(Order).get(order_id)
            authorize_return_request(order, principal)
            current_domain.process(RequestReturn(order_id=str(order_id), reason=reason), asynchronous=False)
            order = current_domain.repository_for(Order).get(order_id)

        logger.info("Return requested", order_id=str(order_id))
        notify_customer(order, Template.RETURN_REQUESTED, reason=reason)
        return order

    def process_refund(self, order_id, action, principal: Principal):
        require_role(principal, Role.ADMIN)
        if action not in (APPROVE, REJECT):
            raise ValidationError({"action": [f"Unknown action {action!r}; expected 'approve' or 'reject'"]})

        with order_locks.hold(order_id):
            order = current_domain.repository_for(Order).get(order_id)
            if ReturnStatus(order.return_status) != ReturnStatus.PENDING:
                raise InvalidStateError({"return_status": [f"No pending return for order {order_id}"]})

            if action == REJECT:
                current_domain.process(
                    RejectReturn(order_id=str(order_id), rejected_by=principal.id),
                    asynchronous=False,
                )
                template = Template.RETURN_REJECTED
            else:
                if OrderStatus(order.status) != OrderStatus.DELIVERED:
                    raise InvalidStateError({"status": [f"Cannot refund an order in {order.status} state"]})

                self.coordinator.refund(order)
                current_domain.process(
                    ApproveReturn(order_id=str(order_id), approved_by=principal.id),
                    asynchronous=False,
                )
                for line in order.lines:
                    self.ledger.restore(line.product_id, line.quantity, order_id, reason="order_returned")
                template = Template.RETURN_APPROVED

            order = current_domain.repository_for(Order).get(order_id)

        logger.info("Return processed", order_id=str(order_id), action=action)
        notify_customer(order, template)
        return order
