"""Order service: authorized reads, fulfilment and cancellation.

Mutating operations hold the order's lock for their whole duration so a
cancellation cannot interleave with a charge, shipment or return.
"""

from protean.utils.globals import current_domain

from storefront.domain import logger
from storefront.inventory.ledger import InventoryLedger, tokens_for
from storefront.notification.dispatch import Template, notify_customer
from storefront.order.access import authorize_fulfilment, authorize_owner_or_admin, authorize_read
from storefront.order.cancellation import CancelOrder
from storefront.order.fulfillment import DeliverOrder, ShipOrder
from storefront.order.order import Order, OrderStatus
from storefront.order.queries import find_orders
from storefront.payment.coordinator import PaymentCoordinator
from storefront.shared.errors import ForbiddenError, InvalidStateError, ValidationError
from storefront.shared.locks import order_locks
from storefront.shared.principal import Principal, Role
from storefront.shared.queries import Page, check_paging, paginate

_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.PROCESSING}


class OrderService:
    def __init__(self, ledger: InventoryLedger | None = None, coordinator: PaymentCoordinator | None = None):
        self.ledger = ledger or InventoryLedger()
        self.coordinator = coordinator or PaymentCoordinator(self.ledger)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_order(self, order_id, principal: Principal):
        order = current_domain.repository_for(Order).get(order_id)
        authorize_read(order, principal)
        return order

    def list_orders(self, principal: Principal, status=None, page=1, limit=10) -> Page:
        """Orders visible to the principal, newest first."""
        check_paging(page, limit)

        filters = {}
        if status:
            try:
                filters["status"] = OrderStatus(status).value
            except ValueError:
                raise ValidationError({"status": [f"Unknown order status: {status!r}"]}) from None

        if principal.role is Role.CUSTOMER:
            orders = find_orders(owner_id=principal.id, **filters)
        elif principal.role is Role.VENDOR:
            orders = [o for o in find_orders(**filters) if o.has_vendor(principal.id)]
        elif principal.role is Role.ADMIN:
            orders = find_orders(**filters)
        else:
            raise ForbiddenError({"principal": [f"Unsupported role {principal.role.value}"]})

        orders.sort(key=lambda o: o.created_at, reverse=True)
        return paginate(orders, page, limit)

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def ship_order(self, order_id, principal: Principal, tracking_number=None):
        with order_locks.hold(order_id):
            order = current_domain.repository_for(Order).get(order_id)
            authorize_fulfilment(order, principal)
            current_domain.process(
                ShipOrder(order_id=str(order_id), shipped_by=principal.id, tracking_number=tracking_number),
                asynchronous=False,
            )
            order = current_domain.repository_for(Order).get(order_id)

        logger.info("Order shipped", order_id=str(order_id), shipped_by=principal.id)
        notify_customer(order, Template.ORDER_SHIPPED, tracking_number=tracking_number)
        return order

    def deliver_order(self, order_id, principal: Principal):
        with order_locks.hold(order_id):
            order = current_domain.repository_for(Order).get(order_id)
            authorize_fulfilment(order, principal)
            current_domain.process(DeliverOrder(order_id=str(order_id)), asynchronous=False)
            order = current_domain.repository_for(Order).get(order_id)

        logger.info("Order delivered", order_id=str(order_id))
        notify_customer(order, Template.ORDER_DELIVERED)
        return order

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel_order(self, order_id, principal: Principal, reason=None):
        """Cancel a pending or processing order and give its stock back.

        A processing order has been paid: its payment is refunded through
        the gateway first, and a failed refund leaves the order untouched.
        """
        reason = reason or "Canceled by request"

        with order_locks.hold(order_id):
            order = current_domain.repository_for(Order).get(order_id)
            authorize_owner_or_admin(order, principal, "cancel")

            current = OrderStatus(order.status)
            if current not in _CANCELLABLE_STATES:
                raise InvalidStateError({"status": [f"Cannot cancel an order in {current.value} state"]})

            if current == OrderStatus.PENDING:
                self.ledger.release_held(tokens_for(order), reason="order_canceled")
                current_domain.process(
                    CancelOrder(order_id=str(order_id), reason=reason, canceled_by=principal.id),
                    asynchronous=False,
                )
            else:
                self.coordinator.refund(order)
                current_domain.process(
                    CancelOrder(order_id=str(order_id), reason=reason, canceled_by=principal.id, refunded=True),
                    asynchronous=False,
                )
                for line in order.lines:
                    self.ledger.restore(line.product_id, line.quantity, order_id, reason="order_canceled")

            order = current_domain.repository_for(Order).get(order_id)

        logger.info("Order canceled", order_id=str(order_id), previous_status=current.value, canceled_by=principal.id)
        notify_customer(order, Template.ORDER_CANCELED, reason=reason)
        return order
