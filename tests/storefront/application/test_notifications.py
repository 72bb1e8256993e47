from protean import current_domain

from storefront.checkout.service import CheckoutService
from storefront.notification.dispatch import Template, notify_customer
from storefront.order.order import Order, OrderStatus
from storefront.order.service import OrderService
from storefront.shared.principal import Principal, Role


def test_confirmation_carries_order_details(make_product, paid_order, customer, notifier):
    order_id = paid_order((make_product(price="12.50"), 2))

    [message] = notifier.sent
    assert message["email"] == customer.email
    assert message["template"] == "order_confirmed"
    assert message["data"]["order_id"] == order_id
    assert message["data"]["total"] == "25.00"


def test_failed_notification_does_not_undo_checkout(make_product, paid_order, notifier):
    notifier.configure(should_succeed=False)

    order_id = paid_order((make_product(), 1))

    assert current_domain.repository_for(Order).get(order_id).status == OrderStatus.PROCESSING.value
    assert notifier.sent == []


def test_failed_notification_does_not_undo_shipment(make_product, paid_order, vendor, notifier):
    order_id = paid_order((make_product(), 1))
    notifier.configure(should_succeed=False)

    assert OrderService().ship_order(order_id, vendor).status == OrderStatus.SHIPPED.value


def test_delivery_result_is_reported(make_product, paid_order, notifier):
    order_id = paid_order((make_product(), 1))
    order = current_domain.repository_for(Order).get(order_id)

    assert notify_customer(order, Template.ORDER_SHIPPED) is True
    notifier.configure(should_succeed=False)
    assert notify_customer(order, Template.ORDER_SHIPPED) is False


def test_orders_without_email_are_skipped(make_product, add_to_cart, notifier):
    anonymous = Principal(id="cust-009", role=Role.CUSTOMER)
    add_to_cart((make_product(), 1), owner=anonymous)
    CheckoutService().checkout(anonymous, "credit_card")

    assert notifier.sent == []
