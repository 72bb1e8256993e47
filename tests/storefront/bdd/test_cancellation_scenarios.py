"""BDD tests for order cancellation."""

from pytest_bdd import scenarios, when

from storefront.order.service import OrderService

scenarios("features/cancellation.feature")


@when("the customer cancels the order")
def _(order_id, customer, attempt):
    attempt(OrderService().cancel_order, order_id, customer, reason="No longer needed")
