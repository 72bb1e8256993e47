"""Shared BDD fixtures and step definitions for the Storefront."""

import pytest
from protean import current_domain
from protean.exceptions import InvalidOperationError, ValidationError
from pytest_bdd import given, parsers, then

from storefront.cart.lines import load_cart
from storefront.checkout.service import CheckoutService
from storefront.inventory.product import Product
from storefront.order.order import Order
from storefront.order.service import OrderService
from storefront.payment.coordinator import payments_for
from storefront.shared.principal import Principal, Role


@pytest.fixture()
def products():
    """Product ids by name, filled in by the Given steps."""
    return {}


@pytest.fixture()
def error():
    """Container for the exception a When step ran into."""
    return {"exc": None}


@pytest.fixture()
def attempt(error):
    """Run an operation and keep any domain error for the Then steps."""

    def _attempt(operation, *args, **kwargs):
        try:
            return operation(*args, **kwargs)
        except (ValidationError, InvalidOperationError) as exc:
            error["exc"] = exc
            return None

    return _attempt


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced at "{price}" with {stock:d} in stock'))
def _(products, make_product, name, price, stock):
    products[name] = make_product(name=name, price=price, stock=stock)


@given(parsers.cfparse('the customer has {quantity:d} of "{name}" in their cart'))
def _(products, add_to_cart, name, quantity):
    add_to_cart((products[name], quantity))


@given(parsers.cfparse('another customer has bought {quantity:d} of "{name}"'))
def _(products, paid_order, other_customer, name, quantity):
    paid_order((products[name], quantity), owner=other_customer)


@given(parsers.cfparse('the customer has paid for {quantity:d} of "{name}"'), target_fixture="order_id")
def _(products, paid_order, name, quantity):
    return paid_order((products[name], quantity))


@given("the customer placed the order without paying", target_fixture="order_id")
def _(customer):
    return CheckoutService().place_order(customer)


@given("the payment gateway declines charges")
def _(gateway):
    gateway.configure(should_succeed=False)


@given("the payment gateway declines refunds")
def _(gateway):
    gateway.configure(should_succeed=False, failure_reason="Refund declined")


@given("the order was shipped")
def _(order_id, vendor):
    OrderService().ship_order(order_id, vendor, tracking_number="TRK-001")


@given("the order was delivered")
def _(order_id, vendor):
    OrderService().deliver_order(order_id, vendor)


@given(parsers.cfparse('{count:d} customers each have {quantity:d} of "{name}" in their cart'), target_fixture="racers")
def _(products, add_to_cart, count, quantity, name):
    racers = [Principal(id=f"racer-{i}", role=Role.CUSTOMER) for i in range(count)]
    for racer in racers:
        add_to_cart((products[name], quantity), owner=racer)
    return racers


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the request fails with "{kind}"'))
def _(error, kind):
    assert error["exc"] is not None
    assert type(error["exc"]).__name__ == kind


@then(parsers.cfparse('the order is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse('the order total is "{amount}"'))
def _(order_id, amount):
    assert current_domain.repository_for(Order).get(order_id).total.amount == amount


@then(parsers.cfparse('the return is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).return_status == status


@then("the payment was refunded")
def _(order_id, gateway):
    assert [p.status for p in payments_for(order_id)] == ["refunded"]
    assert len(gateway.refunds()) == 1


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(products, name, stock):
    assert current_domain.repository_for(Product).get(products[name]).stock == stock


@then(parsers.re(r"the customer's cart holds (?P<count>\d+) lines?"), converters={"count": int})
def _(customer, count):
    cart = load_cart(customer.id)
    assert len(cart.lines if cart else []) == count
