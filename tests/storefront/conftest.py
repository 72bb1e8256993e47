import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from storefront.cart.lines import AddCartLine
from storefront.checkout.service import CheckoutService
from storefront.gateway import get_gateway, reset_gateway
from storefront.inventory.catalogue import RegisterProduct
from storefront.notification import get_notifier, reset_notifier
from storefront.shared.principal import Principal, Role


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_notifier()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def gateway():
    """The active FakeGateway, fresh for every test."""
    return get_gateway()


@pytest.fixture()
def notifier():
    """The active FakeNotifier, fresh for every test."""
    return get_notifier()


# ---------------------------------------------------------------------------
# Principals
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer():
    return Principal(id="cust-001", role=Role.CUSTOMER, email="cust-001@example.com")


@pytest.fixture()
def other_customer():
    return Principal(id="cust-002", role=Role.CUSTOMER, email="cust-002@example.com")


@pytest.fixture()
def vendor():
    return Principal(id="vendor-001", role=Role.VENDOR, email="vendor-001@example.com")


@pytest.fixture()
def other_vendor():
    return Principal(id="vendor-002", role=Role.VENDOR, email="vendor-002@example.com")


@pytest.fixture()
def admin():
    return Principal(id="admin-001", role=Role.ADMIN, email="admin@example.com")


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_product(vendor):
    """Register a product and return its id."""

    def _make(name="Widget", price="10.00", stock=10, owner=None):
        actor = owner or vendor
        return current_domain.process(
            RegisterProduct(
                actor_id=actor.id,
                actor_role=actor.role.value,
                name=name,
                price=price,
                stock=stock,
            ),
            asynchronous=False,
        )

    return _make


@pytest.fixture()
def add_to_cart(customer):
    """Add ``(product_id, quantity)`` pairs to a principal's cart."""

    def _add(*lines, owner=None):
        principal = owner or customer
        for product_id, quantity in lines:
            current_domain.process(
                AddCartLine(owner_id=principal.id, product_id=product_id, quantity=quantity),
                asynchronous=False,
            )

    return _add


@pytest.fixture()
def paid_order(add_to_cart, customer):
    """Check out ``(product_id, quantity)`` pairs and return the processing order's id."""

    def _paid(*lines, owner=None):
        principal = owner or customer
        add_to_cart(*lines, owner=principal)
        return CheckoutService().checkout(principal, "credit_card").order_id

    return _paid
