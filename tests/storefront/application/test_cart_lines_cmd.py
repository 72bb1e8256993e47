"""Application tests for cart line commands and live pricing."""

from decimal import Decimal

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.cart.cart import Cart
from storefront.cart.lines import AddCartLine, ClearCart, RemoveCartLine, UpdateCartLineQuantity
from storefront.cart.pricing import snapshot_total, view_cart
from storefront.inventory.catalogue import ChangeProductPrice, DeactivateProduct
from storefront.shared.errors import InsufficientStockError


class TestAddCartLine:
    def test_first_add_opens_cart(self, make_product, customer):
        product_id = make_product()
        current_domain.process(AddCartLine(owner_id=customer.id, product_id=product_id, quantity=2), asynchronous=False)

        cart = current_domain.repository_for(Cart).get(customer.id)
        assert cart.owner_id == customer.id
        assert cart.line_for(product_id).quantity == 2

    def test_adding_again_merges(self, make_product, add_to_cart, customer):
        product_id = make_product(stock=10)
        add_to_cart((product_id, 2), (product_id, 3))

        cart = current_domain.repository_for(Cart).get(customer.id)
        assert len(cart.lines) == 1
        assert cart.line_for(product_id).quantity == 5

    def test_unknown_product(self, customer):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(AddCartLine(owner_id=customer.id, product_id="missing", quantity=1), asynchronous=False)

    def test_inactive_product(self, make_product, vendor, customer):
        product_id = make_product()
        current_domain.process(
            DeactivateProduct(actor_id=vendor.id, actor_role=vendor.role.value, product_id=product_id),
            asynchronous=False,
        )
        with pytest.raises(ValidationError):
            current_domain.process(AddCartLine(owner_id=customer.id, product_id=product_id, quantity=1), asynchronous=False)

    def test_more_than_stock(self, make_product, customer):
        product_id = make_product(stock=2)
        with pytest.raises(InsufficientStockError):
            current_domain.process(AddCartLine(owner_id=customer.id, product_id=product_id, quantity=3), asynchronous=False)

    def test_merged_quantity_checked_against_stock(self, make_product, add_to_cart):
        product_id = make_product(stock=3)
        add_to_cart((product_id, 2))
        with pytest.raises(InsufficientStockError):
            add_to_cart((product_id, 2))


class TestUpdateAndRemove:
    def test_update_quantity(self, make_product, add_to_cart, customer):
        product_id = make_product(stock=10)
        add_to_cart((product_id, 1))
        current_domain.process(
            UpdateCartLineQuantity(owner_id=customer.id, product_id=product_id, quantity=4),
            asynchronous=False,
        )
        assert current_domain.repository_for(Cart).get(customer.id).line_for(product_id).quantity == 4

    def test_update_missing_line(self, make_product, customer):
        product_id = make_product()
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                UpdateCartLineQuantity(owner_id=customer.id, product_id=product_id, quantity=1),
                asynchronous=False,
            )

    def test_update_beyond_stock(self, make_product, add_to_cart, customer):
        product_id = make_product(stock=2)
        add_to_cart((product_id, 1))
        with pytest.raises(InsufficientStockError):
            current_domain.process(
                UpdateCartLineQuantity(owner_id=customer.id, product_id=product_id, quantity=5),
                asynchronous=False,
            )

    def test_remove_line(self, make_product, add_to_cart, customer):
        product_id = make_product()
        add_to_cart((product_id, 1))
        current_domain.process(RemoveCartLine(owner_id=customer.id, product_id=product_id), asynchronous=False)
        assert current_domain.repository_for(Cart).get(customer.id).is_empty

    def test_remove_from_missing_cart(self, customer):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(RemoveCartLine(owner_id=customer.id, product_id="prod-x"), asynchronous=False)

    def test_clear(self, make_product, add_to_cart, customer):
        add_to_cart((make_product(name="A"), 1), (make_product(name="B"), 1))
        current_domain.process(ClearCart(owner_id=customer.id), asynchronous=False)
        assert current_domain.repository_for(Cart).get(customer.id).is_empty


class TestPricing:
    def test_total_uses_current_prices(self, make_product, add_to_cart, vendor, customer):
        x = make_product(name="X", price="10.00")
        y = make_product(name="Y", price="5.00")
        add_to_cart((x, 2), (y, 1))

        cart = current_domain.repository_for(Cart).get(customer.id)
        assert snapshot_total(cart) == Decimal("25.00")

        current_domain.process(
            ChangeProductPrice(actor_id=vendor.id, actor_role=vendor.role.value, product_id=x, price="12.00"),
            asynchronous=False,
        )
        assert snapshot_total(cart) == Decimal("29.00")

    def test_view_of_missing_cart_is_empty(self, customer):
        view = view_cart(customer.id)
        assert view.lines == []
        assert view.total == Decimal("0.00")
