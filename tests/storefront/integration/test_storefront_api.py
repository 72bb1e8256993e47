"""Integration tests for the Storefront API via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain

from storefront.api import cart_router, order_router, product_router, register_exception_handlers
from storefront.inventory.product import Product
from storefront.order.order import Order

CUSTOMER = {"X-User-Id": "cust-api-001", "X-User-Role": "customer", "X-User-Email": "cust-api-001@example.com"}
OTHER_CUSTOMER = {"X-User-Id": "cust-api-002", "X-User-Role": "customer"}
VENDOR = {"X-User-Id": "vendor-api-001", "X-User-Role": "vendor"}
ADMIN = {"X-User-Id": "admin-api-001", "X-User-Role": "admin"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(product_router)
    app.include_router(cart_router)
    app.include_router(order_router)
    register_exception_handlers(app)
    return TestClient(app)


def _register(client, name="Mug", price="12.50", stock=10):
    response = client.post("/products", json={"name": name, "price": price, "stock": stock}, headers=VENDOR)
    assert response.status_code == 201
    return response.json()["product_id"]


def _add(client, product_id, quantity=1, headers=CUSTOMER):
    response = client.post("/cart/lines", json={"product_id": product_id, "quantity": quantity}, headers=headers)
    assert response.status_code == 200
    return response


def _checkout(client, headers=CUSTOMER):
    return client.post("/cart/checkout", json={"payment_method": "credit_card"}, headers=headers)


class TestProducts:
    def test_register_and_read(self, client):
        product_id = _register(client)

        response = client.get(f"/products/{product_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["vendor_id"] == "vendor-api-001"
        assert body["price"] == "12.50"
        assert body["stock"] == 10
        assert body["status"] == "active"

    def test_customer_cannot_register(self, client):
        response = client.post("/products", json={"name": "Mug", "price": "1.00"}, headers=CUSTOMER)
        assert response.status_code == 403
        assert response.json()["error"] == {"principal": ["Customers cannot register products"]}

    def test_missing_principal(self, client):
        response = client.post("/products", json={"name": "Mug", "price": "1.00"})
        assert response.status_code == 401
        assert response.json()["error"] == {"principal": ["Authentication required"]}

    def test_unknown_product(self, client):
        assert client.get("/products/nope").status_code == 404

    def test_change_price_and_receive_stock(self, client):
        product_id = _register(client, stock=0)

        assert client.put(f"/products/{product_id}/price", json={"price": "15.00"}, headers=VENDOR).status_code == 200
        assert client.post(f"/products/{product_id}/stock", json={"quantity": 4}, headers=VENDOR).status_code == 200

        product = current_domain.repository_for(Product).get(product_id)
        assert product.price.amount == "15.00"
        assert product.stock == 4

    def test_negative_price_is_rejected(self, client):
        product_id = _register(client)
        response = client.put(f"/products/{product_id}/price", json={"price": "-1"}, headers=VENDOR)
        assert response.status_code == 400

    def test_deactivate_twice_conflicts(self, client):
        product_id = _register(client)
        assert client.post(f"/products/{product_id}/deactivate", headers=VENDOR).status_code == 200
        assert client.post(f"/products/{product_id}/deactivate", headers=VENDOR).status_code == 409
        assert client.post(f"/products/{product_id}/activate", headers=VENDOR).status_code == 200


class TestProductListing:
    def test_customer_lists_available_products(self, client):
        kept = _register(client, name="Mug")
        retired = _register(client, name="Lamp")
        client.post(f"/products/{retired}/deactivate", headers=VENDOR)

        response = client.get("/products", headers=CUSTOMER)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert [p["product_id"] for p in body["products"]] == [kept]

    def test_vendor_lists_own_products_by_status(self, client):
        retired = _register(client, name="Lamp")
        _register(client, name="Mug")
        client.post(f"/products/{retired}/deactivate", headers=VENDOR)

        body = client.get("/products", params={"status": "inactive"}, headers=VENDOR).json()
        assert [p["product_id"] for p in body["products"]] == [retired]

    def test_vendor_cannot_list_another_vendor(self, client):
        response = client.get("/products", params={"vendor_id": "vendor-api-002"}, headers=VENDOR)
        assert response.status_code == 403

    def test_paging(self, client):
        for name in ("A", "B", "C"):
            _register(client, name=name)

        body = client.get("/products", params={"page": 2, "limit": 2}, headers=ADMIN).json()
        assert (body["count"], body["pages"], body["current_page"]) == (3, 2, 2)
        assert len(body["products"]) == 1

    def test_unknown_status_is_rejected(self, client):
        assert client.get("/products", params={"status": "lost"}, headers=CUSTOMER).status_code == 400

    def test_requires_principal(self, client):
        assert client.get("/products").status_code == 401


class TestCart:
    def test_cart_view_prices_lines(self, client):
        product_id = _register(client, price="12.50")
        _add(client, product_id, 2)

        body = client.get("/cart", headers=CUSTOMER).json()
        assert body["total"] == "25.00"
        assert body["lines"][0]["subtotal"] == "25.00"

    def test_update_and_remove_line(self, client):
        product_id = _register(client)
        _add(client, product_id)

        assert client.put(f"/cart/lines/{product_id}", json={"quantity": 3}, headers=CUSTOMER).status_code == 200
        assert client.get("/cart", headers=CUSTOMER).json()["lines"][0]["quantity"] == 3

        assert client.delete(f"/cart/lines/{product_id}", headers=CUSTOMER).status_code == 200
        assert client.get("/cart", headers=CUSTOMER).json()["lines"] == []

    def test_adding_more_than_stock_conflicts(self, client):
        product_id = _register(client, stock=1)
        response = client.post("/cart/lines", json={"product_id": product_id, "quantity": 2}, headers=CUSTOMER)
        assert response.status_code == 409

    def test_zero_quantity_is_rejected(self, client):
        product_id = _register(client)
        response = client.post("/cart/lines", json={"product_id": product_id, "quantity": 0}, headers=CUSTOMER)
        assert response.status_code == 400


class TestCheckout:
    def test_checkout_creates_processing_order(self, client):
        product_id = _register(client, price="12.50", stock=10)
        _add(client, product_id, 2)

        response = _checkout(client)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "processing"
        assert body["total"] == "25.00"
        assert body["settlement"]["status"] == "completed"
        assert current_domain.repository_for(Product).get(product_id).stock == 8
        assert client.get("/cart", headers=CUSTOMER).json()["lines"] == []

    def test_empty_cart(self, client):
        assert _checkout(client).status_code == 400

    def test_declined_payment(self, client, gateway):
        product_id = _register(client)
        _add(client, product_id)
        gateway.configure(should_succeed=False)

        response = _checkout(client)

        assert response.status_code == 402
        assert response.json()["retryable"] is True
        assert current_domain.repository_for(Product).get(product_id).stock == 10

    def test_repeated_charge_returns_same_settlement(self, client, gateway):
        _add(client, _register(client))
        checkout = _checkout(client).json()

        response = client.post(
            f"/orders/{checkout['order_id']}/payment", json={"payment_method": "credit_card"}, headers=CUSTOMER
        )
        assert response.status_code == 200
        assert response.json()["payment_id"] == checkout["settlement"]["payment_id"]
        assert len(gateway.charges()) == 1


class TestOrders:
    @pytest.fixture()
    def order_id(self, client):
        _add(client, _register(client))
        return _checkout(client).json()["order_id"]

    def test_owner_reads_order(self, client, order_id):
        response = client.get(f"/orders/{order_id}", headers=CUSTOMER)
        assert response.status_code == 200
        assert response.json()["lines"][0]["product_name"] == "Mug"

    def test_other_customer_is_forbidden(self, client, order_id):
        assert client.get(f"/orders/{order_id}", headers=OTHER_CUSTOMER).status_code == 403

    def test_list_orders(self, client, order_id):
        body = client.get("/orders", headers=CUSTOMER).json()
        assert body["count"] == 1
        assert body["orders"][0]["order_id"] == order_id

    def test_list_with_unknown_status(self, client):
        assert client.get("/orders?status=lost", headers=ADMIN).status_code == 400

    def test_full_lifecycle_with_return(self, client, order_id):
        assert client.post(f"/orders/{order_id}/ship", json={"tracking_number": "TRK-9"}, headers=VENDOR).status_code == 200
        assert client.post(f"/orders/{order_id}/deliver", headers=VENDOR).status_code == 200

        response = client.post(f"/orders/{order_id}/return", json={"reason": "Chipped"}, headers=CUSTOMER)
        assert response.json()["return_status"] == "pending"

        response = client.post(f"/orders/{order_id}/refund", json={"action": "approve"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["status"] == "refunded"

    def test_customer_cannot_ship(self, client, order_id):
        assert client.post(f"/orders/{order_id}/ship", json={}, headers=CUSTOMER).status_code == 403

    def test_cancel_then_ship_conflicts(self, client, order_id):
        response = client.post(f"/orders/{order_id}/cancel", json={"reason": "Too late"}, headers=CUSTOMER)
        assert response.status_code == 200
        assert response.json()["status"] == "canceled"

        assert client.post(f"/orders/{order_id}/ship", json={}, headers=VENDOR).status_code == 409
        assert current_domain.repository_for(Order).get(order_id).payment_status == "refunded"

    def test_unknown_order(self, client):
        assert client.get("/orders/missing", headers=ADMIN).status_code == 404
