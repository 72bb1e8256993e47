"""Customer load test scenarios.

Every journey starts from a fresh vendor product so journeys never
compete for stock. Contention is exercised separately in stress.py.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    admin_headers,
    checkout_data,
    customer_headers,
    product_data,
    return_reason,
    tracking_number,
    vendor_headers,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ShopperState


class _ShopperJourney(SequentialTaskSet):
    def on_start(self):
        self.state = ShopperState(headers=customer_headers(), vendor_headers=vendor_headers())

    def _stock_shelf(self):
        with self.client.post(
            "/products",
            json=product_data(stock=50),
            headers=self.state.vendor_headers,
            catch_response=True,
            name="POST /products",
        ) as resp:
            if resp.status_code == 201:
                self.state.product_id = resp.json()["product_id"]
            else:
                resp.failure(f"Register product failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _fill_cart(self, quantity=2):
        with self.client.post(
            "/cart/lines",
            json={"product_id": self.state.product_id, "quantity": quantity},
            headers=self.state.headers,
            catch_response=True,
            name="POST /cart/lines",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Add cart line failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _checkout(self):
        with self.client.post(
            "/cart/checkout",
            json=checkout_data(),
            headers=self.state.headers,
            catch_response=True,
            name="POST /cart/checkout",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.current_status = body["status"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _post_order(self, action, headers, json=None):
        with self.client.post(
            f"/orders/{self.state.order_id}/{action}",
            json=json or {},
            headers=headers,
            catch_response=True,
            name=f"POST /orders/{{id}}/{action}",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = resp.json()["status"]
            else:
                resp.failure(f"Order {action} failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()


class CheckoutJourney(_ShopperJourney):
    """Stock Shelf -> Add to Cart -> View Cart -> Checkout -> Read Order."""

    @task
    def stock_shelf(self):
        self._stock_shelf()

    @task
    def fill_cart(self):
        self._fill_cart()

    @task
    def view_cart(self):
        self.client.get("/cart", headers=self.state.headers, name="GET /cart")

    @task
    def checkout(self):
        self._checkout()

    @task
    def read_order(self):
        self.client.get(f"/orders/{self.state.order_id}", headers=self.state.headers, name="GET /orders/{id}")
        self.client.get("/orders", headers=self.state.headers, name="GET /orders")
        self.interrupt()


class CancellationJourney(_ShopperJourney):
    """Stock Shelf -> Add to Cart -> Checkout -> Cancel (refund + restock)."""

    @task
    def stock_shelf(self):
        self._stock_shelf()

    @task
    def fill_cart(self):
        self._fill_cart(quantity=1)

    @task
    def checkout(self):
        self._checkout()

    @task
    def cancel(self):
        self._post_order("cancel", self.state.headers, json={"reason": "Ordered by mistake"})
        self.interrupt()


class ReturnJourney(_ShopperJourney):
    """Checkout -> Ship -> Deliver -> Request Return -> Admin Approves."""

    @task
    def stock_shelf(self):
        self._stock_shelf()

    @task
    def fill_cart(self):
        self._fill_cart(quantity=1)

    @task
    def checkout(self):
        self._checkout()

    @task
    def ship(self):
        self._post_order("ship", self.state.vendor_headers, json={"tracking_number": tracking_number()})

    @task
    def deliver(self):
        self._post_order("deliver", self.state.vendor_headers)

    @task
    def request_return(self):
        self._post_order("return", self.state.headers, json={"reason": return_reason()})

    @task
    def approve(self):
        self._post_order("refund", admin_headers(), json={"action": "approve"})
        self.interrupt()


class ShopperUser(HttpUser):
    wait_time = between(1, 3)
    tasks = {CheckoutJourney: 6, CancellationJourney: 2, ReturnJourney: 2}
