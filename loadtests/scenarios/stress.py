"""Stock contention stress scenario.

Every LastUnitRaceUser shares one scarce product and checks out a single
unit as fast as it can. Losing the race is an expected 409; anything else
is a failure. After the run, units sold plus stock left must equal units
received.
"""

import threading

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import checkout_data, customer_headers, product_data, vendor_headers
from loadtests.helpers.response import extract_error_detail

_SHELF_LOCK = threading.Lock()


class LastUnitRaceUser(HttpUser):
    wait_time = constant_pacing(0.2)

    shelf_vendor: dict | None = None
    shelf_product_id: str | None = None

    def on_start(self):
        self.headers = customer_headers()
        with _SHELF_LOCK:
            if LastUnitRaceUser.shelf_product_id is None:
                LastUnitRaceUser.shelf_vendor = vendor_headers()
                resp = self.client.post(
                    "/products",
                    json=product_data(stock=5),
                    headers=LastUnitRaceUser.shelf_vendor,
                    name="[RACE] POST /products",
                )
                LastUnitRaceUser.shelf_product_id = resp.json()["product_id"]

    @task(10)
    def race_for_unit(self):
        product_id = LastUnitRaceUser.shelf_product_id
        added = self.client.post(
            "/cart/lines",
            json={"product_id": product_id, "quantity": 1},
            headers=self.headers,
            name="[RACE] POST /cart/lines",
        )
        if added.status_code != 200:
            return

        with self.client.post(
            "/cart/checkout",
            json=checkout_data(),
            headers=self.headers,
            catch_response=True,
            name="[RACE] POST /cart/checkout",
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Checkout failed: {resp.status_code}: {extract_error_detail(resp)}")

        self.client.post("/cart/clear", headers=self.headers, name="[RACE] POST /cart/clear")

    @task(1)
    def restock(self):
        self.client.post(
            f"/products/{LastUnitRaceUser.shelf_product_id}/stock",
            json={"quantity": 3},
            headers=LastUnitRaceUser.shelf_vendor,
            name="[RACE] POST /products/{id}/stock",
        )
