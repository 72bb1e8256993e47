"""Vendor catalogue load test scenarios.

A vendor registers products, reprices them, receives stock and takes
products on and off sale.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import price, product_data, vendor_headers
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import VendorState


class CatalogueJourney(SequentialTaskSet):
    """Register -> Reprice -> Receive Stock -> Deactivate -> Activate -> List."""

    def on_start(self):
        self.state = VendorState(headers=vendor_headers())

    @task
    def register_product(self):
        with self.client.post(
            "/products",
            json=product_data(stock=0),
            headers=self.state.headers,
            catch_response=True,
            name="POST /products",
        ) as resp:
            if resp.status_code == 201:
                self.state.product_ids.append(resp.json()["product_id"])
            else:
                resp.failure(f"Register product failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def change_price(self):
        product_id = self.state.product_ids[-1]
        with self.client.put(
            f"/products/{product_id}/price",
            json={"price": price()},
            headers=self.state.headers,
            catch_response=True,
            name="PUT /products/{id}/price",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Change price failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def receive_stock(self):
        product_id = self.state.product_ids[-1]
        with self.client.post(
            f"/products/{product_id}/stock",
            json={"quantity": random.randint(5, 50)},
            headers=self.state.headers,
            catch_response=True,
            name="POST /products/{id}/stock",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Receive stock failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def deactivate(self):
        product_id = self.state.product_ids[-1]
        with self.client.post(
            f"/products/{product_id}/deactivate",
            headers=self.state.headers,
            catch_response=True,
            name="POST /products/{id}/deactivate",
        ) as resp:
            if resp.status_code == 200:
                self.state.active = False
            else:
                resp.failure(f"Deactivate failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def activate(self):
        product_id = self.state.product_ids[-1]
        with self.client.post(
            f"/products/{product_id}/activate",
            headers=self.state.headers,
            catch_response=True,
            name="POST /products/{id}/activate",
        ) as resp:
            if resp.status_code == 200:
                self.state.active = True
            else:
                resp.failure(f"Activate failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def list_own_products(self):
        with self.client.get(
            "/products",
            params={"limit": 20},
            headers=self.state.headers,
            catch_response=True,
            name="GET /products",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"List products failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def read_product(self):
        self.client.get(f"/products/{self.state.product_ids[-1]}", name="GET /products/{id}")
        self.interrupt()


class CatalogueUser(HttpUser):
    wait_time = between(1, 3)
    tasks = [CatalogueJourney]
