"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names of the API's Pydantic request schemas.
Principals travel in the X-User-* headers the identity collaborator
forwards upstream.
"""

import random
import uuid

from faker import Faker

fake = Faker()

# ---------- Principals ----------


def _principal(role: str, prefix: str) -> dict:
    user_id = f"{prefix}-lt-{uuid.uuid4().hex[:8]}"
    return {
        "X-User-Id": user_id,
        "X-User-Role": role,
        "X-User-Email": f"{user_id}@{fake.free_email_domain()}",
    }


def customer_headers() -> dict:
    return _principal("customer", "cust")


def vendor_headers() -> dict:
    return _principal("vendor", "vendor")


def admin_headers() -> dict:
    return _principal("admin", "admin")


# ---------- Products ----------


def price() -> str:
    """Generate a price with exactly two decimal places."""
    return f"{random.randint(1, 200)}.{random.randint(0, 99):02d}"


def product_data(stock: int | None = None) -> dict:
    """Generate a RegisterProductRequest payload."""
    return {
        "name": fake.catch_phrase()[:100],
        "price": price(),
        "stock": random.randint(20, 200) if stock is None else stock,
    }


# ---------- Orders ----------


def shipping_address() -> str:
    return fake.address().replace("\n", ", ")[:500]


def checkout_data() -> dict:
    return {
        "payment_method": random.choice(["credit_card", "debit_card", "wallet"]),
        "shipping_address": shipping_address(),
    }


def tracking_number() -> str:
    return f"TRK-{uuid.uuid4().hex[:10].upper()}"


def return_reason() -> str:
    return random.choice(["Damaged in transit", "Wrong size", "Not as described", "Changed my mind"])
