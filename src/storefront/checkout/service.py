"""Checkout: turns the customer's cart into a paid order.

    1. Snapshot every cart line against its product (name, vendor, price)
    2. Reserve stock for every line through the ledger; all or nothing
    3. Persist the pending order with the frozen lines and total
    4. Charge it through the payment coordinator

A failure in steps 2 or 3 releases every reservation already taken, so no
order and no held stock are left behind. A failed charge leaves the cart
intact for another attempt.
"""

import json
from dataclasses import dataclass
from uuid import uuid4

from protean.utils.globals import current_domain

from storefront.cart.lines import load_cart
from storefront.domain import custom_setting, logger
from storefront.inventory.ledger import InventoryLedger
from storefront.inventory.product import Product
from storefront.order.creation import PlaceOrder
from storefront.order.order import Order
from storefront.payment.coordinator import PaymentCoordinator, Settlement
from storefront.shared.errors import ValidationError
from storefront.shared.principal import Principal


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    status: str
    total: str
    settlement: Settlement


class CheckoutService:
    def __init__(self, ledger: InventoryLedger | None = None, coordinator: PaymentCoordinator | None = None):
        self.ledger = ledger or InventoryLedger()
        self.coordinator = coordinator or PaymentCoordinator(self.ledger)

    def place_order(self, principal: Principal, shipping_address=None) -> str:
        """Create the pending order with its stock reserved. Returns the order id."""
        cart = load_cart(principal.id)
        if cart is None or cart.is_empty:
            raise ValidationError({"cart": ["Cannot check out an empty cart"]})

        currency = custom_setting("currency", "USD")
        products = current_domain.repository_for(Product)
        snapshot = []
        for line in cart.lines:
            product = products.get(line.product_id)
            if not product.is_available:
                raise ValidationError({"product_id": [f"Product {product.id} is no longer available"]})
            snapshot.append((line, product))

        order_id = str(uuid4())
        tokens = []
        try:
            lines_data = []
            for line, product in snapshot:
                token = self.ledger.reserve_stock(line.product_id, line.quantity, order_id)
                tokens.append(token)
                lines_data.append(
                    {
                        "product_id": str(product.id),
                        "vendor_id": str(product.vendor_id),
                        "product_name": product.name,
                        "quantity": line.quantity,
                        "unit_price": product.price.amount,
                        "reservation_id": token.reservation_id,
                    }
                )

            current_domain.process(
                PlaceOrder(
                    order_id=order_id,
                    owner_id=principal.id,
                    owner_email=principal.email,
                    lines=json.dumps(lines_data),
                    shipping_address=shipping_address,
                    currency=currency,
                ),
                asynchronous=False,
            )
        except Exception:
            logger.warning("Order creation failed, releasing reservations", order_id=order_id, reserved=len(tokens))
            self.ledger.release_all(tokens, reason="order_creation_failed")
            raise

        logger.info("Order placed", order_id=order_id, owner_id=principal.id, lines=len(tokens))
        return order_id

    def checkout(self, principal: Principal, payment_method: str, shipping_address=None) -> CheckoutResult:
        if not payment_method:
            raise ValidationError({"payment_method": ["A payment method is required"]})

        order_id = self.place_order(principal, shipping_address=shipping_address)
        settlement = self.coordinator.charge(order_id, payment_method, principal)
        order = current_domain.repository_for(Order).get(order_id)
        return CheckoutResult(
            order_id=order_id,
            status=order.status,
            total=order.total.amount,
            settlement=settlement,
        )
