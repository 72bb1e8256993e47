"""Live cart pricing.

Cart lines carry no price. Every read recomputes the total from the
products' current prices.
"""

from dataclasses import dataclass
from decimal import Decimal

from protean.utils.globals import current_domain

from storefront.cart.lines import load_cart
from storefront.domain import custom_setting
from storefront.inventory.product import Product
from storefront.shared.money import ZERO, line_total


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    available: bool


@dataclass(frozen=True)
class CartView:
    owner_id: str
    lines: list[PricedLine]
    total: Decimal
    currency: str


def price_lines(cart) -> list[PricedLine]:
    repo = current_domain.repository_for(Product)
    priced = []
    for line in cart.lines or []:
        product = repo.get(line.product_id)
        unit_price = product.price.value
        priced.append(
            PricedLine(
                product_id=str(line.product_id),
                name=product.name,
                quantity=line.quantity,
                unit_price=unit_price,
                subtotal=line_total(unit_price, line.quantity),
                available=product.is_available and product.stock >= line.quantity,
            )
        )
    return priced


def snapshot_total(cart) -> Decimal:
    """Sum of current price times quantity over the cart's lines."""
    return sum((line.subtotal for line in price_lines(cart)), ZERO)


def view_cart(owner_id) -> CartView:
    currency = custom_setting("currency", "USD")
    cart = load_cart(owner_id)
    if cart is None:
        return CartView(owner_id=str(owner_id), lines=[], total=ZERO, currency=currency)

    lines = price_lines(cart)
    return CartView(
        owner_id=str(owner_id),
        lines=lines,
        total=sum((line.subtotal for line in lines), ZERO),
        currency=currency,
    )
