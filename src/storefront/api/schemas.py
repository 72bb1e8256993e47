"""Pydantic request/response schemas for the Storefront API.

These are the external contracts, kept separate from the Protean commands.
Amounts are rendered as decimal strings. Quantities are plain integers so
that out-of-range values reach the domain and come back as a 400.
"""

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class RegisterProductRequest(BaseModel):
    name: str
    price: str
    stock: int = 0
    currency: str = "USD"
    vendor_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Espresso Cup",
                    "price": "12.50",
                    "stock": 40,
                }
            ]
        }
    }


class ChangePriceRequest(BaseModel):
    price: str


class ReceiveStockRequest(BaseModel):
    quantity: int


class ProductIdResponse(BaseModel):
    product_id: str


class ProductResponse(BaseModel):
    product_id: str
    vendor_id: str
    name: str
    price: str
    currency: str
    stock: int
    status: str

    @classmethod
    def from_product(cls, product):
        return cls(
            product_id=str(product.id),
            vendor_id=str(product.vendor_id),
            name=product.name,
            price=product.price.amount,
            currency=product.price.currency,
            stock=product.stock,
            status=product.status,
        )


class ProductPageResponse(BaseModel):
    count: int
    pages: int
    current_page: int
    products: list[ProductResponse]

    @classmethod
    def from_page(cls, page):
        return cls(
            count=page.count,
            pages=page.pages,
            current_page=page.current_page,
            products=[ProductResponse.from_product(product) for product in page.items],
        )


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartLineRequest(BaseModel):
    product_id: str
    quantity: int = 1


class UpdateCartLineRequest(BaseModel):
    quantity: int


class CartLineResponse(BaseModel):
    product_id: str
    name: str
    quantity: int
    unit_price: str
    subtotal: str
    available: bool


class CartResponse(BaseModel):
    owner_id: str
    lines: list[CartLineResponse]
    total: str
    currency: str

    @classmethod
    def from_view(cls, view):
        return cls(
            owner_id=view.owner_id,
            lines=[
                CartLineResponse(
                    product_id=line.product_id,
                    name=line.name,
                    quantity=line.quantity,
                    unit_price=str(line.unit_price),
                    subtotal=str(line.subtotal),
                    available=line.available,
                )
                for line in view.lines
            ],
            total=str(view.total),
            currency=view.currency,
        )


class CheckoutRequest(BaseModel):
    payment_method: str
    shipping_address: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "payment_method": "credit_card",
                    "shipping_address": "221B Baker Street, London",
                }
            ]
        }
    }


# ---------------------------------------------------------------------------
# Orders & payments
# ---------------------------------------------------------------------------
class SettlementResponse(BaseModel):
    payment_id: str
    order_id: str
    amount: str
    currency: str
    transaction_id: str | None = None
    status: str

    @classmethod
    def from_settlement(cls, settlement):
        return cls(
            payment_id=settlement.payment_id,
            order_id=settlement.order_id,
            amount=str(settlement.amount),
            currency=settlement.currency,
            transaction_id=settlement.transaction_id,
            status=settlement.status,
        )


class CheckoutResponse(BaseModel):
    order_id: str
    status: str
    total: str
    settlement: SettlementResponse


class ChargeRequest(BaseModel):
    payment_method: str


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class ShipOrderRequest(BaseModel):
    tracking_number: str | None = None


class RequestReturnRequest(BaseModel):
    reason: str


class ProcessRefundRequest(BaseModel):
    action: str


class OrderLineResponse(BaseModel):
    product_id: str
    vendor_id: str
    product_name: str
    quantity: int
    unit_price: str
    subtotal: str


class OrderResponse(BaseModel):
    order_id: str
    owner_id: str
    status: str
    payment_status: str
    total: str
    currency: str
    lines: list[OrderLineResponse]
    payment_id: str | None = None
    payment_method: str | None = None
    shipping_address: str | None = None
    tracking_number: str | None = None
    return_requested: bool = False
    return_status: str
    return_reason: str | None = None
    cancellation_reason: str | None = None
    created_at: str | None = None

    @classmethod
    def from_order(cls, order):
        return cls(
            order_id=str(order.id),
            owner_id=str(order.owner_id),
            status=order.status,
            payment_status=order.payment_status,
            total=order.total.amount,
            currency=order.total.currency,
            lines=[
                OrderLineResponse(
                    product_id=str(line.product_id),
                    vendor_id=str(line.vendor_id),
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price=line.unit_price.amount,
                    subtotal=str(line.subtotal),
                )
                for line in order.lines
            ],
            payment_id=str(order.payment_id) if order.payment_id else None,
            payment_method=order.payment_method,
            shipping_address=order.shipping_address,
            tracking_number=order.tracking_number,
            return_requested=bool(order.return_requested),
            return_status=order.return_status,
            return_reason=order.return_reason,
            cancellation_reason=order.cancellation_reason,
            created_at=order.created_at.isoformat() if order.created_at else None,
        )


class OrderPageResponse(BaseModel):
    count: int
    pages: int
    current_page: int
    orders: list[OrderResponse]

    @classmethod
    def from_page(cls, page):
        return cls(
            count=page.count,
            pages=page.pages,
            current_page=page.current_page,
            orders=[OrderResponse.from_order(order) for order in page.items],
        )
