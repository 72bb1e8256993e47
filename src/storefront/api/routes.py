"""FastAPI routes for the Storefront: products, cart, checkout and orders."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.dependencies import current_principal
from storefront.api.schemas import (
    AddCartLineRequest,
    CancelOrderRequest,
    CartResponse,
    ChangePriceRequest,
    ChargeRequest,
    CheckoutRequest,
    CheckoutResponse,
    OrderPageResponse,
    OrderResponse,
    ProcessRefundRequest,
    ProductIdResponse,
    ProductPageResponse,
    ProductResponse,
    ReceiveStockRequest,
    RegisterProductRequest,
    RequestReturnRequest,
    SettlementResponse,
    ShipOrderRequest,
    StatusResponse,
    UpdateCartLineRequest,
)
from storefront.cart.lines import AddCartLine, ClearCart, RemoveCartLine, UpdateCartLineQuantity
from storefront.cart.pricing import view_cart
from storefront.checkout.service import CheckoutService
from storefront.inventory.catalogue import (
    ActivateProduct,
    ChangeProductPrice,
    DeactivateProduct,
    RegisterProduct,
)
from storefront.inventory.ledger import InventoryLedger
from storefront.inventory.product import Product
from storefront.inventory.queries import list_products
from storefront.order.service import OrderService
from storefront.payment.coordinator import PaymentCoordinator
from storefront.returns.workflow import ReturnWorkflow
from storefront.shared.principal import Principal

# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def register_product(
    body: RegisterProductRequest, principal: Principal = Depends(current_principal)
) -> ProductIdResponse:
    command = RegisterProduct(
        actor_id=principal.id,
        actor_role=principal.role.value,
        name=body.name,
        price=body.price,
        stock=body.stock,
        currency=body.currency,
        vendor_id=body.vendor_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("", response_model=ProductPageResponse)
async def list_catalogue(
    status: str | None = None,
    vendor_id: str | None = None,
    page: int = 1,
    limit: int = 10,
    principal: Principal = Depends(current_principal),
) -> ProductPageResponse:
    result = list_products(principal, status=status, vendor_id=vendor_id, page=page, limit=limit)
    return ProductPageResponse.from_page(result)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    product = current_domain.repository_for(Product).get(product_id)
    return ProductResponse.from_product(product)


@product_router.put("/{product_id}/price", response_model=StatusResponse)
async def change_price(
    product_id: str, body: ChangePriceRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    command = ChangeProductPrice(
        actor_id=principal.id,
        actor_role=principal.role.value,
        product_id=product_id,
        price=body.price,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.post("/{product_id}/stock", response_model=StatusResponse)
async def receive_stock(
    product_id: str, body: ReceiveStockRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    InventoryLedger().receive_stock(product_id, body.quantity, principal)
    return StatusResponse()


@product_router.post("/{product_id}/deactivate", response_model=StatusResponse)
async def deactivate_product(product_id: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    command = DeactivateProduct(actor_id=principal.id, actor_role=principal.role.value, product_id=product_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@product_router.post("/{product_id}/activate", response_model=StatusResponse)
async def activate_product(product_id: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    command = ActivateProduct(actor_id=principal.id, actor_role=principal.role.value, product_id=product_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    return CartResponse.from_view(view_cart(principal.id))


@cart_router.post("/lines", response_model=StatusResponse)
async def add_cart_line(body: AddCartLineRequest, principal: Principal = Depends(current_principal)) -> StatusResponse:
    command = AddCartLine(owner_id=principal.id, product_id=body.product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.put("/lines/{product_id}", response_model=StatusResponse)
async def update_cart_line(
    product_id: str, body: UpdateCartLineRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    command = UpdateCartLineQuantity(owner_id=principal.id, product_id=product_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/lines/{product_id}", response_model=StatusResponse)
async def remove_cart_line(product_id: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    current_domain.process(RemoveCartLine(owner_id=principal.id, product_id=product_id), asynchronous=False)
    return StatusResponse()


@cart_router.post("/clear", response_model=StatusResponse)
async def clear_cart(principal: Principal = Depends(current_principal)) -> StatusResponse:
    current_domain.process(ClearCart(owner_id=principal.id), asynchronous=False)
    return StatusResponse()


@cart_router.post("/checkout", status_code=201, response_model=CheckoutResponse)
async def checkout(body: CheckoutRequest, principal: Principal = Depends(current_principal)) -> CheckoutResponse:
    result = CheckoutService().checkout(
        principal,
        payment_method=body.payment_method,
        shipping_address=body.shipping_address,
    )
    return CheckoutResponse(
        order_id=result.order_id,
        status=result.status,
        total=result.total,
        settlement=SettlementResponse.from_settlement(result.settlement),
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=OrderPageResponse)
async def list_orders(
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
    principal: Principal = Depends(current_principal),
) -> OrderPageResponse:
    result = OrderService().list_orders(principal, status=status, page=page, limit=limit)
    return OrderPageResponse.from_page(result)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    return OrderResponse.from_order(OrderService().get_order(order_id, principal))


@order_router.post("/{order_id}/payment", response_model=SettlementResponse)
async def charge_order(
    order_id: str, body: ChargeRequest, principal: Principal = Depends(current_principal)
) -> SettlementResponse:
    settlement = PaymentCoordinator().charge(order_id, body.payment_method, principal)
    return SettlementResponse.from_settlement(settlement)


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str, body: CancelOrderRequest, principal: Principal = Depends(current_principal)
) -> OrderResponse:
    order = OrderService().cancel_order(order_id, principal, reason=body.reason)
    return OrderResponse.from_order(order)


@order_router.post("/{order_id}/ship", response_model=OrderResponse)
async def ship_order(
    order_id: str, body: ShipOrderRequest, principal: Principal = Depends(current_principal)
) -> OrderResponse:
    order = OrderService().ship_order(order_id, principal, tracking_number=body.tracking_number)
    return OrderResponse.from_order(order)


@order_router.post("/{order_id}/deliver", response_model=OrderResponse)
async def deliver_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    return OrderResponse.from_order(OrderService().deliver_order(order_id, principal))


@order_router.post("/{order_id}/return", response_model=OrderResponse)
async def request_return(
    order_id: str, body: RequestReturnRequest, principal: Principal = Depends(current_principal)
) -> OrderResponse:
    order = ReturnWorkflow().request_return(order_id, body.reason, principal)
    return OrderResponse.from_order(order)


@order_router.post("/{order_id}/refund", response_model=OrderResponse)
async def process_refund(
    order_id: str, body: ProcessRefundRequest, principal: Principal = Depends(current_principal)
) -> OrderResponse:
    order = ReturnWorkflow().process_refund(order_id, body.action, principal)
    return OrderResponse.from_order(order)
