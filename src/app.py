"""Storefront FastAPI application.

Commands are processed synchronously within each request, inside the
storefront domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.domain import storefront
from storefront.utils.logging import configure_logging

# PROTEAN_ENV selects the config overlay ("production" switches to PostgreSQL)
configure_logging()
storefront.init()

app = FastAPI(
    title="Storefront API",
    description="Multi-vendor storefront: catalogue, cart, orders, payments and returns",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context for each request."""
    with storefront.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api import (  # noqa: E402
    cart_router,
    order_router,
    product_router,
    register_exception_handlers,
)

app.include_router(product_router)
app.include_router(cart_router)
app.include_router(order_router)
register_exception_handlers(app)


@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": storefront.name})
