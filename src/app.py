"""AgroMarket FastAPI application.

Single-domain web server that processes commands synchronously via HTTP.
Every request runs inside the marketplace domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay (e.g. "production" → PostgreSQL).
import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.domain import marketplace
from marketplace.shared import settings
from marketplace.utils.logging import add_context, clear_context, get_environment

marketplace.init()

# Resolve the JWT secret at start-up
settings.jwt_secret()

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="AgroMarket API",
    description="Agricultural marketplace: accounts, catalogue, carts and orders",
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
    """Push the marketplace domain context and bind request details to the log context."""
    clear_context()
    add_context(request_id=request.headers.get("x-request-id", uuid.uuid4().hex), path=request.url.path)
    with marketplace.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from marketplace.api import (  # noqa: E402
    application_router,
    auth_router,
    cart_router,
    order_router,
    product_router,
    region_router,
    register_error_handlers,
)

app.include_router(auth_router)
app.include_router(application_router)
app.include_router(region_router)
app.include_router(product_router)
app.include_router(cart_router)
app.include_router(order_router)

register_error_handlers(app)

logger.info("AgroMarket API ready", environment=get_environment())


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": marketplace.name,
            "environment": get_environment(),
        }
    )
