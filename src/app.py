"""Marketplace FastAPI application.

Web server for order composition and commission settlement. Commands are
processed synchronously; every marketplace request runs inside the domain
context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → testing flags on
#   - "production" → event_processing = "async"
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.api.errors import register_marketplace_exception_handlers
from marketplace.domain import marketplace
from marketplace.utils.logging import add_context, clear_context, configure_logging
from marketplace.vendors import get_vendor_directory

configure_logging()
marketplace.init()
get_vendor_directory()

_DOMAIN_PREFIXES = ("/orders", "/commissions", "/variants")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketplace API",
    description="Multi-vendor order composition & commission settlement",
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
    """Push the marketplace domain context for domain routes."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        add_context(method=request.method, path=request.url.path)
        try:
            with marketplace.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response
    # No domain match — pass through (health check, docs, etc.)
    return await call_next(request)


register_marketplace_exception_handlers(app)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from marketplace.api import commission_router, order_router, variant_router  # noqa: E402

app.include_router(order_router)
app.include_router(commission_router)
app.include_router(variant_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": marketplace.name}})
