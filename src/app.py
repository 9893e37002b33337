"""Stockpool FastAPI application.

Web server for the bundling domain: inventory webhooks, bundle and bin
management, and pick lists. Commands are processed synchronously and each
request runs inside the bundling domain context.

Usage:
    uvicorn app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from pyproject.toml.
from bundling.domain import bundling  # noqa: E402
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

bundling.init()

_DOMAIN_PREFIXES = ("/webhooks", "/bundles", "/bin-locations", "/picklists")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Stockpool API",
    description="Shared bundle inventory sync and warehouse pick lists",
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the bundling domain context for domain routes."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with bundling.domain_context():
            response = await call_next(request)
        return response
    # /health and /docs run outside any domain context
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from bundling.api import (  # noqa: E402
    bin_location_router,
    bundle_router,
    picklist_router,
    register_error_handlers,
    webhook_router,
)

app.include_router(webhook_router)
app.include_router(bundle_router)
app.include_router(bin_location_router)
app.include_router(picklist_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": bundling.name}})
