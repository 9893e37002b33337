from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from bundling.api.routes import bin_location_router, bundle_router, picklist_router, webhook_router
from bundling.gateway import GatewayError
from bundling.orders import OrderSourceError

__all__ = [
    "bin_location_router",
    "bundle_router",
    "picklist_router",
    "register_error_handlers",
    "webhook_router",
]


def register_error_handlers(app: FastAPI) -> None:
    """Map domain exceptions to HTTP responses."""

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": exc.messages})

    @app.exception_handler(ObjectNotFoundError)
    async def not_found(request: Request, exc: ObjectNotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError):
        return JSONResponse(status_code=502, content={"error": str(exc)})

    @app.exception_handler(OrderSourceError)
    async def order_source_error(request: Request, exc: OrderSourceError):
        return JSONResponse(status_code=502, content={"error": str(exc)})
