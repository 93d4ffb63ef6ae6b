# Role: FastAPI app bootstrap. Builds the explicit config, wires services, registers routers,
# maps fulfillment errors to HTTP statuses and exposes health/docs endpoints.

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fulfillment.api.deps import build_services
from fulfillment.api.simulate import router as simulate_router
from fulfillment.api.webhook import router as webhook_router
from fulfillment.config import FulfillmentConfig, configure_logging, load_config
from fulfillment.core.dispatcher import Dispatcher
from fulfillment.core.errors import (
    FulfillmentError,
    InvalidTransitionError,
    PlatformPayloadError,
    UnknownIntentError,
)

_STATUS_BY_ERROR = (
    (PlatformPayloadError, 400),
    (UnknownIntentError, 404),
    (InvalidTransitionError, 409),
)


async def _fulfillment_error_handler(request: Request, exc: FulfillmentError) -> JSONResponse:
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    return JSONResponse(status_code=status, content={"error": type(exc).__name__, "detail": str(exc)})


def create_app(config: Optional[FulfillmentConfig] = None, dispatcher: Optional[Dispatcher] = None) -> FastAPI:
    config = config or load_config()
    configure_logging(config)

    app = FastAPI(title="Transaction Fulfillment API", version="0.1.0", debug=config.debug)
    app.state.services = build_services(config, dispatcher)
    app.add_exception_handler(FulfillmentError, _fulfillment_error_handler)
    app.include_router(webhook_router)
    app.include_router(simulate_router)

    @app.get("/")
    def root() -> dict:
        # Role: quick discoverability for clients (where are docs/health).
        return {
            "message": "Transaction Fulfillment API is running",
            "webhook": "/fulfillment",
            "docs": "/docs",
            "health": "/health",
        }

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
