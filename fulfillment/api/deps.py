# Role: Wiring for the API layer. One Services bundle per app (config, dispatcher, fallback policy,
# simulator store), stored on app.state and handed to routes through FastAPI dependencies.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from fulfillment.config import FulfillmentConfig
from fulfillment.core.dispatcher import Dispatcher
from fulfillment.core.fallback_handler import FallbackHandler
from fulfillment.core.handlers import build_dispatcher
from fulfillment.core.session_store import SessionStore


@dataclass
class Services:
    config: FulfillmentConfig
    dispatcher: Dispatcher
    fallback: FallbackHandler
    store: SessionStore


def build_services(config: FulfillmentConfig, dispatcher: Optional[Dispatcher] = None) -> Services:
    return Services(
        config=config,
        dispatcher=dispatcher or build_dispatcher(config),
        fallback=FallbackHandler(config),
        store=SessionStore(session_ttl_minutes=config.session_ttl_minutes),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
