"""
Pytest configuration and fixtures for the transaction fulfillment tests
"""

import itertools
from datetime import datetime, timezone

import pytest

from fulfillment.config import FulfillmentConfig
from fulfillment.core.dispatcher import Dispatcher
from fulfillment.core.handlers import TransactionHandlers
from fulfillment.core.order_ids import OrderIdGenerator
from fulfillment.core.session_store import SessionStore
from fulfillment.models.context import ContextSet
from fulfillment.models.conversation import ConversationState
from fulfillment.models.turn import TurnContext

FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

SAMPLE_LOCATION = {
    "postalAddress": {
        "regionCode": "US",
        "postalCode": "94043",
        "administrativeArea": "CA",
        "locality": "Mountain View",
        "addressLines": ["1600 Amphitheatre Parkway"],
        "recipients": ["Jane Doe"],
    }
}


@pytest.fixture
def config():
    """
    Default configuration (lenient transitions, error policy for unknown intents)
    """
    return FulfillmentConfig()


@pytest.fixture
def handlers(config):
    """
    Handlers with deterministic order ids and a frozen clock
    """
    order_ids = OrderIdGenerator("counter", counter=itertools.count(1))
    return TransactionHandlers(config=config, order_ids=order_ids, clock=lambda: FIXED_NOW)


@pytest.fixture
def dispatcher(config, handlers):
    """
    Dispatcher with every transaction intent registered
    """
    return handlers.register(Dispatcher(config))


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def make_turn():
    """
    Factory for read-only TurnContext objects
    """

    def _make(arguments=None, session_state=None, contexts=None, state=ConversationState.START, session_id="s-1"):
        return TurnContext(
            session_id=session_id,
            arguments=dict(arguments or {}),
            session_state=dict(session_state or {}),
            contexts=contexts or ContextSet(),
            conversation_state=state,
        )

    return _make


@pytest.fixture
def location():
    return {"postalAddress": dict(SAMPLE_LOCATION["postalAddress"])}
