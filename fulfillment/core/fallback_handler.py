# Role: Hosting-layer recovery for intents nobody registered. The dispatcher always raises
# UnknownIntentError; this handler applies the configured policy (re-raise or generic reply).

from __future__ import annotations

import logging
from typing import Optional

from fulfillment.config import FulfillmentConfig
from fulfillment.core.dispatcher import Dispatcher
from fulfillment.core.errors import UnknownIntentError
from fulfillment.models.conversation import STATE_KEY, parse_state
from fulfillment.models.directive import say, suggest
from fulfillment.models.turn import TurnRequest, TurnResponse
from fulfillment.prompts import responses

logger = logging.getLogger(__name__)


class FallbackHandler:
    def __init__(self, config: Optional[FulfillmentConfig] = None) -> None:
        self.config = config or FulfillmentConfig()

    def recover(self, request: TurnRequest, error: UnknownIntentError) -> TurnResponse:
        # 1) policy=error -> propagate, caller maps it (HTTP 404, CLI message)
        # 2) policy=fallback -> generic reply; session state and contexts pass through untouched
        if self.config.unknown_intent_policy == "error":
            raise error

        logger.info("Fallback reply for unknown intent %r (session=%s)", error.intent, request.session_id)
        session_state = dict(request.session_state)
        return TurnResponse(
            session_id=request.session_id,
            intent=error.intent,
            directives=[
                say(self.config.fallback_message),
                suggest(*responses.SUGGEST_PAYMENT_PATHS),
            ],
            session_state=session_state,
            contexts=request.contexts,
            conversation_state=parse_state(session_state.get(STATE_KEY)),
        )


def dispatch_with_fallback(
    dispatcher: Dispatcher,
    request: TurnRequest,
    fallback: Optional[FallbackHandler] = None,
) -> TurnResponse:
    handler = fallback or FallbackHandler(dispatcher.config)
    try:
        return dispatcher.dispatch(request)
    except UnknownIntentError as e:
        return handler.recover(request, e)

