# Role: Conversation dispatcher. Maps one TurnRequest to exactly one registered handler, runs it,
# applies its state/context deltas to copies, and tracks the explicit conversation state.
# Holds no per-session state between calls; everything a turn needs arrives in the request.

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from fulfillment.config import FulfillmentConfig
from fulfillment.core.errors import (
    DuplicateIntentError,
    HandlerContractError,
    InvalidTransitionError,
    UnknownIntentError,
)
from fulfillment.models.conversation import (
    STATE_KEY,
    ConversationState,
    default_target,
    next_state,
    parse_state,
)
from fulfillment.models.directive import SessionClose
from fulfillment.models.intent import Intent
from fulfillment.models.turn import HandlerResult, TurnContext, TurnRequest, TurnResponse

logger = logging.getLogger(__name__)

Handler = Callable[[TurnContext], HandlerResult]


class Dispatcher:
    def __init__(self, config: Optional[FulfillmentConfig] = None) -> None:
        self.config = config or FulfillmentConfig()
        self._handlers: Dict[str, Handler] = {}

    def register(self, intent: str, handler: Handler) -> None:
        name = _intent_name(intent)
        if name in self._handlers:
            raise DuplicateIntentError(name)
        self._handlers[name] = handler

    def intent(self, intent: str) -> Callable[[Handler], Handler]:
        """Decorator form of register()."""

        def decorator(handler: Handler) -> Handler:
            self.register(intent, handler)
            return handler

        return decorator

    def registered_intents(self) -> List[str]:
        return sorted(self._handlers)

    def dispatch(self, request: TurnRequest) -> TurnResponse:
        # 1) Resolve handler (unknown -> UnknownIntentError, nothing emitted)
        # 2) Resolve current conversation state and check the transition
        # 3) Run the handler against a read-only TurnContext
        # 4) Enforce the one-turn contract on the result
        # 5) Apply deltas to copies and record the next state
        name = _intent_name(request.intent)
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning("Unknown intent %r (session=%s)", name, request.session_id)
            raise UnknownIntentError(name)

        current = parse_state(request.session_state.get(STATE_KEY))
        planned = self._plan_transition(name, current)

        turn = TurnContext.from_request(request, current)
        result = handler(turn)
        self._check_result(name, result)

        session_state = dict(request.session_state)
        for key, value in result.state_delta.items():
            if value is None:
                session_state.pop(key, None)
            else:
                session_state[key] = value

        contexts = request.contexts.with_updates(result.context_delta)

        if result.closes_session:
            after = ConversationState.CLOSED
        elif result.next_state is not None:
            after = result.next_state
        else:
            after = planned
        session_state[STATE_KEY] = after.value

        if self.config.debug:
            logger.debug(
                "TURN session=%s intent=%r state=%s->%s directives=%s contexts=%s state_keys=%s",
                request.session_id,
                name,
                current.value,
                after.value,
                [d.type for d in result.directives],
                contexts.to_dict(),
                sorted(session_state),
            )

        return TurnResponse(
            session_id=request.session_id,
            intent=name,
            directives=list(result.directives),
            session_state=session_state,
            contexts=contexts,
            conversation_state=after,
        )

    def _plan_transition(self, name: str, current: ConversationState) -> ConversationState:
        try:
            intent = Intent(name)
        except ValueError:
            # Custom intents outside the transaction flow keep the current state.
            return current

        planned = next_state(intent, current)
        if planned is not None:
            return planned

        if self.config.enforce_transitions:
            raise InvalidTransitionError(name, current.value)

        # Key line: lenient mode follows the user; the platform already matched this intent.
        target = default_target(intent)
        logger.warning("Out-of-order intent %r in state %s; moving to %s", name, current.value, target.value)
        return target

    @staticmethod
    def _check_result(name: str, result: HandlerResult) -> None:
        if not isinstance(result, HandlerResult):
            raise HandlerContractError(f"Handler for {name!r} returned {type(result).__name__}, not HandlerResult")
        if not result.directives:
            raise HandlerContractError(f"Handler for {name!r} emitted no directives and did not close the session")
        for i, directive in enumerate(result.directives):
            if isinstance(directive, SessionClose) and i != len(result.directives) - 1:
                raise HandlerContractError(f"Handler for {name!r} emitted directives after closing the session")
        if any(lifespan < 0 for lifespan in result.context_delta.values()):
            raise HandlerContractError(f"Handler for {name!r} set a negative context lifespan")


def _intent_name(intent: str) -> str:
    # Intent enum members are str subclasses; normalize to the plain display name.
    return intent.value if isinstance(intent, Intent) else str(intent)
