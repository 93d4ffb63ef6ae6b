"""
Tests for the conversation dispatcher

Tests cover:
- Intent registration (duplicates, decorator form)
- Unknown intents
- Exactly-one-handler dispatch
- Handler result contract
- State/context delta application
- Conversation state transitions (lenient and strict)
"""

import pytest

from fulfillment.config import FulfillmentConfig
from fulfillment.core.dispatcher import Dispatcher
from fulfillment.core.errors import (
    DuplicateIntentError,
    HandlerContractError,
    InvalidTransitionError,
    UnknownIntentError,
)
from fulfillment.models.context import Context, ContextSet
from fulfillment.models.conversation import STATE_KEY, ConversationState
from fulfillment.models.directive import close, say
from fulfillment.models.intent import Intent
from fulfillment.models.turn import HandlerResult, TurnRequest


def _counting_handler(calls, name, result=None):
    def handler(turn):
        calls.append(name)
        return result or HandlerResult(directives=[say(f"hello from {name}")])

    return handler


class TestRegistration:
    """Test intent registration"""

    def test_duplicate_registration_fails(self):
        dispatcher = Dispatcher()
        dispatcher.register("Greet", lambda turn: HandlerResult(directives=[say("hi")]))

        with pytest.raises(DuplicateIntentError) as exc:
            dispatcher.register("Greet", lambda turn: HandlerResult(directives=[say("again")]))
        assert exc.value.intent == "Greet"

    def test_enum_and_display_name_collide(self):
        dispatcher = Dispatcher()
        dispatcher.register(Intent.WELCOME, lambda turn: HandlerResult(directives=[say("hi")]))

        with pytest.raises(DuplicateIntentError):
            dispatcher.register("Default Welcome Intent", lambda turn: HandlerResult(directives=[say("hi")]))

    def test_decorator_registers_handler(self):
        dispatcher = Dispatcher()

        @dispatcher.intent("Greet")
        def greet(turn):
            return HandlerResult(directives=[say("hi")])

        assert dispatcher.registered_intents() == ["Greet"]
        assert dispatcher.dispatch(TurnRequest(intent="Greet")).directives == [say("hi")]


class TestDispatch:
    """Test handler resolution and invocation"""

    def test_unknown_intent_raises_without_calling_handlers(self):
        calls = []
        dispatcher = Dispatcher()
        dispatcher.register("A", _counting_handler(calls, "A"))

        with pytest.raises(UnknownIntentError) as exc:
            dispatcher.dispatch(TurnRequest(intent="Nope"))

        assert exc.value.intent == "Nope"
        assert calls == []

    def test_exactly_one_handler_runs(self):
        calls = []
        dispatcher = Dispatcher()
        for name in ("A", "B", "C"):
            dispatcher.register(name, _counting_handler(calls, name))

        for name in ("A", "B", "C"):
            calls.clear()
            response = dispatcher.dispatch(TurnRequest(intent=name))
            assert calls == [name]
            assert response.directives == [say(f"hello from {name}")]

    def test_all_transaction_intents_registered(self, dispatcher):
        assert sorted(i.value for i in Intent) == dispatcher.registered_intents()


class TestHandlerContract:
    """Test enforcement of the one-turn contract"""

    def test_no_directives_is_rejected(self):
        dispatcher = Dispatcher()
        dispatcher.register("Empty", lambda turn: HandlerResult())

        with pytest.raises(HandlerContractError):
            dispatcher.dispatch(TurnRequest(intent="Empty"))

    def test_directive_after_close_is_rejected(self):
        dispatcher = Dispatcher()
        dispatcher.register("Bad", lambda turn: HandlerResult(directives=[close("bye"), say("still here")]))

        with pytest.raises(HandlerContractError):
            dispatcher.dispatch(TurnRequest(intent="Bad"))

    def test_non_result_is_rejected(self):
        dispatcher = Dispatcher()
        dispatcher.register("Bad", lambda turn: [say("hi")])

        with pytest.raises(HandlerContractError):
            dispatcher.dispatch(TurnRequest(intent="Bad"))

    def test_close_only_is_accepted(self):
        dispatcher = Dispatcher()
        dispatcher.register("Bye", lambda turn: HandlerResult(directives=[close("bye")]))

        response = dispatcher.dispatch(TurnRequest(intent="Bye"))

        assert response.closed
        assert response.conversation_state == ConversationState.CLOSED


class TestDeltas:
    """Test that handler deltas are applied to copies"""

    def test_state_delta_applied_and_request_untouched(self):
        dispatcher = Dispatcher()
        dispatcher.register(
            "Store",
            lambda turn: HandlerResult(directives=[say("ok")], state_delta={"new": 1, "old": None}),
        )
        original = {"old": "x", "kept": True}
        request = TurnRequest(intent="Store", session_state=original)

        response = dispatcher.dispatch(request)

        assert response.session_state["new"] == 1
        assert response.session_state["kept"] is True
        assert "old" not in response.session_state
        assert original == {"old": "x", "kept": True}

    def test_handler_sees_read_only_state(self):
        dispatcher = Dispatcher()

        def mutate(turn):
            turn.session_state["x"] = 1
            return HandlerResult(directives=[say("unreachable")])

        dispatcher.register("Mutate", mutate)

        with pytest.raises(TypeError):
            dispatcher.dispatch(TurnRequest(intent="Mutate"))

    def test_context_delta_sets_and_clears(self):
        dispatcher = Dispatcher()
        dispatcher.register(
            "Flags",
            lambda turn: HandlerResult(directives=[say("ok")], context_delta={"a": 3, "b": 0}),
        )
        request = TurnRequest(intent="Flags", contexts=ContextSet([Context(name="b", lifespan=2)]))

        response = dispatcher.dispatch(request)

        assert response.contexts.to_dict() == {"a": 3}
        assert request.contexts.to_dict() == {"b": 2}

    def test_negative_lifespan_is_rejected(self):
        dispatcher = Dispatcher()
        dispatcher.register("Flags", lambda turn: HandlerResult(directives=[say("ok")], context_delta={"a": -1}))

        with pytest.raises(HandlerContractError):
            dispatcher.dispatch(TurnRequest(intent="Flags"))


class TestTransitions:
    """Test explicit conversation state tracking"""

    def test_welcome_starts_flow(self, dispatcher):
        response = dispatcher.dispatch(TurnRequest(intent=Intent.WELCOME.value))

        assert response.conversation_state == ConversationState.START
        assert response.session_state[STATE_KEY] == "START"

    def test_payment_selection_moves_state(self, dispatcher):
        response = dispatcher.dispatch(
            TurnRequest(intent=Intent.TRANSACTION_GOOGLE.value, session_state={STATE_KEY: "START"})
        )
        assert response.conversation_state == ConversationState.GOOGLE_PAY_SELECTED

    def test_out_of_order_intent_is_lenient_by_default(self, dispatcher):
        response = dispatcher.dispatch(
            TurnRequest(
                intent=Intent.TRANSACTION_CHECK_COMPLETE.value,
                arguments={"TRANSACTION_REQUIREMENTS_CHECK_RESULT": {"resultType": "OK"}},
            )
        )
        assert response.conversation_state == ConversationState.REQUIREMENTS_CHECKED

    def test_strict_mode_rejects_before_handler_runs(self):
        calls = []
        dispatcher = Dispatcher(FulfillmentConfig(enforce_transitions=True))
        dispatcher.register(Intent.TRANSACTION_CHECK_COMPLETE, _counting_handler(calls, "check"))

        with pytest.raises(InvalidTransitionError) as exc:
            dispatcher.dispatch(TurnRequest(intent=Intent.TRANSACTION_CHECK_COMPLETE.value))

        assert exc.value.state == "START"
        assert calls == []

    def test_failed_branch_closes(self, dispatcher):
        response = dispatcher.dispatch(
            TurnRequest(
                intent=Intent.TRANSACTION_CHECK_COMPLETE.value,
                arguments={"TRANSACTION_REQUIREMENTS_CHECK_RESULT": {"resultType": "CANNOT_TRANSACT"}},
                session_state={STATE_KEY: "MERCHANT_PAY_SELECTED"},
            )
        )
        assert response.conversation_state == ConversationState.CLOSED

    def test_address_update_loops_back(self, dispatcher):
        response = dispatcher.dispatch(
            TurnRequest(
                intent=Intent.TRANSACTION_DECISION_COMPLETE.value,
                arguments={"TRANSACTION_DECISION_VALUE": {"userDecision": "DELIVERY_ADDRESS_UPDATED"}},
                session_state={STATE_KEY: "DECISION_REQUESTED"},
            )
        )
        assert response.conversation_state == ConversationState.ADDRESS_REQUESTED

    def test_custom_intent_keeps_state(self):
        dispatcher = Dispatcher()
        dispatcher.register("Small Talk", lambda turn: HandlerResult(directives=[say("hi")]))

        response = dispatcher.dispatch(
            TurnRequest(intent="Small Talk", session_state={STATE_KEY: "ADDRESS_COLLECTED"})
        )
        assert response.conversation_state == ConversationState.ADDRESS_COLLECTED
