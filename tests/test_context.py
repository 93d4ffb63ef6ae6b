"""
Tests for turn-scoped contexts and the simulator session store

Tests cover:
- Lifespan semantics (0 is absent, decrement by exactly one)
- Context updates
- Session store turn lifecycle, closing and expiry
"""

from datetime import datetime, timedelta, timezone

from fulfillment.models.context import GOOGLE_PAY, Context, ContextSet
from fulfillment.models.directive import close, say
from fulfillment.models.turn import TurnResponse
from fulfillment.models.conversation import ConversationState


class TestContextSet:
    def test_zero_lifespan_is_absent(self):
        contexts = ContextSet([Context(name="a", lifespan=0), Context(name="b", lifespan=2)])

        assert not contexts.is_active("a")
        assert contexts.get("a") is None
        assert contexts.names() == ["b"]

    def test_decrement_by_exactly_one(self):
        contexts = ContextSet([Context(name="a", lifespan=3), Context(name="b", lifespan=1)])

        after = contexts.decremented()

        assert after.to_dict() == {"a": 2}
        assert contexts.to_dict() == {"a": 3, "b": 1}

    def test_updates_set_and_clear(self):
        contexts = ContextSet([Context(name="a", lifespan=3, parameters={"k": "v"})])

        updated = contexts.with_updates({"a": 5, "b": 2, "missing": 0})

        assert updated.to_dict() == {"a": 5, "b": 2}
        assert updated.get("a").parameters == {"k": "v"}
        assert updated.with_updates({"a": 0}).to_dict() == {"b": 2}

    def test_equality(self):
        assert ContextSet([Context(name="a", lifespan=1)]) == ContextSet([Context(name="a", lifespan=1)])
        assert ContextSet([Context(name="a", lifespan=1)]) != ContextSet([Context(name="a", lifespan=2)])


def _response(session_id, contexts=None, session_state=None, directives=None):
    return TurnResponse(
        session_id=session_id,
        intent="Test",
        directives=directives or [say("ok")],
        session_state=session_state or {},
        contexts=contexts or ContextSet(),
        conversation_state=ConversationState.START,
    )


class TestSessionStore:
    def test_context_ages_one_turn_at_a_time(self, store):
        store.begin_turn("s", "Transaction Google")
        store.commit(_response("s", contexts=ContextSet([Context(name=GOOGLE_PAY, lifespan=5)])))

        seen = []
        for _ in range(5):
            turn = store.begin_turn("s", "Anything")
            seen.append(turn.contexts.get(GOOGLE_PAY).lifespan if turn.contexts.is_active(GOOGLE_PAY) else 0)
            store.commit(_response("s", contexts=turn.contexts))

        assert seen == [4, 3, 2, 1, 0]

    def test_first_turn_does_not_decrement(self, store):
        session = store.get_or_create("s")
        session.contexts = ContextSet([Context(name="a", lifespan=1)])

        turn = store.begin_turn("s", "Anything")

        assert turn.contexts.is_active("a")
        assert store.commit(_response("s", contexts=turn.contexts)).turn_count == 1

    def test_begin_turn_does_not_create_session(self, store):
        turn = store.begin_turn("new", "Anything", {"x": 1})

        assert turn.session_id == "new"
        assert dict(turn.arguments) == {"x": 1}
        assert store.get("new") is None

    def test_uncommitted_turns_leave_session_untouched(self, store):
        store.commit(_response("s", contexts=ContextSet([Context(name=GOOGLE_PAY, lifespan=5)])))

        for _ in range(4):
            turn = store.begin_turn("s", "Rejected")
            assert turn.contexts.get(GOOGLE_PAY).lifespan == 4

        session = store.get("s")
        assert session.contexts.to_dict() == {GOOGLE_PAY: 5}
        assert session.turn_count == 1

    def test_turn_request_is_a_snapshot(self, store):
        turn = store.begin_turn("s", "Anything", {"x": 1})
        store.commit(_response("s", session_state={"k": "v"}))

        assert dict(turn.session_state) == {}
        assert store.get("s").session_state == {"k": "v"}
        assert store.get("s").last_intent == "Test"

    def test_closed_session_is_dropped(self, store):
        store.begin_turn("s", "Anything")

        session = store.commit(_response("s", directives=[close("bye")]))

        assert session.closed
        assert store.get("s") is None
        assert store.begin_turn("s", "Anything").session_state == {}

    def test_cleanup_expired(self, store):
        store.get_or_create("old").updated_at = datetime.now(timezone.utc) - timedelta(hours=2)
        store.get_or_create("fresh")

        assert store.cleanup_expired() == 1
        assert store.session_ids() == ["fresh"]

    def test_discard(self, store):
        store.get_or_create("s")

        assert store.discard("s")
        assert not store.discard("s")
