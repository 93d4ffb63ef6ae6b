# Role: In-memory session store for local simulation (CLI, /simulate, Streamlit UI).
# Plays the platform's part: keeps session state + contexts between committed turns, decrements
# context lifespans once per committed turn, drops closed sessions, and cleans up expired ones.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from fulfillment.models.context import ContextSet
from fulfillment.models.turn import TurnRequest, TurnResponse


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SimulatedSession:
    session_id: str
    session_state: Dict[str, Any] = field(default_factory=dict)
    contexts: ContextSet = field(default_factory=ContextSet)
    turn_count: int = 0
    last_intent: Optional[str] = None
    closed: bool = False
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


class SessionStore:
    def __init__(self, session_ttl_minutes: int = 60) -> None:
        self._sessions: Dict[str, SimulatedSession] = {}
        self._ttl = timedelta(minutes=session_ttl_minutes)

    def get(self, session_id: str) -> Optional[SimulatedSession]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> SimulatedSession:
        # Reuse existing session or initialize a fresh one.
        session = self._sessions.get(session_id)
        if session is None:
            session = SimulatedSession(session_id=session_id)
            self._sessions[session_id] = session
        return session

    def begin_turn(self, session_id: str, intent: str, arguments: Optional[Mapping[str, Any]] = None) -> TurnRequest:
        # 1) Look the session up without creating it
        # 2) One turn passes: the request sees every context lifespan decremented by exactly one
        # 3) Nothing is written here; a rejected turn leaves the session as it was
        session = self._sessions.get(session_id)
        if session is None:
            return TurnRequest(intent=intent, session_id=session_id, arguments=dict(arguments or {}))

        contexts = session.contexts.decremented() if session.turn_count > 0 else session.contexts
        return TurnRequest(
            intent=intent,
            session_id=session_id,
            arguments=dict(arguments or {}),
            session_state=dict(session.session_state),
            contexts=contexts,
        )

    def commit(self, response: TurnResponse) -> SimulatedSession:
        # Key line: a closed session is over; the next turn for this id starts fresh.
        if response.closed:
            session = self._sessions.pop(response.session_id, None) or SimulatedSession(session_id=response.session_id)
            session.closed = True
            session.turn_count += 1
            session.last_intent = response.intent
            return session

        # The response already carries the aged contexts of its request.
        session = self.get_or_create(response.session_id)
        session.session_state = dict(response.session_state)
        session.contexts = response.contexts
        session.turn_count += 1
        session.last_intent = response.intent
        session.updated_at = _now()
        return session

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def session_ids(self) -> List[str]:
        return list(self._sessions)

    def cleanup_expired(self) -> int:
        # Role: drop inactive sessions to avoid unbounded growth (best for long-running servers).
        now = _now()
        to_delete = [sid for sid, s in self._sessions.items() if (now - s.updated_at) > self._ttl]
        for sid in to_delete:
            del self._sessions[sid]
        return len(to_delete)
