# Role: Developer simulator endpoints. The in-memory SessionStore stands in for the platform, so a
# client can walk the transaction flow by intent name and inspect the session between turns.

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from fulfillment.api.deps import Services, get_services
from fulfillment.core.fallback_handler import dispatch_with_fallback
from fulfillment.models.directive import Directive

router = APIRouter(tags=["simulator"])


class SimulateRequest(BaseModel):
    session_id: str
    intent: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class SimulateResponse(BaseModel):
    session_id: str
    intent: str
    directives: List[Directive]
    closed: bool
    conversation_state: str
    session_state: Dict[str, Any]
    contexts: Dict[str, int]


class StateSnapshot(BaseModel):
    session_id: str
    session_state: Dict[str, Any]
    contexts: Dict[str, int]
    turn_count: int
    last_intent: Optional[str]


@router.post("/simulate", response_model=SimulateResponse)
def simulate(req: SimulateRequest, services: Services = Depends(get_services)) -> SimulateResponse:
    # 1) Store opens the turn read-only (contexts age by one in the request)
    # 2) Dispatch exactly one handler
    # 3) Store persists the result (closed sessions are dropped); a raised error writes nothing
    turn = services.store.begin_turn(req.session_id, req.intent, req.arguments)
    response = dispatch_with_fallback(services.dispatcher, turn, services.fallback)
    services.store.commit(response)
    return SimulateResponse(
        session_id=response.session_id,
        intent=response.intent,
        directives=response.directives,
        closed=response.closed,
        conversation_state=response.conversation_state.value,
        session_state=response.session_state,
        contexts=response.contexts.to_dict(),
    )


@router.get("/state/{session_id}", response_model=StateSnapshot)
def get_state(session_id: str, services: Services = Depends(get_services)) -> StateSnapshot:
    # Read-only: does not open a turn or create a session.
    session = services.store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return StateSnapshot(
        session_id=session_id,
        session_state=session.session_state,
        contexts=session.contexts.to_dict(),
        turn_count=session.turn_count,
        last_intent=session.last_intent,
    )
