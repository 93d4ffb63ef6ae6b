# Role: Typed contract between the dispatcher and intent handlers.
# TurnRequest comes in, handlers see a read-only TurnContext and return a HandlerResult,
# the dispatcher applies the result and returns a TurnResponse for the caller to persist.

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from fulfillment.models.context import ContextSet
from fulfillment.models.conversation import ConversationState
from fulfillment.models.directive import Directive, SessionClose, StructuredPayload


@dataclass(frozen=True)
class TurnRequest:
    intent: str
    session_id: str = ""
    arguments: Mapping[str, Any] = field(default_factory=dict)
    session_state: Mapping[str, Any] = field(default_factory=dict)
    contexts: ContextSet = field(default_factory=ContextSet)


@dataclass(frozen=True)
class TurnContext:
    session_id: str
    arguments: Mapping[str, Any]
    session_state: Mapping[str, Any]
    contexts: ContextSet
    conversation_state: ConversationState

    @classmethod
    def from_request(cls, request: TurnRequest, conversation_state: ConversationState) -> "TurnContext":
        # Key line: handlers get read-only views; all writes go through HandlerResult.
        return cls(
            session_id=request.session_id,
            arguments=MappingProxyType(dict(request.arguments)),
            session_state=MappingProxyType(dict(request.session_state)),
            contexts=request.contexts,
            conversation_state=conversation_state,
        )

    def argument(self, name: str) -> Optional[Any]:
        return self.arguments.get(name)


@dataclass(frozen=True)
class HandlerResult:
    directives: List[Directive] = field(default_factory=list)
    # Keys mapped to None are removed from session state.
    state_delta: Dict[str, Any] = field(default_factory=dict)
    # Context name -> new lifespan; 0 clears the context.
    context_delta: Dict[str, int] = field(default_factory=dict)
    next_state: Optional[ConversationState] = None

    @property
    def closes_session(self) -> bool:
        return any(isinstance(d, SessionClose) for d in self.directives)


@dataclass(frozen=True)
class TurnResponse:
    session_id: str
    intent: str
    directives: List[Directive]
    session_state: Dict[str, Any]
    contexts: ContextSet
    conversation_state: ConversationState

    @property
    def closed(self) -> bool:
        return any(isinstance(d, SessionClose) for d in self.directives)

    def payloads(self) -> List[StructuredPayload]:
        return [d for d in self.directives if isinstance(d, StructuredPayload)]
