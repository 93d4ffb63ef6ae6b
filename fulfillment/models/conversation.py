# Role: Explicit conversation state machine for the transaction demo.
# ConversationState is stored in session state; TRANSITIONS maps (intent, current state) -> next state.

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from fulfillment.models.intent import Intent

STATE_KEY = "conversationState"


class ConversationState(str, Enum):
    START = "START"
    MERCHANT_PAY_SELECTED = "MERCHANT_PAY_SELECTED"
    GOOGLE_PAY_SELECTED = "GOOGLE_PAY_SELECTED"
    REQUIREMENTS_CHECKED = "REQUIREMENTS_CHECKED"
    ADDRESS_REQUESTED = "ADDRESS_REQUESTED"
    ADDRESS_COLLECTED = "ADDRESS_COLLECTED"
    DECISION_REQUESTED = "DECISION_REQUESTED"
    DECISION_RESOLVED = "DECISION_RESOLVED"
    CLOSED = "CLOSED"


S = ConversationState

_OPEN_STATES: FrozenSet[ConversationState] = frozenset(s for s in S if s is not S.CLOSED)
_PAYMENT_SELECTED = frozenset({S.MERCHANT_PAY_SELECTED, S.GOOGLE_PAY_SELECTED})

# intent -> (states it may follow, state it leads to)
_RULES: Dict[Intent, Tuple[FrozenSet[ConversationState], ConversationState]] = {
    Intent.WELCOME: (_OPEN_STATES, S.START),
    Intent.TRANSACTION_MERCHANT: (frozenset({S.START}) | _PAYMENT_SELECTED, S.MERCHANT_PAY_SELECTED),
    Intent.TRANSACTION_GOOGLE: (frozenset({S.START}) | _PAYMENT_SELECTED, S.GOOGLE_PAY_SELECTED),
    Intent.TRANSACTION_CHECK_COMPLETE: (_PAYMENT_SELECTED, S.REQUIREMENTS_CHECKED),
    Intent.DELIVERY_ADDRESS: (
        frozenset({S.REQUIREMENTS_CHECKED, S.ADDRESS_REQUESTED, S.ADDRESS_COLLECTED}),
        S.ADDRESS_REQUESTED,
    ),
    Intent.DELIVERY_ADDRESS_COMPLETE: (frozenset({S.ADDRESS_REQUESTED}), S.ADDRESS_COLLECTED),
    # Key line: the decision can be requested without an address (the order just has no location).
    Intent.TRANSACTION_DECISION: (
        frozenset({S.REQUIREMENTS_CHECKED, S.ADDRESS_COLLECTED}),
        S.DECISION_REQUESTED,
    ),
    Intent.TRANSACTION_DECISION_COMPLETE: (frozenset({S.DECISION_REQUESTED}), S.DECISION_RESOLVED),
}

TRANSITIONS: Dict[Tuple[Intent, ConversationState], ConversationState] = {
    (intent, current): target
    for intent, (sources, target) in _RULES.items()
    for current in sources
}


def next_state(intent: Intent, current: ConversationState) -> Optional[ConversationState]:
    return TRANSITIONS.get((intent, current))


def default_target(intent: Intent) -> ConversationState:
    return _RULES[intent][1]


def parse_state(raw: object) -> ConversationState:
    # Missing or unrecognized values start a fresh flow.
    if isinstance(raw, str):
        try:
            return ConversationState(raw)
        except ValueError:
            return ConversationState.START
    return ConversationState.START
