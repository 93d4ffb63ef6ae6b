# Role: Local developer CLI to walk the transaction flow without a platform or web UI.
# Each line is one turn: an intent shortcut plus, for the *-complete intents, the platform's result code.

from __future__ import annotations

import json
import uuid
from typing import Any, Dict, List, Tuple

from fulfillment.config import configure_logging, load_config
from fulfillment.core.errors import FulfillmentError
from fulfillment.core.fallback_handler import FallbackHandler, dispatch_with_fallback
from fulfillment.core.handlers import build_dispatcher
from fulfillment.core.session_store import SessionStore
from fulfillment.models.directive import SessionClose, SpeechPrompt, StructuredPayload, SuggestionChips
from fulfillment.models.intent import Argument, Intent
from fulfillment.models.turn import TurnResponse

SAMPLE_LOCATION: Dict[str, Any] = {
    "postalAddress": {
        "regionCode": "US",
        "postalCode": "94043",
        "administrativeArea": "CA",
        "locality": "Mountain View",
        "addressLines": ["1600 Amphitheatre Parkway"],
        "recipients": ["Jane Doe"],
    }
}

SHORTCUTS: Dict[str, Intent] = {
    "welcome": Intent.WELCOME,
    "merchant": Intent.TRANSACTION_MERCHANT,
    "google": Intent.TRANSACTION_GOOGLE,
    "check": Intent.TRANSACTION_CHECK_COMPLETE,
    "address": Intent.DELIVERY_ADDRESS,
    "address-done": Intent.DELIVERY_ADDRESS_COMPLETE,
    "decision": Intent.TRANSACTION_DECISION,
    "decision-done": Intent.TRANSACTION_DECISION_COMPLETE,
}


def _new_session_id() -> str:
    return str(uuid.uuid4())


def build_turn(command: str, session_id: str) -> Tuple[str, Dict[str, Any]]:
    # "check OK" / "address-done ACCEPTED" / "decision-done ORDER_ACCEPTED" -> (intent, arguments)
    parts = command.split()
    if not parts:
        raise ValueError("empty command")
    head, code = parts[0].lower(), (parts[1] if len(parts) > 1 else None)

    intent = SHORTCUTS.get(head)
    if intent is None:
        # Anything else is sent verbatim as an intent display name.
        return command, {}

    if intent == Intent.TRANSACTION_CHECK_COMPLETE:
        return intent.value, {Argument.REQUIREMENTS_CHECK_RESULT.value: {"resultType": code or "OK"}}
    if intent == Intent.DELIVERY_ADDRESS_COMPLETE:
        return intent.value, {
            Argument.DELIVERY_ADDRESS_VALUE.value: {"userDecision": code or "ACCEPTED", "location": SAMPLE_LOCATION}
        }
    if intent == Intent.TRANSACTION_DECISION_COMPLETE:
        return intent.value, {
            Argument.TRANSACTION_DECISION_VALUE.value: {
                "userDecision": code or "ORDER_ACCEPTED",
                "order": {"finalOrder": {"id": f"final-{session_id[:8]}"}, "paymentInfo": {"displayName": "VISA-1234"}},
            }
        }
    return intent.value, {}


def render(response: TurnResponse) -> List[str]:
    lines: List[str] = []
    for directive in response.directives:
        if isinstance(directive, SpeechPrompt):
            lines.append(f"Assistant: {directive.display_text.strip()}")
        elif isinstance(directive, SuggestionChips):
            lines.append("Suggestions: " + " | ".join(directive.titles))
        elif isinstance(directive, StructuredPayload):
            lines.append(f"[{directive.kind.value}]")
            lines.append(json.dumps(directive.data, indent=2, sort_keys=True))
        elif isinstance(directive, SessionClose):
            lines.append(f"Assistant (closing): {directive.message}")
    lines.append(f"(state: {response.conversation_state.value}, contexts: {response.contexts.to_dict()})")
    return lines


def main() -> None:
    # 1) Build config, dispatcher and in-memory store
    # 2) Maintain a session_id across turns
    # 3) Route each command -> store -> dispatcher -> print directives
    config = load_config()
    configure_logging(config)

    dispatcher = build_dispatcher(config)
    fallback = FallbackHandler(config)
    store = SessionStore(session_ttl_minutes=config.session_ttl_minutes)

    print("Transaction Fulfillment CLI")
    print("Intents: " + ", ".join(SHORTCUTS) + "  (e.g. 'check OK', 'decision-done ORDER_ACCEPTED')")
    print("Commands: /new (new session), /session (show session_id), /exit")
    print("-" * 50)

    session_id = _new_session_id()
    print(f"session_id: {session_id}")

    while True:
        try:
            command = input("\nYou: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not command:
            continue

        cmd = command.lower()

        if cmd in {"/exit", "exit", "quit", "/quit"}:
            print("Bye!")
            return

        if cmd in {"/new", "new"}:
            session_id = _new_session_id()
            print(f"New session_id: {session_id}")
            continue

        if cmd in {"/session", "session"}:
            print(f"session_id: {session_id}")
            continue

        intent, arguments = build_turn(command, session_id)
        turn = store.begin_turn(session_id, intent, arguments)
        try:
            response = dispatch_with_fallback(dispatcher, turn, fallback)
        except FulfillmentError as e:
            print(f"\n[{type(e).__name__}] {e}")
            continue

        store.commit(response)
        print()
        print("\n".join(render(response)))

        if response.closed:
            session_id = _new_session_id()
            print(f"Session closed. New session_id: {session_id}")


if __name__ == "__main__":
    main()
