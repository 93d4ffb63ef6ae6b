# Role: Error taxonomy for the fulfillment core. Everything derives from FulfillmentError so the
# hosting layer can map failures to HTTP responses in one place.

from __future__ import annotations

from typing import Any, Iterable


class FulfillmentError(Exception):
    pass


class DuplicateIntentError(FulfillmentError):
    def __init__(self, intent: str) -> None:
        super().__init__(f"Intent already registered: {intent!r}")
        self.intent = intent


class UnknownIntentError(FulfillmentError):
    def __init__(self, intent: str) -> None:
        super().__init__(f"No handler registered for intent: {intent!r}")
        self.intent = intent


class InvalidTransitionError(FulfillmentError):
    def __init__(self, intent: str, state: str) -> None:
        super().__init__(f"Intent {intent!r} is not allowed in state {state}")
        self.intent = intent
        self.state = state


class HandlerContractError(FulfillmentError):
    """A handler returned a result that breaks the one-turn contract (e.g. no directives)."""


class PlatformPayloadError(FulfillmentError):
    """The inbound webhook body could not be decoded."""


class UnexpectedDecisionCode(FulfillmentError):
    """
    An externally supplied result/decision code fell outside the expected set.
    Handlers catch this themselves and close the session; it never leaves a handler.
    """

    def __init__(self, argument: str, code: Any, expected: Iterable[str]) -> None:
        expected_list = sorted(expected)
        super().__init__(f"{argument}: unexpected code {code!r} (expected one of {expected_list})")
        self.argument = argument
        self.code = code
        self.expected = expected_list
