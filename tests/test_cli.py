"""
Tests for the developer CLI

Tests cover:
- Shortcut + result code -> (intent, arguments) mapping
- Default codes and verbatim intent names
- Rendering a dispatched turn
"""

import pytest

from cli import SAMPLE_LOCATION, build_turn, render
from fulfillment.core.handlers import DELIVERY_ADDRESS_UPDATED


class TestBuildTurn:
    def test_check_with_failure_code(self):
        intent, arguments = build_turn("check FAIL", "sess-1")

        assert intent == "Transaction Check Complete"
        assert arguments == {"TRANSACTION_REQUIREMENTS_CHECK_RESULT": {"resultType": "FAIL"}}

    def test_check_defaults_to_ok(self):
        _, arguments = build_turn("check", "sess-1")

        assert arguments["TRANSACTION_REQUIREMENTS_CHECK_RESULT"] == {"resultType": "OK"}

    def test_decision_done_address_updated(self):
        intent, arguments = build_turn("decision-done DELIVERY_ADDRESS_UPDATED", "abcdefgh-1234")

        assert intent == "Transaction Decision Complete"
        value = arguments["TRANSACTION_DECISION_VALUE"]
        assert value["userDecision"] == DELIVERY_ADDRESS_UPDATED
        assert value["order"]["finalOrder"] == {"id": "final-abcdefgh"}

    def test_address_done_carries_sample_location(self):
        intent, arguments = build_turn("ADDRESS-DONE", "sess-1")

        assert intent == "Delivery Address Complete"
        assert arguments["DELIVERY_ADDRESS_VALUE"] == {"userDecision": "ACCEPTED", "location": SAMPLE_LOCATION}

    @pytest.mark.parametrize(
        "command,expected",
        [
            ("welcome", "Default Welcome Intent"),
            ("google", "Transaction Google"),
            ("decision", "Transaction Decision"),
        ],
    )
    def test_plain_shortcuts_have_no_arguments(self, command, expected):
        assert build_turn(command, "sess-1") == (expected, {})

    def test_unknown_command_is_sent_verbatim(self):
        assert build_turn("Some Custom Intent", "sess-1") == ("Some Custom Intent", {})

    def test_empty_command(self):
        with pytest.raises(ValueError):
            build_turn("   ", "sess-1")


class TestRender:
    def test_renders_speech_suggestions_and_state(self, dispatcher, store):
        intent, arguments = build_turn("welcome", "sess-1")
        response = dispatcher.dispatch(store.begin_turn("sess-1", intent, arguments))

        lines = render(response)

        assert lines[0].startswith("Assistant: ")
        assert lines[1] == "Suggestions: Merchant Transaction | Google Pay Transaction"
        assert lines[-1] == "(state: START, contexts: {})"
