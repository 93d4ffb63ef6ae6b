# Role: Request-decoder / response-encoder boundary for Dialogflow v2 webhooks carrying
# Actions on Google v2 payloads. Turns the wire JSON into a TurnRequest and a TurnResponse back
# into the wire JSON; no conversation logic lives here.

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fulfillment.core.errors import PlatformPayloadError
from fulfillment.models.context import Context, ContextSet
from fulfillment.models.directive import (
    PayloadKind,
    SessionClose,
    SpeechPrompt,
    StructuredPayload,
    SuggestionChips,
)
from fulfillment.models.turn import TurnRequest, TurnResponse

logger = logging.getLogger(__name__)

DATA_CONTEXT = "_actions_on_google"
DATA_CONTEXT_LIFESPAN = 99
PLACEHOLDER = "PLACEHOLDER"

# payload kind -> (system intent, value-spec @type)
SYSTEM_INTENTS: Dict[PayloadKind, Tuple[str, str]] = {
    PayloadKind.TRANSACTION_REQUIREMENTS_CHECK: (
        "actions.intent.TRANSACTION_REQUIREMENTS_CHECK",
        "type.googleapis.com/google.actions.v2.TransactionRequirementsCheckSpec",
    ),
    PayloadKind.DELIVERY_ADDRESS: (
        "actions.intent.DELIVERY_ADDRESS",
        "type.googleapis.com/google.actions.v2.DeliveryAddressValueSpec",
    ),
    PayloadKind.TRANSACTION_DECISION: (
        "actions.intent.TRANSACTION_DECISION",
        "type.googleapis.com/google.actions.v2.TransactionDecisionValueSpec",
    ),
}

# Scalar argument fields, in the order the platform library checks them.
_SCALAR_ARGUMENT_FIELDS = ("boolValue", "intValue", "floatValue", "datetimeValue", "placeValue", "rawText")


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class WireIntent(_WireModel):
    display_name: str = Field(alias="displayName")


class WireContext(_WireModel):
    name: str
    lifespan_count: Optional[int] = Field(default=None, alias="lifespanCount")
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @property
    def short_name(self) -> str:
        return self.name.rsplit("/contexts/", 1)[-1]


class WireQueryResult(_WireModel):
    query_text: Optional[str] = Field(default=None, alias="queryText")
    intent: WireIntent
    output_contexts: List[WireContext] = Field(default_factory=list, alias="outputContexts")


class WireArgument(_WireModel):
    name: str
    extension: Optional[Dict[str, Any]] = None
    structured_value: Optional[Dict[str, Any]] = Field(default=None, alias="structuredValue")
    text_value: Optional[str] = Field(default=None, alias="textValue")

    def value(self) -> Any:
        if self.extension is not None:
            return self.extension
        if self.structured_value is not None:
            return self.structured_value
        extra = self.model_extra or {}
        for key in _SCALAR_ARGUMENT_FIELDS:
            if key in extra:
                return extra[key]
        return self.text_value


class WireInput(_WireModel):
    intent: Optional[str] = None
    arguments: List[WireArgument] = Field(default_factory=list)


class WireAssistantPayload(_WireModel):
    inputs: List[WireInput] = Field(default_factory=list)


class WireOriginalRequest(_WireModel):
    source: Optional[str] = None
    payload: WireAssistantPayload = Field(default_factory=WireAssistantPayload)


class WebhookRequest(_WireModel):
    session: str
    response_id: Optional[str] = Field(default=None, alias="responseId")
    query_result: WireQueryResult = Field(alias="queryResult")
    original_detect_intent_request: WireOriginalRequest = Field(
        default_factory=WireOriginalRequest, alias="originalDetectIntentRequest"
    )


def _session_state_from(contexts: List[WireContext]) -> Dict[str, Any]:
    for ctx in contexts:
        if ctx.short_name != DATA_CONTEXT:
            continue
        raw = ctx.parameters.get("data")
        if raw is None:
            return {}
        if isinstance(raw, dict):
            return dict(raw)
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise PlatformPayloadError(f"Bad session data in {DATA_CONTEXT}: {e}") from e
        if not isinstance(data, dict):
            raise PlatformPayloadError(f"Session data in {DATA_CONTEXT} must be a JSON object")
        return data
    return {}


def decode_request(body: Dict[str, Any]) -> TurnRequest:
    # 1) Validate the webhook envelope
    # 2) Split contexts: _actions_on_google carries session state, the rest are conversation flags
    # 3) Flatten Assistant input arguments into name -> value
    try:
        wire = WebhookRequest.model_validate(body)
    except ValidationError as e:
        raise PlatformPayloadError(f"Invalid webhook request: {e.error_count()} validation error(s)") from e

    contexts = ContextSet(
        [
            Context(
                name=ctx.short_name,
                # Key line: a context without lifespanCount is live for the current turn only.
                lifespan=ctx.lifespan_count if ctx.lifespan_count is not None else 1,
                parameters=ctx.parameters,
            )
            for ctx in wire.query_result.output_contexts
            if ctx.short_name != DATA_CONTEXT
        ]
    )

    arguments: Dict[str, Any] = {}
    for wire_input in wire.original_detect_intent_request.payload.inputs:
        for argument in wire_input.arguments:
            arguments[argument.name] = argument.value()

    return TurnRequest(
        intent=wire.query_result.intent.display_name,
        session_id=wire.session,
        arguments=arguments,
        session_state=_session_state_from(wire.query_result.output_contexts),
        contexts=contexts,
    )


def _context_name(session: str, name: str) -> str:
    return f"{session}/contexts/{name}"


def _output_contexts(request: TurnRequest, response: TurnResponse) -> List[Dict[str, Any]]:
    # Only contexts changed this turn are sent; untouched ones keep their platform-side lifespan.
    out: List[Dict[str, Any]] = []
    for ctx in response.contexts:
        if request.contexts.get(ctx.name) != ctx:
            entry: Dict[str, Any] = {
                "name": _context_name(response.session_id, ctx.name),
                "lifespanCount": ctx.lifespan,
            }
            if ctx.parameters:
                entry["parameters"] = ctx.parameters
            out.append(entry)

    for name in request.contexts.names():
        if response.contexts.get(name) is None:
            out.append({"name": _context_name(response.session_id, name), "lifespanCount": 0})

    out.append(
        {
            "name": _context_name(response.session_id, DATA_CONTEXT),
            "lifespanCount": DATA_CONTEXT_LIFESPAN,
            "parameters": {"data": json.dumps(response.session_state, sort_keys=True)},
        }
    )
    return out


def encode_response(request: TurnRequest, response: TurnResponse) -> Dict[str, Any]:
    # 1) Directives -> rich response items / suggestions / system intent, in order
    # 2) Placeholder prompt when only a system intent was asked
    # 3) Session state round-trips through the _actions_on_google context
    items: List[Dict[str, Any]] = []
    suggestions: List[Dict[str, str]] = []
    system_intent: Optional[Dict[str, Any]] = None

    for directive in response.directives:
        if isinstance(directive, SpeechPrompt):
            simple: Dict[str, Any] = {"textToSpeech": directive.speech}
            if directive.text:
                simple["displayText"] = directive.text
            items.append({"simpleResponse": simple})
        elif isinstance(directive, SuggestionChips):
            suggestions.extend({"title": title} for title in directive.titles)
        elif isinstance(directive, SessionClose):
            items.append({"simpleResponse": {"textToSpeech": directive.message}})
        elif isinstance(directive, StructuredPayload):
            if directive.kind == PayloadKind.ORDER_UPDATE:
                items.append({"structuredResponse": {"orderUpdate": directive.data}})
                continue
            if system_intent is not None:
                raise PlatformPayloadError("Only one system intent can be asked per response")
            intent_name, spec_type = SYSTEM_INTENTS[directive.kind]
            system_intent = {"intent": intent_name, "data": {"@type": spec_type, **directive.data}}

    if not any("simpleResponse" in item for item in items):
        items.insert(0, {"simpleResponse": {"textToSpeech": PLACEHOLDER}})

    rich_response: Dict[str, Any] = {"items": items}
    if suggestions:
        rich_response["suggestions"] = suggestions

    google: Dict[str, Any] = {
        "expectUserResponse": not response.closed,
        "richResponse": rich_response,
    }
    if system_intent is not None:
        google["systemIntent"] = system_intent

    return {
        "payload": {"google": google},
        "outputContexts": _output_contexts(request, response),
    }
