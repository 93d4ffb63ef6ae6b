# Role: Outbound response vocabulary. A turn produces an ordered list of directives:
# speech prompts, suggestion chips, structured platform payloads, or a session close.

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PayloadKind(str, Enum):
    TRANSACTION_REQUIREMENTS_CHECK = "TRANSACTION_REQUIREMENTS_CHECK"
    DELIVERY_ADDRESS = "DELIVERY_ADDRESS"
    TRANSACTION_DECISION = "TRANSACTION_DECISION"
    ORDER_UPDATE = "ORDER_UPDATE"


class SpeechPrompt(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["speech"] = "speech"
    speech: str
    text: Optional[str] = None

    @model_validator(mode="after")
    def _check_speech(self):
        if not self.speech.strip():
            raise ValueError("speech must be non-empty")
        return self

    @property
    def display_text(self) -> str:
        return self.text or self.speech


class SuggestionChips(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["suggestions"] = "suggestions"
    titles: List[str]


class StructuredPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["payload"] = "payload"
    kind: PayloadKind
    data: Dict[str, Any]


class SessionClose(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["close"] = "close"
    message: str


Directive = Annotated[
    Union[SpeechPrompt, SuggestionChips, StructuredPayload, SessionClose],
    Field(discriminator="type"),
]


def say(speech: str, text: Optional[str] = None) -> SpeechPrompt:
    return SpeechPrompt(speech=speech, text=text)


def suggest(*titles: str) -> SuggestionChips:
    return SuggestionChips(titles=list(titles))


def close(message: str) -> SessionClose:
    return SessionClose(message=message)
