"""Backend-agnostic descriptions of what the call should do next."""
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class IntentKind(str, Enum):
    """Kinds of intent every backend must be able to translate."""

    SPEAK = "speak"
    GATHER = "gather"
    PLAY = "play"
    RECORD = "record"

    def __str__(self) -> str:
        return self.value


class SpeakIntent(BaseModel):
    """Speak text; optionally hang up afterwards."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[IntentKind.SPEAK] = IntentKind.SPEAK
    text: str
    hangup: bool = False


class GatherIntent(BaseModel):
    """Speak a prompt and wait for keypad input."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[IntentKind.GATHER] = IntentKind.GATHER
    text: str
    timeout_seconds: int = Field(default=5, gt=0)
    num_digits: int = Field(default=1, gt=0)
    finish_on_key: str = "#"


class PlayIntent(BaseModel):
    """Play an audio file."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[IntentKind.PLAY] = IntentKind.PLAY
    url: str


class RecordIntent(BaseModel):
    """Record the caller until the key is pressed or the limit is hit."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[IntentKind.RECORD] = IntentKind.RECORD
    max_length_seconds: int = Field(default=120, gt=0)
    finish_on_key: str = "#"
    timeout_seconds: int = Field(default=5, gt=0)


Intent = Union[SpeakIntent, GatherIntent, PlayIntent, RecordIntent]
