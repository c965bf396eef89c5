"""Per-backend translation tables.

Each telephony backend gets one function per intent kind. Supporting a new
backend means adding a ``BackendKind`` member and its table here; nothing
outside this module branches on backend identity.
"""
import re
from enum import Enum
from typing import Any, Callable, Dict

from app.core.errors import UnsupportedBackend
from app.services.rendering.intents import (
    GatherIntent,
    IntentKind,
    PlayIntent,
    RecordIntent,
    SpeakIntent,
)

BackendPayload = Dict[str, Any]
Translator = Callable[[Any, str], BackendPayload]


class BackendKind(str, Enum):
    """Supported telephony protocols."""

    TWILIO = "twilio"
    PLIVO = "plivo"
    AMAZON_CONNECT = "amazon_connect"

    def __str__(self) -> str:
        return self.value


def resolve_backend(backend) -> BackendKind:
    """Resolve a configured backend name. Raises UnsupportedBackend."""
    if isinstance(backend, BackendKind):
        return backend
    name = re.sub(r"[\s\-]+", "_", str(backend).strip()).lower()
    try:
        kind = BackendKind(name)
    except ValueError:
        raise UnsupportedBackend(str(backend)) from None
    if kind not in BACKEND_TRANSLATORS:
        raise UnsupportedBackend(str(backend))
    return kind


# Twilio

def _twilio_speak(intent: SpeakIntent, language: str) -> BackendPayload:
    payload = {"action": "say", "text": intent.text, "language": language}
    if intent.hangup:
        payload["hangup"] = True
    return payload


def _twilio_gather(intent: GatherIntent, language: str) -> BackendPayload:
    return {
        "action": "gather",
        "text": intent.text,
        "numDigits": intent.num_digits,
        "timeout": intent.timeout_seconds,
        "finishOnKey": intent.finish_on_key,
        "language": language,
    }


def _twilio_play(intent: PlayIntent, language: str) -> BackendPayload:
    return {"action": "play", "url": intent.url, "language": language}


def _twilio_record(intent: RecordIntent, language: str) -> BackendPayload:
    return {
        "action": "record",
        "maxLength": intent.max_length_seconds,
        "finishOnKey": intent.finish_on_key,
        "timeout": intent.timeout_seconds,
        "language": language,
    }


# Plivo

def _plivo_speak(intent: SpeakIntent, language: str) -> BackendPayload:
    payload = {"action": "speak", "text": intent.text, "language": language}
    if intent.hangup:
        payload["hangup"] = True
    return payload


def _plivo_gather(intent: GatherIntent, language: str) -> BackendPayload:
    return {
        "action": "get_digits",
        "text": intent.text,
        "numDigits": intent.num_digits,
        "timeout": intent.timeout_seconds,
        "finishOnKey": intent.finish_on_key,
        "language": language,
    }


def _plivo_play(intent: PlayIntent, language: str) -> BackendPayload:
    return {"action": "play", "url": intent.url, "language": language}


def _plivo_record(intent: RecordIntent, language: str) -> BackendPayload:
    return {
        "action": "record",
        "maxLength": intent.max_length_seconds,
        "finishOnKey": intent.finish_on_key,
        "timeoutMs": intent.timeout_seconds * 1000,
        "language": language,
    }


# Amazon Connect

def _connect_speak(intent: SpeakIntent, language: str) -> BackendPayload:
    payload = {"action": "play_prompt", "text": intent.text, "language": language}
    if intent.hangup:
        payload["disconnect"] = True
    return payload


def _connect_gather(intent: GatherIntent, language: str) -> BackendPayload:
    return {
        "action": "get_user_input",
        "text": intent.text,
        "expectedDigits": intent.num_digits,
        "timeoutInSeconds": intent.timeout_seconds,
        "terminationDigit": intent.finish_on_key,
        "language": language,
    }


def _connect_play(intent: PlayIntent, language: str) -> BackendPayload:
    return {"action": "play_media", "mediaUrl": intent.url, "language": language}


def _connect_record(intent: RecordIntent, language: str) -> BackendPayload:
    return {
        "action": "start_recording",
        "maxDurationInSeconds": intent.max_length_seconds,
        "terminationDigit": intent.finish_on_key,
        "timeoutInSeconds": intent.timeout_seconds,
        "language": language,
    }


BACKEND_TRANSLATORS: Dict[BackendKind, Dict[IntentKind, Translator]] = {
    BackendKind.TWILIO: {
        IntentKind.SPEAK: _twilio_speak,
        IntentKind.GATHER: _twilio_gather,
        IntentKind.PLAY: _twilio_play,
        IntentKind.RECORD: _twilio_record,
    },
    BackendKind.PLIVO: {
        IntentKind.SPEAK: _plivo_speak,
        IntentKind.GATHER: _plivo_gather,
        IntentKind.PLAY: _plivo_play,
        IntentKind.RECORD: _plivo_record,
    },
    BackendKind.AMAZON_CONNECT: {
        IntentKind.SPEAK: _connect_speak,
        IntentKind.GATHER: _connect_gather,
        IntentKind.PLAY: _connect_play,
        IntentKind.RECORD: _connect_record,
    },
}
