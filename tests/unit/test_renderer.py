"""Unit tests for the response renderer."""
import pytest

from app.core.errors import ConfigError, UnsupportedBackend
from app.services.menu.base import MenuDefinition
from app.services.rendering.backends import BackendKind, resolve_backend
from app.services.rendering.intents import (
    GatherIntent,
    PlayIntent,
    RecordIntent,
    SpeakIntent,
)
from app.services.rendering.messages import get_message
from app.services.rendering.renderer import ResponseRenderer, render


MENU = MenuDefinition(
    id="main_menu",
    prompt="Press 1 to report.",
    timeout_seconds=7,
    translations={"ne": "रिपोर्ट गर्न १ थिच्नुहोस्।"},
)


class TestBackendResolution:
    """Test backend selection."""

    def test_known_backends(self):
        assert resolve_backend("twilio") == BackendKind.TWILIO
        assert resolve_backend("Plivo") == BackendKind.PLIVO
        assert resolve_backend("amazon-connect") == BackendKind.AMAZON_CONNECT
        assert resolve_backend(BackendKind.TWILIO) == BackendKind.TWILIO

    def test_unknown_backend(self):
        with pytest.raises(UnsupportedBackend) as exc_info:
            resolve_backend("asterisk")
        assert exc_info.value.backend == "asterisk"

    def test_renderer_fails_at_construction(self):
        with pytest.raises(ConfigError):
            ResponseRenderer(backend="vonage")


class TestTwilio:
    """Test Twilio payloads."""

    def test_gather(self):
        payload = render(GatherIntent(text="Press 1", timeout_seconds=5), BackendKind.TWILIO, "en")
        assert payload == {
            "action": "gather",
            "text": "Press 1",
            "numDigits": 1,
            "timeout": 5,
            "finishOnKey": "#",
            "language": "en",
        }

    def test_speak_with_hangup(self):
        payload = render(SpeakIntent(text="Bye", hangup=True), BackendKind.TWILIO, "en")
        assert payload["action"] == "say"
        assert payload["hangup"] is True

    def test_speak_without_hangup_omits_flag(self):
        payload = render(SpeakIntent(text="Hi"), BackendKind.TWILIO, "en")
        assert "hangup" not in payload

    def test_record(self):
        payload = render(RecordIntent(max_length_seconds=90), BackendKind.TWILIO, "en")
        assert payload["action"] == "record"
        assert payload["maxLength"] == 90
        assert payload["finishOnKey"] == "#"


class TestPlivo:
    """Test Plivo payloads."""

    def test_gather(self):
        payload = render(GatherIntent(text="Press 1"), BackendKind.PLIVO, "en")
        assert payload["action"] == "get_digits"
        assert payload["numDigits"] == 1

    def test_record_timeout_in_milliseconds(self):
        payload = render(RecordIntent(timeout_seconds=4), BackendKind.PLIVO, "en")
        assert payload["timeoutMs"] == 4000

    def test_speak(self):
        assert render(SpeakIntent(text="Hi"), BackendKind.PLIVO, "en")["action"] == "speak"


class TestAmazonConnect:
    """Test Amazon Connect payloads."""

    def test_gather(self):
        payload = render(GatherIntent(text="Press 1", timeout_seconds=6), BackendKind.AMAZON_CONNECT, "en")
        assert payload["action"] == "get_user_input"
        assert payload["expectedDigits"] == 1
        assert payload["timeoutInSeconds"] == 6
        assert payload["terminationDigit"] == "#"

    def test_play(self):
        payload = render(PlayIntent(url="https://example.org/a.mp3"), BackendKind.AMAZON_CONNECT, "en")
        assert payload == {
            "action": "play_media",
            "mediaUrl": "https://example.org/a.mp3",
            "language": "en",
        }

    def test_speak_with_hangup(self):
        payload = render(SpeakIntent(text="Bye", hangup=True), BackendKind.AMAZON_CONNECT, "en")
        assert payload["action"] == "play_prompt"
        assert payload["disconnect"] is True


class TestResponseRenderer:
    """Test the bound renderer helpers."""

    def test_menu_prompt_uses_menu_timeout(self, renderer):
        payload = renderer.menu_prompt(MENU, "en")
        assert payload["text"] == "Press 1 to report."
        assert payload["timeout"] == 7

    def test_menu_prompt_translation(self, renderer):
        payload = renderer.menu_prompt(MENU, "ne")
        assert payload["text"] == "रिपोर्ट गर्न १ थिच्नुहोस्।"
        assert payload["language"] == "ne"

    def test_unsupported_language_falls_back(self, renderer):
        payload = renderer.menu_prompt(MENU, "fr")
        assert payload["language"] == "en"
        assert payload["text"] == "Press 1 to report."

    def test_preamble(self, renderer):
        payload = renderer.menu_prompt(MENU, "en", preamble="Invalid selection.")
        assert payload["text"].startswith("Invalid selection. Press 1")

    def test_message_formats_service_name(self, renderer):
        payload = renderer.message("goodbye", "en", hangup=True)
        assert payload["text"] == "Thank you for calling Test Hub. Goodbye."
        assert payload["hangup"] is True

    def test_same_intent_same_payload(self, renderer):
        assert renderer.menu_prompt(MENU, "en") == renderer.menu_prompt(MENU, "en")

    def test_get_message_falls_back_to_english(self):
        assert get_message("error", "fr") == get_message("error", "en")
