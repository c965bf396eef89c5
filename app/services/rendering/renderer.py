"""Response renderer: semantic intent in, backend payload out."""
import logging
from typing import Iterable, Optional

from app.core.errors import UnsupportedBackend
from app.services.menu.base import MenuDefinition
from app.services.rendering.backends import (
    BACKEND_TRANSLATORS,
    BackendKind,
    BackendPayload,
    resolve_backend,
)
from app.services.rendering.intents import (
    GatherIntent,
    Intent,
    RecordIntent,
    SpeakIntent,
)
from app.services.rendering.messages import get_message

logger = logging.getLogger(__name__)


def render(intent: Intent, backend_kind: BackendKind, language: str) -> BackendPayload:
    """Translate an intent into the payload a backend understands."""
    translators = BACKEND_TRANSLATORS.get(backend_kind)
    if translators is None:
        raise UnsupportedBackend(str(backend_kind))
    return translators[intent.kind](intent, language)


class ResponseRenderer:
    """
    Renderer bound to the configured telephony backend.

    The backend is resolved when the renderer is built, so an unsupported
    backend stops the service at startup instead of failing a live call.
    """

    def __init__(
        self,
        backend: str,
        default_language: str = "en",
        supported_languages: Optional[Iterable[str]] = None,
        service_name: str = "",
    ):
        self.backend_kind = resolve_backend(backend)
        self.default_language = default_language
        self.supported_languages = set(supported_languages or [default_language])
        self.service_name = service_name
        logger.info(f"[RENDERER] Using backend: {self.backend_kind}")

    def resolve_language(self, language: Optional[str]) -> str:
        """Return the language if supported, else the default."""
        if language and language.lower() in self.supported_languages:
            return language.lower()
        return self.default_language

    def render(self, intent: Intent, language: str) -> BackendPayload:
        """Render any intent for the bound backend."""
        return render(intent, self.backend_kind, self.resolve_language(language))

    def menu_prompt(
        self, menu: MenuDefinition, language: str, preamble: str = ""
    ) -> BackendPayload:
        """Ask the menu's question and wait for one digit."""
        language = self.resolve_language(language)
        text = menu.prompt_for(language)
        if preamble:
            text = f"{preamble} {text}"
        intent = GatherIntent(text=text, timeout_seconds=menu.timeout_seconds)
        return self.render(intent, language)

    def speak(self, text: str, language: str, hangup: bool = False) -> BackendPayload:
        """Speak plain text."""
        return self.render(SpeakIntent(text=text, hangup=hangup), language)

    def record(self, max_length_seconds: int, language: str) -> BackendPayload:
        """Record audio until # or the length limit."""
        return self.render(RecordIntent(max_length_seconds=max_length_seconds), language)

    def message(self, key: str, language: Optional[str], hangup: bool = False) -> BackendPayload:
        """Speak a localized system message."""
        language = self.resolve_language(language)
        text = get_message(key, language, service=self.service_name)
        return self.speak(text, language, hangup=hangup)

    def message_text(self, key: str, language: str) -> str:
        """Localized system message text."""
        return get_message(key, self.resolve_language(language), service=self.service_name)
