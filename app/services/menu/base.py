"""Menu models and provider interface."""
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Keys a caller can press on a phone keypad
DTMF_KEYS = frozenset("0123456789#*")

MAIN_MENU = "main_menu"
CONFIRM_SUBMISSION = "confirm_submission"
SUBMISSION_CONFIRMED = "submission_confirmed"


def normalize_menu_id(menu_id: str) -> str:
    """Normalize case and separators so "Main-Menu" and "main_menu" match."""
    return re.sub(r"[\s\-]+", "_", str(menu_id).strip()).lower()


def is_dtmf_key(digit: Optional[str]) -> bool:
    """Check that a value is a single keypad key."""
    return isinstance(digit, str) and len(digit) == 1 and digit in DTMF_KEYS


class MenuAction(str, Enum):
    """What happens when a transition fires."""

    NAVIGATE = "navigate"
    BACK = "back"
    START_RECORDING = "start_recording"
    SUBMIT_REPORT = "submit_report"
    GET_ALERTS = "get_alerts"
    GET_TRANSPORT = "get_transport"
    GET_PRICES = "get_prices"
    PLAY_ANNOUNCEMENTS = "play_announcements"

    @property
    def is_feed(self) -> bool:
        """Whether the action reads an information feed."""
        return self in FEED_TOPICS

    def __str__(self) -> str:
        return self.value


FEED_TOPICS: Dict[MenuAction, str] = {
    MenuAction.GET_ALERTS: "alerts",
    MenuAction.GET_TRANSPORT: "transport",
    MenuAction.GET_PRICES: "prices",
    MenuAction.PLAY_ANNOUNCEMENTS: "announcements",
}


class Transition(BaseModel):
    """Rule for one keypress in one menu."""

    model_config = ConfigDict(frozen=True)

    next_menu_id: str
    action: MenuAction = MenuAction.NAVIGATE
    category: Optional[str] = None
    recording_duration_seconds: Optional[int] = Field(default=None, gt=0)
    feed_topic: Optional[str] = None

    @field_validator("next_menu_id")
    @classmethod
    def _normalize_next(cls, value: str) -> str:
        return normalize_menu_id(value)

    @property
    def topic(self) -> Optional[str]:
        """Feed topic for data actions, e.g. ``prices:vegetables``."""
        if self.feed_topic:
            return self.feed_topic
        return FEED_TOPICS.get(self.action)


class MenuDefinition(BaseModel):
    """A node in the IVR tree."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    prompt: str
    timeout_seconds: int = Field(default=5, gt=0)
    max_retries: int = Field(default=3, ge=0)
    transitions: Dict[str, Transition] = {}
    translations: Dict[str, str] = {}

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        return normalize_menu_id(value)

    @field_validator("transitions", mode="before")
    @classmethod
    def _check_keys(cls, value):
        if not isinstance(value, dict):
            return value
        # YAML reads an unquoted 1 as an int
        keys = {str(key): transition for key, transition in value.items()}
        bad = [key for key in keys if not is_dtmf_key(key)]
        if bad:
            raise ValueError(f"transition keys must be keypad keys, got {bad}")
        return keys

    def prompt_for(self, language: str) -> str:
        """Prompt text in the given language, falling back to the base prompt."""
        return self.translations.get(language, self.prompt)

    def transition_for(self, digit: str) -> Optional[Transition]:
        """Transition for a keypress, or None when the key is not legal here."""
        return self.transitions.get(digit)


class MenuCatalogue(BaseModel):
    """Raw catalogue as read from a provider."""

    menus: List[MenuDefinition]


class MenuProvider(ABC):
    """Abstract base class for menu catalogue sources."""

    @abstractmethod
    def load_menus(self) -> List[MenuDefinition]:
        """Load every menu definition."""
        pass
