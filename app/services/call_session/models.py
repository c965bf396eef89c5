"""Call session models."""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.services.menu.base import MAIN_MENU


class SessionStatus(str, Enum):
    """Lifecycle status of a call session."""

    ACTIVE = "active"
    ENDED = "ended"

    def __str__(self) -> str:
        return self.value


class CamelModel(BaseModel):
    """Model serialized with camelCase keys for webhook payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Selection(CamelModel):
    """One accepted keypress."""

    model_config = ConfigDict(frozen=True)

    menu_id: str
    digit: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class CallSession(CamelModel):
    """Navigation state for one phone call."""

    session_id: str
    caller_id: str
    language: str = "en"
    current_menu_id: str = MAIN_MENU
    menu_history: List[str] = []
    selections: List[Selection] = []
    category: Optional[str] = None
    is_recording: bool = False
    recording_duration_seconds: Optional[int] = None
    recording_url: Optional[str] = None
    submitted_report_id: Optional[str] = None
    invalid_attempts: int = 0
    status: SessionStatus = SessionStatus.ACTIVE
    started_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    # Incremented by the store on every successful replace
    version: int = 0

    def to_summary(
        self,
        ended_at: Optional[datetime] = None,
        call_duration_seconds: Optional[int] = None,
        hangup_reason: Optional[str] = None,
    ) -> "CallSummary":
        """Build the archival record for this call."""
        ended_at = ended_at or datetime.utcnow()
        return CallSummary(
            session_id=self.session_id,
            caller_id=self.caller_id,
            language=self.language,
            started_at=self.started_at,
            ended_at=ended_at,
            duration_seconds=max(0, round((ended_at - self.started_at).total_seconds())),
            call_duration_seconds=call_duration_seconds,
            hangup_reason=hangup_reason,
            final_menu_id=self.current_menu_id,
            selections=list(self.selections),
            category=self.category,
            recording_url=self.recording_url,
            submitted_report_id=self.submitted_report_id,
        )


class CallSummary(CamelModel):
    """Immutable record of a completed call."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    caller_id: str
    language: str = "en"
    started_at: datetime
    ended_at: datetime
    duration_seconds: int = 0
    call_duration_seconds: Optional[int] = None
    hangup_reason: Optional[str] = None
    final_menu_id: Optional[str] = None
    selections: List[Selection] = []
    category: Optional[str] = None
    recording_url: Optional[str] = None
    submitted_report_id: Optional[str] = None
    status: SessionStatus = SessionStatus.ENDED
