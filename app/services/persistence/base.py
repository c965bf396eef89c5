"""Interfaces for the append-only call log and the report store."""
from abc import ABC, abstractmethod
from typing import Optional

from app.services.call_session.models import CallSummary


class CallLog(ABC):
    """Append-only archive of completed calls."""

    @abstractmethod
    async def append(self, summary: CallSummary) -> None:
        """Append a summary. Appending the same summary twice is a no-op."""
        pass


class ReportStore(ABC):
    """Creates identifiers for reports submitted over the phone."""

    @abstractmethod
    async def create_id(
        self,
        session_id: Optional[str] = None,
        caller_id: Optional[str] = None,
        category: Optional[str] = None,
        recording_url: Optional[str] = None,
    ) -> str:
        """Register a pending report and return its id."""
        pass
