"""Call log persistence service."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models import CallLogEntry
from app.services.call_session.models import CallSummary, Selection
from app.services.persistence.base import CallLog

logger = logging.getLogger(__name__)


def entry_to_summary(entry: CallLogEntry) -> CallSummary:
    """Convert a stored row back into a CallSummary."""
    return CallSummary(
        session_id=entry.session_id,
        caller_id=entry.caller_id,
        language=entry.language,
        started_at=entry.started_at,
        ended_at=entry.ended_at,
        duration_seconds=entry.duration_seconds,
        call_duration_seconds=entry.call_duration_seconds,
        hangup_reason=entry.hangup_reason,
        final_menu_id=entry.final_menu_id,
        selections=[Selection.model_validate(item) for item in entry.selections or []],
        category=entry.category,
        recording_url=entry.recording_url,
        submitted_report_id=entry.submitted_report_id,
    )


class CallLogPersistenceService:
    """Service for persisting call summaries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, summary: CallSummary) -> CallLogEntry:
        """Insert a summary, or return the existing row for the same call end."""
        existing = await self.get_entry(summary.session_id, summary.ended_at)
        if existing:
            logger.warning(
                f"[CALL LOG] Duplicate summary ignored - SessionId: {summary.session_id}"
            )
            return existing

        entry = CallLogEntry(
            session_id=summary.session_id,
            caller_id=summary.caller_id,
            language=summary.language,
            started_at=summary.started_at,
            ended_at=summary.ended_at,
            duration_seconds=summary.duration_seconds,
            call_duration_seconds=summary.call_duration_seconds,
            hangup_reason=summary.hangup_reason,
            final_menu_id=summary.final_menu_id,
            selections=[s.model_dump(mode="json") for s in summary.selections],
            category=summary.category,
            recording_url=summary.recording_url,
            submitted_report_id=summary.submitted_report_id,
        )
        self.db.add(entry)
        await self.db.commit()
        await self.db.refresh(entry)
        return entry

    async def get_entry(self, session_id: str, ended_at: datetime) -> Optional[CallLogEntry]:
        """Get the row for a session's end timestamp."""
        result = await self.db.execute(
            select(CallLogEntry).where(
                CallLogEntry.session_id == session_id,
                CallLogEntry.ended_at == ended_at,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_session(self, session_id: str) -> List[CallLogEntry]:
        """All archived calls for a session id."""
        result = await self.db.execute(
            select(CallLogEntry)
            .where(CallLogEntry.session_id == session_id)
            .order_by(desc(CallLogEntry.ended_at))
        )
        return list(result.scalars().all())

    async def list_recent(self, limit: int = 100) -> List[CallLogEntry]:
        """Most recent calls, newest first."""
        result = await self.db.execute(
            select(CallLogEntry).order_by(desc(CallLogEntry.ended_at)).limit(limit)
        )
        return list(result.scalars().all())


class DatabaseCallLog(CallLog):
    """CallLog writing through short-lived database sessions."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def append(self, summary: CallSummary) -> None:
        async with self.session_factory() as db:
            await CallLogPersistenceService(db).append(summary)
