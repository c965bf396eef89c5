"""Call session store contract and in-process implementation."""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from app.core.errors import SessionAlreadyExists, SessionConflict, SessionNotFound
from app.services.call_session.models import CallSession, CallSummary
from app.services.persistence.base import CallLog

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = 3600


class SessionStore(ABC):
    """
    Keyed, TTL-bound store of live call sessions.

    Records are replaced whole, never patched. Every record carries a
    version; ``replace`` only succeeds if the stored version still matches
    the one the caller read, so concurrent webhooks for the same call cannot
    silently overwrite each other.
    """

    def __init__(self, call_log: CallLog, ttl_seconds: int = DEFAULT_SESSION_TTL):
        self.call_log = call_log
        self.ttl_seconds = ttl_seconds

    @abstractmethod
    async def create(
        self, session_id: str, caller_id: str, language: str = "en"
    ) -> CallSession:
        """Create a session. Raises SessionAlreadyExists."""
        pass

    @abstractmethod
    async def get(self, session_id: str) -> CallSession:
        """Get a live session. Raises SessionNotFound."""
        pass

    @abstractmethod
    async def replace(self, session_id: str, session: CallSession) -> CallSession:
        """
        Overwrite a session and refresh its TTL.

        Raises SessionNotFound if it expired or ended, SessionConflict if it
        changed since it was read. Returns the stored record with its new
        version.
        """
        pass

    @abstractmethod
    async def claim(self, session_id: str) -> CallSession:
        """Atomically remove and return a live session. Raises SessionNotFound."""
        pass

    @abstractmethod
    async def restore(self, session: CallSession) -> None:
        """Put back a claimed session whose summary could not be archived."""
        pass

    @abstractmethod
    async def list_active(self) -> List[CallSession]:
        """All live sessions. For monitoring only."""
        pass

    async def archive(
        self,
        session: CallSession,
        call_duration_seconds: Optional[int] = None,
        hangup_reason: Optional[str] = None,
    ) -> CallSummary:
        """
        Append the summary of a claimed session to the call log.

        If the append fails the session is restored, so the call can be
        ended again and its summary is never lost.
        """
        summary = session.to_summary(
            call_duration_seconds=call_duration_seconds,
            hangup_reason=hangup_reason,
        )
        try:
            await self.call_log.append(summary)
        except Exception as e:
            logger.error(
                f"[SESSION STORE] Call log append failed, restoring session - "
                f"SessionId: {session.session_id}, Error: {type(e).__name__}: {e}"
            )
            await self.restore(session)
            raise
        logger.info(
            f"[SESSION STORE] Session ended - SessionId: {session.session_id}, "
            f"Selections: {len(summary.selections)}, Reason: {hangup_reason}"
        )
        return summary

    async def end(
        self,
        session_id: str,
        call_duration_seconds: Optional[int] = None,
        hangup_reason: Optional[str] = None,
    ) -> CallSummary:
        """
        End a session and archive it.

        Only one caller can claim a session, so a second ``end`` raises
        SessionNotFound and the summary is never logged twice.
        """
        session = await self.claim(session_id)
        return await self.archive(session, call_duration_seconds, hangup_reason)

    async def stats(self) -> Dict[str, Any]:
        """Counts of live sessions by language, menu and status."""
        sessions = await self.list_active()
        return {
            "total_active_sessions": len(sessions),
            "by_language": dict(Counter(s.language for s in sessions)),
            "by_menu": dict(Counter(s.current_menu_id for s in sessions)),
            "by_status": dict(Counter(str(s.status) for s in sessions)),
        }

    async def close(self) -> None:
        """Release resources held by the store."""
        pass


class _Entry(NamedTuple):
    payload: str
    version: int
    expires_at: float


class InMemorySessionStore(SessionStore):
    """
    Process-local session store.

    Suitable for a single service instance and for tests. Expired sessions
    are archived with hangup reason ``expired`` the next time the store is
    swept (on create and list_active). A record is only dropped once its
    summary is in the call log.
    """

    def __init__(
        self,
        call_log: CallLog,
        ttl_seconds: int = DEFAULT_SESSION_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(call_log, ttl_seconds)
        self._clock = clock
        self._records: Dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    def _live_entry(self, session_id: str) -> Optional[_Entry]:
        entry = self._records.get(session_id)
        if entry is None or entry.expires_at <= self._clock():
            return None
        return entry

    def _store(self, session: CallSession) -> None:
        self._records[session.session_id] = _Entry(
            payload=session.model_dump_json(),
            version=session.version,
            expires_at=self._clock() + self.ttl_seconds,
        )

    async def purge_expired(self) -> List[CallSummary]:
        """Archive and drop every expired session."""
        now = self._clock()
        async with self._lock:
            expired = [
                (session_id, entry)
                for session_id, entry in self._records.items()
                if entry.expires_at <= now
            ]

        summaries = []
        for session_id, entry in expired:
            session = CallSession.model_validate_json(entry.payload)
            # Same ended_at on every sweep, so a retried append is deduplicated
            summary = session.to_summary(
                ended_at=session.updated_at + timedelta(seconds=self.ttl_seconds),
                hangup_reason="expired",
            )
            try:
                await self.call_log.append(summary)
            except Exception as e:
                logger.error(
                    f"[SESSION STORE] Could not archive expired session, keeping it "
                    f"for the next sweep - SessionId: {session_id}, "
                    f"Error: {type(e).__name__}: {e}"
                )
                continue
            async with self._lock:
                if self._records.get(session_id) is entry:
                    del self._records[session_id]
            summaries.append(summary)
            logger.info(f"[SESSION STORE] Session expired - SessionId: {session_id}")
        return summaries

    async def create(
        self, session_id: str, caller_id: str, language: str = "en"
    ) -> CallSession:
        await self.purge_expired()
        async with self._lock:
            if self._live_entry(session_id) is not None:
                raise SessionAlreadyExists(session_id)
            if session_id in self._records:
                logger.warning(
                    f"[SESSION STORE] Replacing unarchived expired session - "
                    f"SessionId: {session_id}"
                )
            session = CallSession(
                session_id=session_id, caller_id=caller_id, language=language
            )
            self._store(session)
        logger.debug(f"[SESSION STORE] Session created - SessionId: {session_id}")
        return session

    async def get(self, session_id: str) -> CallSession:
        entry = self._live_entry(session_id)
        if entry is None:
            raise SessionNotFound(session_id)
        return CallSession.model_validate_json(entry.payload)

    async def replace(self, session_id: str, session: CallSession) -> CallSession:
        async with self._lock:
            entry = self._live_entry(session_id)
            if entry is None:
                raise SessionNotFound(session_id)
            if entry.version != session.version:
                raise SessionConflict(session_id, session.version, entry.version)
            updated = session.model_copy(
                update={"version": session.version + 1, "updated_at": datetime.utcnow()}
            )
            self._store(updated)
        return updated

    async def claim(self, session_id: str) -> CallSession:
        async with self._lock:
            if self._live_entry(session_id) is None:
                raise SessionNotFound(session_id)
            entry = self._records.pop(session_id)
        return CallSession.model_validate_json(entry.payload)

    async def restore(self, session: CallSession) -> None:
        async with self._lock:
            if self._live_entry(session.session_id) is None:
                self._store(session)

    async def list_active(self) -> List[CallSession]:
        await self.purge_expired()
        return [
            CallSession.model_validate_json(entry.payload)
            for entry in list(self._records.values())
            if entry.expires_at > self._clock()
        ]
