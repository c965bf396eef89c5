"""Session controller: the IVR call state machine."""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Dict, Optional, TypeVar

from pydantic import BaseModel

from app.core.errors import (
    InvalidInput,
    SessionAlreadyExists,
    SessionConflict,
    SessionNotFound,
    UpstreamFeedError,
)
from app.services.call_session.models import CallSession, CallSummary, Selection
from app.services.call_session.store import SessionStore
from app.services.feeds.base import TextFeed
from app.services.menu.base import (
    CONFIRM_SUBMISSION,
    MenuAction,
    MenuDefinition,
    Transition,
    is_dtmf_key,
)
from app.services.menu.registry import MenuRegistry
from app.services.persistence.base import ReportStore
from app.services.rendering.renderer import ResponseRenderer

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Response tags that are not menu actions
INVALID_INPUT = "invalid_input"
MAX_RETRIES_EXCEEDED = "max_retries_exceeded"
SESSION_NOT_FOUND = "session_not_found"
RECORDING_COMPLETED = "recording_completed"


class IVRReply(BaseModel):
    """What the controller hands back to a webhook route."""

    session_id: str
    payload: Dict[str, Any]
    action: Optional[str] = None
    next_menu_id: Optional[str] = None
    summary: Optional[CallSummary] = None
    success: bool = True


@dataclass
class _Step:
    """Outcome of applying one keypress to a session."""

    tag: str
    transition: Optional[Transition] = None


class SessionController:
    """
    Drives a call through the menu tree, one webhook at a time.

    Nothing is kept in memory between webhooks: every event reloads the
    session from the store, applies one transition and writes it back with
    an optimistic version check. If another webhook for the same call wrote
    first, the event is re-applied to the fresh record.
    """

    def __init__(
        self,
        registry: MenuRegistry,
        store: SessionStore,
        renderer: ResponseRenderer,
        text_feed: TextFeed,
        report_store: ReportStore,
        store_timeout_seconds: float = 2.0,
        max_conflict_retries: int = 5,
        enforce_max_retries: bool = True,
        recording_max_duration: int = 120,
    ):
        self.registry = registry
        self.store = store
        self.renderer = renderer
        self.text_feed = text_feed
        self.report_store = report_store
        self.store_timeout_seconds = store_timeout_seconds
        self.max_conflict_retries = max(1, max_conflict_retries)
        self.enforce_max_retries = enforce_max_retries
        self.recording_max_duration = recording_max_duration

    async def _with_timeout(self, awaitable: Awaitable[T], session_id: str) -> T:
        """Bound a store call; a timeout counts as a missing session."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.store_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"[SESSION CONTROLLER] Store timed out - SessionId: {session_id}")
            raise SessionNotFound(session_id) from None

    def _error_reply(
        self, session_id: str, language: Optional[str] = None, tag: str = SESSION_NOT_FOUND
    ) -> IVRReply:
        return IVRReply(
            session_id=session_id,
            action=tag,
            payload=self.renderer.message("error", language),
            success=False,
        )

    def _invalid_reply(self, session: CallSession, menu: MenuDefinition) -> IVRReply:
        preamble = self.renderer.message_text("invalid_input", session.language)
        return IVRReply(
            session_id=session.session_id,
            action=INVALID_INPUT,
            next_menu_id=menu.id,
            payload=self.renderer.menu_prompt(menu, session.language, preamble=preamble),
        )

    # Call started

    async def call_started(
        self,
        caller_id: str,
        session_hint: Optional[str] = None,
        language: Optional[str] = None,
    ) -> IVRReply:
        """Create the session and ask the main menu question."""
        language = self.renderer.resolve_language(language)
        session_id = (session_hint or "").strip() or uuid.uuid4().hex

        try:
            session = await self._with_timeout(
                self.store.create(session_id, caller_id, language), session_id
            )
            logger.info(
                f"[SESSION CONTROLLER] Call started - SessionId: {session_id}, "
                f"Caller: {caller_id}, Language: {language}"
            )
        except SessionAlreadyExists:
            logger.warning(
                f"[SESSION CONTROLLER] Duplicate call-started, resuming session - "
                f"SessionId: {session_id}"
            )
            try:
                session = await self._with_timeout(self.store.get(session_id), session_id)
            except SessionNotFound:
                return self._error_reply(session_id, language)
        except SessionNotFound:
            return self._error_reply(session_id, language)

        menu = self.registry.get_menu(session.current_menu_id)
        return IVRReply(
            session_id=session_id,
            next_menu_id=menu.id,
            payload=self.renderer.menu_prompt(menu, session.language),
        )

    # Digit pressed

    async def digit_pressed(self, session_id: str, digit: Optional[str]) -> IVRReply:
        """Apply one keypress and render what comes next."""
        digit = (digit or "").strip()
        try:
            return await self._handle_digit(session_id, digit)
        except SessionNotFound:
            logger.warning(f"[SESSION CONTROLLER] Session not found - SessionId: {session_id}")
            return self._error_reply(session_id)
        except SessionConflict:
            logger.error(
                f"[SESSION CONTROLLER] Gave up after {self.max_conflict_retries} "
                f"conflicting writes - SessionId: {session_id}"
            )
            return self._error_reply(session_id, tag="error")

    async def _handle_digit(self, session_id: str, digit: str) -> IVRReply:
        try:
            if not is_dtmf_key(digit):
                raise InvalidInput(digit)
            return await self._apply_digit(session_id, digit)
        except InvalidInput as e:
            logger.info(f"[SESSION CONTROLLER] {e} - SessionId: {session_id}")
            return await self._reject_digit(session_id)

    async def _reject_digit(self, session_id: str) -> IVRReply:
        """Re-ask the current question without touching the session."""
        session = await self._with_timeout(self.store.get(session_id), session_id)
        return self._invalid_reply(session, self.registry.get_menu(session.current_menu_id))

    async def _apply_digit(self, session_id: str, digit: str) -> IVRReply:
        report_id = None
        for attempt in range(1, self.max_conflict_retries + 1):
            session = await self._with_timeout(self.store.get(session_id), session_id)
            menu = self.registry.get_menu(session.current_menu_id)
            transition = menu.transition_for(digit)

            if transition is None:
                if not self.enforce_max_retries:
                    raise InvalidInput(digit, menu.id)
                step = self._register_invalid(session, menu)
            else:
                if transition.action == MenuAction.SUBMIT_REPORT and report_id is None:
                    report_id = await self.report_store.create_id(
                        session_id=session_id,
                        caller_id=session.caller_id,
                        category=session.category,
                        recording_url=session.recording_url,
                    )
                step = self._apply_transition(session, menu, digit, transition, report_id)

            try:
                session = await self._with_timeout(
                    self.store.replace(session_id, session), session_id
                )
            except SessionConflict:
                logger.warning(
                    f"[SESSION CONTROLLER] Concurrent update, retrying - "
                    f"SessionId: {session_id}, Attempt: {attempt}"
                )
                continue

            logger.info(
                f"[SESSION CONTROLLER] Digit pressed - SessionId: {session_id}, "
                f"Menu: {menu.id}, Digit: {digit}, Result: {step.tag}, "
                f"Next: {session.current_menu_id}"
            )
            return await self._render_step(session, menu, step)

        raise SessionConflict(session_id, session.version, -1)

    def _register_invalid(self, session: CallSession, menu: MenuDefinition) -> _Step:
        """Count an illegal keypress; the menu position never changes."""
        session.invalid_attempts += 1
        if session.invalid_attempts > menu.max_retries:
            return _Step(tag=MAX_RETRIES_EXCEEDED)
        return _Step(tag=INVALID_INPUT)

    def _apply_transition(
        self,
        session: CallSession,
        menu: MenuDefinition,
        digit: str,
        transition: Transition,
        report_id: Optional[str],
    ) -> _Step:
        session.selections.append(
            Selection(menu_id=menu.id, digit=digit, timestamp=datetime.utcnow())
        )
        session.invalid_attempts = 0
        # Any legal key leaves the recording prompt
        session.is_recording = False
        if transition.category:
            session.category = transition.category

        if transition.action == MenuAction.BACK:
            if session.menu_history:
                session.current_menu_id = session.menu_history.pop()
            else:
                session.current_menu_id = transition.next_menu_id
            return _Step(tag=str(transition.action), transition=transition)

        if transition.next_menu_id != menu.id:
            session.menu_history.append(menu.id)
        session.current_menu_id = transition.next_menu_id

        if transition.action == MenuAction.START_RECORDING:
            session.is_recording = True
            session.recording_url = None
            session.recording_duration_seconds = (
                transition.recording_duration_seconds or self.recording_max_duration
            )
        elif transition.action == MenuAction.SUBMIT_REPORT:
            session.submitted_report_id = report_id

        return _Step(tag=str(transition.action), transition=transition)

    async def _render_step(
        self, session: CallSession, menu: MenuDefinition, step: _Step
    ) -> IVRReply:
        if step.tag == INVALID_INPUT:
            return self._invalid_reply(session, menu)

        language = session.language
        reply = IVRReply(
            session_id=session.session_id,
            action=step.tag,
            next_menu_id=session.current_menu_id,
            payload={},
        )
        if step.tag == MAX_RETRIES_EXCEEDED:
            logger.info(
                f"[SESSION CONTROLLER] Too many invalid attempts on {menu.id} - "
                f"SessionId: {session.session_id}"
            )
            reply.payload = self.renderer.message("too_many_attempts", language, hangup=True)
            return reply

        action = step.transition.action
        if action == MenuAction.START_RECORDING:
            reply.payload = self.renderer.record(session.recording_duration_seconds, language)
        elif action.is_feed:
            text = await self._feed_text(step.transition.topic, language)
            reply.payload = self.renderer.speak(text, language)
        else:
            next_menu = self.registry.get_menu(session.current_menu_id)
            reply.payload = self.renderer.menu_prompt(next_menu, language)
        return reply

    async def _feed_text(self, topic: str, language: str) -> str:
        """Cached feed summary, or the no-information message."""
        try:
            text = await self.text_feed.get_cached(topic)
        except UpstreamFeedError as e:
            logger.warning(f"[SESSION CONTROLLER] Feed unavailable - Topic: {topic}, Error: {e}")
            text = ""
        return text or self.renderer.message_text("no_information", language)

    # Recording completed

    async def recording_completed(
        self, session_id: str, recording_url: str, duration_seconds: Optional[int] = None
    ) -> IVRReply:
        """Attach the recording and ask the caller to confirm the report."""
        try:
            for attempt in range(1, self.max_conflict_retries + 1):
                session = await self._with_timeout(self.store.get(session_id), session_id)
                session.recording_url = recording_url
                session.is_recording = False
                if session.current_menu_id != CONFIRM_SUBMISSION:
                    session.menu_history.append(session.current_menu_id)
                    session.current_menu_id = CONFIRM_SUBMISSION
                try:
                    session = await self._with_timeout(
                        self.store.replace(session_id, session), session_id
                    )
                    break
                except SessionConflict:
                    logger.warning(
                        f"[SESSION CONTROLLER] Concurrent update, retrying - "
                        f"SessionId: {session_id}, Attempt: {attempt}"
                    )
            else:
                return self._error_reply(session_id, tag="error")
        except SessionNotFound:
            logger.warning(f"[SESSION CONTROLLER] Session not found - SessionId: {session_id}")
            return self._error_reply(session_id)

        logger.info(
            f"[SESSION CONTROLLER] Recording completed - SessionId: {session_id}, "
            f"Duration: {duration_seconds}s"
        )
        menu = self.registry.get_menu(CONFIRM_SUBMISSION)
        return IVRReply(
            session_id=session_id,
            action=RECORDING_COMPLETED,
            next_menu_id=menu.id,
            payload=self.renderer.menu_prompt(menu, session.language),
        )

    # Call ended

    async def call_ended(
        self,
        session_id: str,
        call_duration_seconds: Optional[int] = None,
        hangup_reason: Optional[str] = None,
    ) -> IVRReply:
        """End and archive the session. Ending twice is not an error."""
        summary = None
        try:
            session = await self._with_timeout(self.store.claim(session_id), session_id)
        except SessionNotFound:
            logger.info(f"[SESSION CONTROLLER] Session already ended - SessionId: {session_id}")
        else:
            # Not bounded by the store timeout: the record is already claimed
            summary = await self.store.archive(session, call_duration_seconds, hangup_reason)

        return IVRReply(
            session_id=session_id,
            action="call_ended",
            payload=self.renderer.message("goodbye", summary.language if summary else None, hangup=True),
            summary=summary,
        )

    # Monitoring

    async def get_session_status(self, session_id: str) -> CallSession:
        """Current state of a live session. Raises SessionNotFound."""
        return await self._with_timeout(self.store.get(session_id), session_id)

    async def session_stats(self) -> Dict[str, Any]:
        """Counts of live sessions."""
        return await self.store.stats()
