"""IVR webhook endpoints.

Every telephony webhook answers HTTP 200 with a rendered payload, even when
the flow failed: the other end is a live call that cannot retry.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import AliasChoices, Field, field_validator

from app.core.dependencies import get_renderer, get_session_controller
from app.core.errors import SessionNotFound
from app.services.call_session.controller import SessionController
from app.services.call_session.models import CallSession, CallSummary, CamelModel
from app.services.rendering.renderer import ResponseRenderer

router = APIRouter()
logger = logging.getLogger(__name__)


class CallStartedRequest(CamelModel):
    """Call started webhook body."""

    caller_id: str
    session_hint: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("sessionHint", "callId", "session_hint"),
    )
    language: Optional[str] = None


class DigitPressedRequest(CamelModel):
    """Digit pressed webhook body."""

    session_id: str
    digit: Optional[str] = None

    @field_validator("digit", mode="before")
    @classmethod
    def _digit_to_str(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class RecordingCompletedRequest(CamelModel):
    """Recording completed webhook body."""

    session_id: str
    recording_url: str
    duration_seconds: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("durationSeconds", "duration", "duration_seconds"),
    )


class CallEndedRequest(CamelModel):
    """Call ended webhook body."""

    session_id: str
    call_duration_seconds: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices(
            "callDurationSeconds", "callDuration", "call_duration_seconds"
        ),
    )
    hangup_reason: Optional[str] = None


class CallStartedResponse(CamelModel):
    success: bool = True
    session_id: str
    rendered_payload: Dict[str, Any]


class DigitPressedResponse(CamelModel):
    success: bool = True
    session_id: str
    action: Optional[str] = None
    next_menu_id: Optional[str] = None
    rendered_payload: Dict[str, Any]


class RecordingCompletedResponse(CamelModel):
    success: bool = True
    session_id: str
    rendered_payload: Dict[str, Any]


class CallEndedResponse(CamelModel):
    success: bool = True
    session_id: str
    summary: Optional[CallSummary] = None


class SessionStatusResponse(CamelModel):
    success: bool = True
    session_id: str
    session: CallSession


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/call-started", response_model=CallStartedResponse)
async def handle_call_started(
    request: Request,
    body: CallStartedRequest,
    controller: SessionController = Depends(get_session_controller),
    renderer: ResponseRenderer = Depends(get_renderer),
):
    """Handle a new inbound call."""
    logger.info(
        f"[CALL STARTED] Received webhook - Hint: {body.session_hint}, "
        f"Caller: {body.caller_id}, Client: {_client(request)}"
    )
    try:
        reply = await controller.call_started(
            caller_id=body.caller_id,
            session_hint=body.session_hint,
            language=body.language,
        )
        return CallStartedResponse(
            success=reply.success,
            session_id=reply.session_id,
            rendered_payload=reply.payload,
        )
    except Exception as e:
        logger.error(
            f"[CALL STARTED] Error processing call - Hint: {body.session_hint}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        return CallStartedResponse(
            success=False,
            session_id=body.session_hint or "",
            rendered_payload=renderer.message("error", body.language),
        )


@router.post("/digit-pressed", response_model=DigitPressedResponse)
async def handle_digit_pressed(
    request: Request,
    body: DigitPressedRequest,
    controller: SessionController = Depends(get_session_controller),
    renderer: ResponseRenderer = Depends(get_renderer),
):
    """Handle a keypress from the caller."""
    logger.info(
        f"[DIGIT PRESSED] Received webhook - SessionId: {body.session_id}, "
        f"Digit: {body.digit}, Client: {_client(request)}"
    )
    try:
        reply = await controller.digit_pressed(body.session_id, body.digit)
        return DigitPressedResponse(
            success=reply.success,
            session_id=reply.session_id,
            action=reply.action,
            next_menu_id=reply.next_menu_id,
            rendered_payload=reply.payload,
        )
    except Exception as e:
        logger.error(
            f"[DIGIT PRESSED] Error processing keypress - SessionId: {body.session_id}, "
            f"Digit: {body.digit}, Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        return DigitPressedResponse(
            success=False,
            session_id=body.session_id,
            action="error",
            rendered_payload=renderer.message("error", None),
        )


@router.post("/recording-completed", response_model=RecordingCompletedResponse)
async def handle_recording_completed(
    request: Request,
    body: RecordingCompletedRequest,
    controller: SessionController = Depends(get_session_controller),
    renderer: ResponseRenderer = Depends(get_renderer),
):
    """Handle a finished voice recording."""
    logger.info(
        f"[RECORDING COMPLETED] Received webhook - SessionId: {body.session_id}, "
        f"Duration: {body.duration_seconds}, Client: {_client(request)}"
    )
    try:
        reply = await controller.recording_completed(
            body.session_id, body.recording_url, body.duration_seconds
        )
        return RecordingCompletedResponse(
            success=reply.success,
            session_id=reply.session_id,
            rendered_payload=reply.payload,
        )
    except Exception as e:
        logger.error(
            f"[RECORDING COMPLETED] Error storing recording - SessionId: {body.session_id}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        return RecordingCompletedResponse(
            success=False,
            session_id=body.session_id,
            rendered_payload=renderer.message("error", None),
        )


@router.post("/call-ended", response_model=CallEndedResponse)
async def handle_call_ended(
    request: Request,
    body: CallEndedRequest,
    controller: SessionController = Depends(get_session_controller),
):
    """Handle the end of a call."""
    logger.info(
        f"[CALL ENDED] Received webhook - SessionId: {body.session_id}, "
        f"Duration: {body.call_duration_seconds}s, Reason: {body.hangup_reason}, "
        f"Client: {_client(request)}"
    )
    try:
        reply = await controller.call_ended(
            body.session_id, body.call_duration_seconds, body.hangup_reason
        )
        return CallEndedResponse(session_id=reply.session_id, summary=reply.summary)
    except Exception as e:
        logger.error(
            f"[CALL ENDED] Error ending session - SessionId: {body.session_id}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        # Still acknowledge so the provider does not retry
        return CallEndedResponse(session_id=body.session_id)


@router.get("/status/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(
    session_id: str,
    controller: SessionController = Depends(get_session_controller),
):
    """Current state of a live session, for monitoring."""
    try:
        session = await controller.get_session_status(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionStatusResponse(session_id=session_id, session=session)


@router.get("/stats")
async def get_session_stats(
    controller: SessionController = Depends(get_session_controller),
):
    """Counts of live sessions by language, menu and status."""
    return await controller.session_stats()
