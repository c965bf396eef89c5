"""Call history API endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.services.call_session.models import CallSummary
from app.services.persistence.call_logs import CallLogPersistenceService, entry_to_summary

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/calls/history", response_model=List[CallSummary])
async def get_call_history(
    request: Request,
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
):
    """Get the most recent completed calls."""
    logger.info(
        f"[CALL HISTORY] Request received - limit: {limit}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    try:
        entries = await CallLogPersistenceService(db).list_recent(limit)
        logger.info(f"[CALL HISTORY] Found {len(entries)} calls in database")
        return [entry_to_summary(entry) for entry in entries]

    except Exception as e:
        logger.error(
            f"[CALL HISTORY] Error fetching call history - "
            f"limit: {limit}, Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail=f"Error fetching call history: {str(e)}")


@router.get("/api/calls/{session_id}", response_model=List[CallSummary])
async def get_call(
    session_id: str,
    db: AsyncSession = Depends(get_db),
):
    """Get archived summaries for one session id."""
    entries = await CallLogPersistenceService(db).get_by_session(session_id)
    if not entries:
        raise HTTPException(status_code=404, detail="Call not found")
    return [entry_to_summary(entry) for entry in entries]
