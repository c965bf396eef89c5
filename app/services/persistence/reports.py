"""Voice report persistence service."""
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models import VoiceReport
from app.services.persistence.base import ReportStore


def new_report_id() -> str:
    """Generate a report identifier."""
    return f"RPT_{uuid.uuid4().hex}"


class ReportPersistenceService:
    """Service for persisting reports submitted by phone."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_report(
        self,
        session_id: Optional[str] = None,
        caller_id: Optional[str] = None,
        category: Optional[str] = None,
        recording_url: Optional[str] = None,
    ) -> VoiceReport:
        """Create a pending report."""
        report = VoiceReport(
            id=new_report_id(),
            session_id=session_id,
            caller_id=caller_id,
            category=category,
            recording_url=recording_url,
            status="pending",
        )
        self.db.add(report)
        await self.db.commit()
        await self.db.refresh(report)
        return report

    async def get_report(self, report_id: str) -> Optional[VoiceReport]:
        """Get report by id."""
        result = await self.db.execute(select(VoiceReport).where(VoiceReport.id == report_id))
        return result.scalar_one_or_none()


class DatabaseReportStore(ReportStore):
    """ReportStore that records a pending report row per submission."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def create_id(
        self,
        session_id: Optional[str] = None,
        caller_id: Optional[str] = None,
        category: Optional[str] = None,
        recording_url: Optional[str] = None,
    ) -> str:
        async with self.session_factory() as db:
            report = await ReportPersistenceService(db).create_report(
                session_id=session_id,
                caller_id=caller_id,
                category=category,
                recording_url=recording_url,
            )
        return report.id
