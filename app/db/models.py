"""Database models."""
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CallLogEntry(Base):
    """Archived summary of one completed call. Rows are never updated."""

    __tablename__ = "call_logs"
    __table_args__ = (
        UniqueConstraint("session_id", "ended_at", name="uq_call_logs_session_ended"),
    )

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, index=True, nullable=False)
    caller_id = Column(String, index=True, nullable=False)
    language = Column(String, default="en", nullable=False)
    started_at = Column(DateTime, nullable=False)
    ended_at = Column(DateTime, nullable=False)
    duration_seconds = Column(Integer, default=0, nullable=False)
    call_duration_seconds = Column(Integer, nullable=True)  # As reported by the provider
    hangup_reason = Column(String, nullable=True)
    final_menu_id = Column(String, nullable=True)
    selections = Column(JSON, nullable=False, default=list)  # [{menu_id, digit, timestamp}]
    category = Column(String, nullable=True)
    recording_url = Column(String, nullable=True)
    submitted_report_id = Column(String, nullable=True)


class VoiceReport(Base):
    """Report submitted over the phone, awaiting moderation."""

    __tablename__ = "voice_reports"

    id = Column(String, primary_key=True)  # RPT_<hex>
    session_id = Column(String, index=True, nullable=True)
    caller_id = Column(String, nullable=True)
    category = Column(String, nullable=True)
    recording_url = Column(String, nullable=True)
    status = Column(String, default="pending", nullable=False)  # pending, approved, rejected
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
