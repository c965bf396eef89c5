"""Unit tests for the IVR webhook endpoints."""
import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.db.models import Base
from app.services.call_session.models import CallSummary
from app.services.persistence.call_logs import DatabaseCallLog


class TestIVRWebhooks:
    """Test webhook request and response shapes."""

    def test_call_started(self, test_client):
        response = test_client.post(
            "/ivr/call-started",
            json={"callerId": "+9771", "callId": "CA1", "language": "ne"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["sessionId"] == "CA1"
        assert data["renderedPayload"]["action"] == "gather"
        assert data["renderedPayload"]["language"] == "ne"

    def test_digit_pressed(self, test_client):
        test_client.post("/ivr/call-started", json={"callerId": "+9771", "sessionHint": "CA1"})

        response = test_client.post("/ivr/digit-pressed", json={"sessionId": "CA1", "digit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["nextMenuId"] == "info_menu"
        assert data["renderedPayload"]["action"] == "gather"

    def test_invalid_digit(self, test_client):
        test_client.post("/ivr/call-started", json={"callerId": "+9771", "sessionHint": "CA1"})

        response = test_client.post("/ivr/digit-pressed", json={"sessionId": "CA1", "digit": "9"})

        data = response.json()
        assert data["action"] == "invalid_input"
        assert data["nextMenuId"] == "main_menu"

    def test_unknown_session_still_200(self, test_client):
        """The provider always gets a speakable answer."""
        response = test_client.post("/ivr/digit-pressed", json={"sessionId": "nope", "digit": "1"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["renderedPayload"]["text"] == "An error occurred. Please try again."

    def test_recording_and_end(self, test_client):
        test_client.post("/ivr/call-started", json={"callerId": "+9771", "sessionHint": "CA1"})
        test_client.post("/ivr/digit-pressed", json={"sessionId": "CA1", "digit": "1"})
        test_client.post("/ivr/digit-pressed", json={"sessionId": "CA1", "digit": "1"})

        response = test_client.post(
            "/ivr/recording-completed",
            json={"sessionId": "CA1", "recordingUrl": "https://rec.example/1.wav", "duration": 30},
        )
        assert response.status_code == 200
        assert response.json()["renderedPayload"]["action"] == "gather"

        response = test_client.post(
            "/ivr/call-ended",
            json={"sessionId": "CA1", "callDuration": 60, "hangupReason": "completed"},
        )
        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["sessionId"] == "CA1"
        assert summary["recordingUrl"] == "https://rec.example/1.wav"
        assert summary["callDurationSeconds"] == 60
        assert len(summary["selections"]) == 2

    def test_call_ended_twice(self, test_client):
        test_client.post("/ivr/call-started", json={"callerId": "+9771", "sessionHint": "CA1"})
        test_client.post("/ivr/call-ended", json={"sessionId": "CA1"})

        response = test_client.post("/ivr/call-ended", json={"sessionId": "CA1"})

        assert response.status_code == 200
        assert response.json()["summary"] is None

    def test_status(self, test_client):
        test_client.post("/ivr/call-started", json={"callerId": "+9771", "sessionHint": "CA1"})

        response = test_client.get("/ivr/status/CA1")

        assert response.status_code == 200
        session = response.json()["session"]
        assert session["currentMenuId"] == "main_menu"
        assert session["callerId"] == "+9771"

    def test_status_unknown(self, test_client):
        response = test_client.get("/ivr/status/nope")
        assert response.status_code == 404

    def test_stats(self, test_client):
        test_client.post("/ivr/call-started", json={"callerId": "+9771", "sessionHint": "CA1"})

        response = test_client.get("/ivr/stats")

        assert response.status_code == 200
        assert response.json()["total_active_sessions"] == 1

    def test_malformed_body(self, test_client):
        response = test_client.post("/ivr/digit-pressed", json={"digit": "1"})
        assert response.status_code == 422


class TestCallHistory:
    """Test the call history endpoints."""

    @pytest.fixture
    def seeded(self, history_db_url):
        """Archive two calls into the history database."""
        ended = datetime(2026, 1, 5, 10, 0, 0)
        summaries = [
            CallSummary(
                session_id=f"CA{index}",
                caller_id="+9771",
                started_at=ended - timedelta(minutes=5),
                ended_at=ended + timedelta(minutes=index),
                duration_seconds=300,
            )
            for index in range(2)
        ]

        async def _seed():
            engine = create_async_engine(history_db_url, poolclass=NullPool)
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            call_log = DatabaseCallLog(async_sessionmaker(engine, expire_on_commit=False))
            for summary in summaries:
                await call_log.append(summary)
            await engine.dispose()

        asyncio.run(_seed())
        return summaries

    def test_history(self, history_client, seeded):
        response = history_client.get("/api/calls/history", params={"limit": 10})

        assert response.status_code == 200
        data = response.json()
        assert [call["sessionId"] for call in data] == ["CA1", "CA0"]

    def test_call_by_session(self, history_client, seeded):
        response = history_client.get("/api/calls/CA0")

        assert response.status_code == 200
        assert response.json()[0]["durationSeconds"] == 300

    def test_call_not_found(self, history_client, seeded):
        response = history_client.get("/api/calls/nope")
        assert response.status_code == 404

    def test_history_limit_validated(self, history_client):
        response = history_client.get("/api/calls/history", params={"limit": 0})
        assert response.status_code == 422


class TestHealth:
    """Test service endpoints."""

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["menus"] == 12

    def test_root(self, test_client):
        response = test_client.get("/")
        assert response.status_code == 200
        assert "version" in response.json()
