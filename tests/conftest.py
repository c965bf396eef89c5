"""Shared test fixtures and configuration."""
import asyncio
import pytest
import os
from typing import List, Optional
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

# Set test environment variables before importing app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IVR_BACKEND", "twilio")
os.environ.setdefault("SESSION_STORE", "memory")
os.environ.setdefault("FEED_SOURCE", "memory")

from app.main import app
from app.db.database import get_db
from app.db.models import Base
from app.core.dependencies import get_renderer, get_session_controller
from app.services.call_session.controller import SessionController
from app.services.call_session.models import CallSummary
from app.services.call_session.store import InMemorySessionStore
from app.services.feeds.memory import InMemoryTextFeed
from app.services.menu.registry import MenuRegistry
from app.services.menu.yaml_menu import YamlMenuProvider
from app.services.persistence.base import CallLog, ReportStore
from app.services.rendering.renderer import ResponseRenderer


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class RecordingCallLog(CallLog):
    """Call log that keeps summaries in a list."""

    def __init__(self):
        self.summaries: List[CallSummary] = []

    async def append(self, summary: CallSummary) -> None:
        if any(
            s.session_id == summary.session_id and s.ended_at == summary.ended_at
            for s in self.summaries
        ):
            return
        self.summaries.append(summary)


class FlakyCallLog(RecordingCallLog):
    """Call log that can be made slow or broken."""

    def __init__(self):
        super().__init__()
        self.delay = 0.0
        self.fail = False

    async def append(self, summary: CallSummary) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("call log unavailable")
        await super().append(summary)


class CountingReportStore(ReportStore):
    """Report store handing out sequential ids."""

    def __init__(self):
        self.reports = []

    async def create_id(
        self,
        session_id: Optional[str] = None,
        caller_id: Optional[str] = None,
        category: Optional[str] = None,
        recording_url: Optional[str] = None,
    ) -> str:
        report_id = f"RPT_{len(self.reports) + 1:04d}"
        self.reports.append(
            {
                "id": report_id,
                "session_id": session_id,
                "caller_id": caller_id,
                "category": category,
                "recording_url": recording_url,
            }
        )
        return report_id


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_db_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    """Create test database session."""
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def registry():
    """Registry compiled from the bundled menu catalogue."""
    return MenuRegistry.from_provider(YamlMenuProvider())


@pytest.fixture
def renderer():
    """Twilio renderer with English and Nepali."""
    return ResponseRenderer(
        backend="twilio",
        default_language="en",
        supported_languages=["en", "ne"],
        service_name="Test Hub",
    )


@pytest.fixture
def call_log():
    return RecordingCallLog()


@pytest.fixture
def flaky_call_log():
    return FlakyCallLog()


@pytest.fixture
def report_store():
    return CountingReportStore()


@pytest.fixture
def text_feed():
    return InMemoryTextFeed()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_store(call_log, clock):
    """In-memory session store with a one hour TTL and a fake clock."""
    return InMemorySessionStore(call_log=call_log, ttl_seconds=3600, clock=clock)


@pytest.fixture
def controller(registry, session_store, renderer, text_feed, report_store):
    """Session controller wired to in-memory collaborators."""
    return SessionController(
        registry=registry,
        store=session_store,
        renderer=renderer,
        text_feed=text_feed,
        report_store=report_store,
        store_timeout_seconds=2.0,
        max_conflict_retries=5,
    )


@pytest.fixture
def test_client(controller, renderer):
    """Create FastAPI test client with overrides."""
    app.dependency_overrides[get_session_controller] = lambda: controller
    app.dependency_overrides[get_renderer] = lambda: renderer

    client = TestClient(app)

    yield client

    # Clear overrides
    app.dependency_overrides.clear()


@pytest.fixture
def history_db_url(tmp_path):
    """File-backed SQLite URL, usable from more than one event loop."""
    return f"sqlite+aiosqlite:///{tmp_path / 'calls.db'}"


@pytest.fixture
def history_client(history_db_url):
    """Test client whose database dependency opens the history database."""
    async def _override_get_db():
        engine = create_async_engine(history_db_url, poolclass=NullPool)
        try:
            async with AsyncSession(engine, expire_on_commit=False) as session:
                yield session
        finally:
            await engine.dispose()

    app.dependency_overrides[get_db] = _override_get_db

    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test"
    )
