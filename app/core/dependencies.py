"""FastAPI dependencies.

Collaborators are process-wide singletons built on first use. The registry
and renderer are also built in the application lifespan so that a broken
menu catalogue or unsupported backend stops the service at startup.
"""
from functools import lru_cache

from app.core.config import settings
from app.core.errors import ConfigError
from app.db.database import AsyncSessionLocal
from app.services.call_session.controller import SessionController
from app.services.call_session.redis_store import RedisSessionStore
from app.services.call_session.store import InMemorySessionStore, SessionStore
from app.services.feeds.base import TextFeed
from app.services.feeds.http_feed import HttpTextFeed
from app.services.feeds.memory import InMemoryTextFeed
from app.services.feeds.redis_feed import RedisTextFeed
from app.services.menu.registry import MenuRegistry
from app.services.menu.yaml_menu import YamlMenuProvider
from app.services.persistence.base import CallLog, ReportStore
from app.services.persistence.call_logs import DatabaseCallLog
from app.services.persistence.reports import DatabaseReportStore
from app.services.rendering.renderer import ResponseRenderer


@lru_cache
def get_menu_registry() -> MenuRegistry:
    """Get the compiled menu registry."""
    return MenuRegistry.from_provider(YamlMenuProvider(menu_file=settings.menu_file))


@lru_cache
def get_renderer() -> ResponseRenderer:
    """Get the renderer for the configured backend."""
    return ResponseRenderer(
        backend=settings.ivr_backend,
        default_language=settings.default_language,
        supported_languages=settings.supported_languages,
        service_name=settings.service_name,
    )


@lru_cache
def get_call_log() -> CallLog:
    """Get the call log."""
    return DatabaseCallLog(AsyncSessionLocal)


@lru_cache
def get_report_store() -> ReportStore:
    """Get the report store."""
    return DatabaseReportStore(AsyncSessionLocal)


@lru_cache
def get_session_store() -> SessionStore:
    """Get the session store selected by settings."""
    if settings.session_store == "redis":
        return RedisSessionStore(
            call_log=get_call_log(),
            redis_url=settings.redis_url,
            ttl_seconds=settings.session_timeout_seconds,
            key_prefix=settings.session_key_prefix,
        )
    if settings.session_store == "memory":
        return InMemorySessionStore(
            call_log=get_call_log(),
            ttl_seconds=settings.session_timeout_seconds,
        )
    raise ConfigError(f"Unknown session store: '{settings.session_store}'")


@lru_cache
def get_text_feed() -> TextFeed:
    """Get the information feed selected by settings."""
    if settings.feed_source == "http":
        if not settings.feed_base_url:
            raise ConfigError("FEED_BASE_URL is required when FEED_SOURCE=http")
        return HttpTextFeed(
            base_url=settings.feed_base_url,
            timeout_seconds=settings.feed_timeout_seconds,
            cache_ttl_seconds=settings.feed_cache_ttl_seconds,
            max_items=settings.feed_max_items,
        )
    if settings.feed_source == "redis":
        return RedisTextFeed(redis_url=settings.redis_url, max_items=settings.feed_max_items)
    if settings.feed_source == "memory":
        return InMemoryTextFeed(max_items=settings.feed_max_items)
    raise ConfigError(f"Unknown feed source: '{settings.feed_source}'")


@lru_cache
def get_session_controller() -> SessionController:
    """Get the session controller."""
    return SessionController(
        registry=get_menu_registry(),
        store=get_session_store(),
        renderer=get_renderer(),
        text_feed=get_text_feed(),
        report_store=get_report_store(),
        store_timeout_seconds=settings.store_timeout_seconds,
        max_conflict_retries=settings.max_conflict_retries,
        enforce_max_retries=settings.enforce_max_retries,
        recording_max_duration=settings.recording_max_duration,
    )
