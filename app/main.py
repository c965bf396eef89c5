"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import settings
from app.core.dependencies import (
    get_menu_registry,
    get_renderer,
    get_session_controller,
)
from app.core.logging import setup_logging
from app.db.database import init_db
from app.api import calls, health
from app.api.webhooks import ivr

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: a bad menu catalogue or backend must stop the service here
    setup_logging()
    registry = get_menu_registry()
    renderer = get_renderer()
    controller = get_session_controller()
    await init_db()
    logger.info(
        f"[STARTUP] {settings.service_name} IVR ready - {len(registry)} menus, "
        f"backend: {renderer.backend_kind}, store: {settings.session_store}"
    )
    yield
    # Shutdown
    await controller.store.close()
    await controller.text_feed.close()


app = FastAPI(
    title="Village Voice Hub IVR",
    description="Interactive voice response engine for community reporting and information",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(ivr.router, prefix="/ivr", tags=["ivr"])
app.include_router(calls.router, tags=["calls"])


@app.get("/")
async def root():
    """Service information."""
    return {
        "message": f"{settings.service_name} IVR API",
        "version": "0.1.0",
    }
