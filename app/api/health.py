"""Health check endpoint."""
import logging
from fastapi import APIRouter, Depends, Request

from app.core.dependencies import get_menu_registry, get_renderer
from app.services.menu.registry import MenuRegistry
from app.services.rendering.renderer import ResponseRenderer

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(
    request: Request,
    registry: MenuRegistry = Depends(get_menu_registry),
    renderer: ResponseRenderer = Depends(get_renderer),
):
    """Liveness plus the loaded menu count and backend."""
    logger.debug(
        f"[HEALTH] Health check requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    return {
        "status": "healthy",
        "menus": len(registry),
        "backend": str(renderer.backend_kind),
    }
