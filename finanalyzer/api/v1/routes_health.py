from fastapi import APIRouter, Request

from finanalyzer.core.config import get_settings
from finanalyzer.core.logging import get_logger

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    """Liveness check: process is up."""
    settings = get_settings()
    logger = get_logger(__name__)
    logger.info("health", extra={"path": str(request.url.path)})
    return {"status": "ok", "service": settings.APP_NAME}


@router.get("/ready")
async def ready(request: Request):
    """Readiness check; reports whether real backends or the simulation will serve requests."""
    settings = get_settings()
    logger = get_logger(__name__)
    logger.info("ready", extra={"path": str(request.url.path)})
    mode = "live" if settings.has_usable_api_key else "simulation"
    return {"status": "ok", "service": settings.APP_NAME, "mode": mode}
