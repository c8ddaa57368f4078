from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from finanalyzer.api.v1.routes_analyze import router as analyze_router
from finanalyzer.api.v1.routes_health import router as health_router
from finanalyzer.core.config import get_settings
from finanalyzer.core.logging import RequestIdMiddleware, configure_logging, get_logger
from finanalyzer.observability.metrics import MetricsMiddleware
from finanalyzer.observability.metrics import router as metrics_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = get_logger(__name__)
    logger.info(
        "service_startup",
        extra={
            "env": settings.ENV,
            "log_level": settings.LOG_LEVEL,
            "backends": list(settings.LLM_BACKENDS),
            "mode": "live" if settings.has_usable_api_key else "simulation",
        },
    )
    try:
        yield
    finally:
        logger.info("service_shutdown")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(MetricsMiddleware)

app.include_router(health_router)
app.include_router(analyze_router)
app.include_router(metrics_router)
