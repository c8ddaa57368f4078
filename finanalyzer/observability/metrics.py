from __future__ import annotations

import time
from typing import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    labelnames=("endpoint", "method", "status"),
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=("endpoint", "method"),
    buckets=(0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0, 10.0),
)
backend_attempts_total = Counter(
    "llm_backend_attempts_total",
    "Chat-completion backend attempts by outcome",
    labelnames=("backend", "outcome"),
)
analyses_total = Counter(
    "document_analyses_total",
    "Document analyses served, by source",
    labelnames=("source",),
)
analysis_duration_seconds = Histogram(
    "document_analysis_duration_seconds",
    "End-to-end analysis duration in seconds, including fallbacks",
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0),
)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            endpoint = _endpoint_label(request)
            http_requests_total.labels(endpoint=endpoint, method=request.method, status="500").inc()
            http_request_duration_seconds.labels(endpoint=endpoint, method=request.method).observe(
                time.perf_counter() - start
            )
            raise
        endpoint = _endpoint_label(request)
        status = getattr(response, "status_code", 200)
        http_requests_total.labels(endpoint=endpoint, method=request.method, status=str(status)).inc()
        http_request_duration_seconds.labels(endpoint=endpoint, method=request.method).observe(
            time.perf_counter() - start
        )
        return response


def _endpoint_label(request: Request) -> str:
    # Prefer the route template (e.g. /v1/analyze) over the raw path
    route = request.scope.get("route")
    path = getattr(route, "path", None) or getattr(route, "path_format", None)
    if isinstance(path, str) and path:
        return path
    return request.url.path


def record_backend_attempt(backend: str, outcome: str) -> None:
    backend_attempts_total.labels(backend=backend, outcome=outcome).inc()


def record_analysis(source: str, seconds: float) -> None:
    analyses_total.labels(source=source).inc()
    analysis_duration_seconds.observe(seconds)


router = APIRouter(tags=["metrics"])


@router.get("/metrics")
async def metrics_endpoint():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
