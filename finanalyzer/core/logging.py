from __future__ import annotations

import contextvars
import logging
import sys
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | request_id=%(request_id)s | %(message)s"

# ``extra`` keys attached by the analysis pipeline, rendered in this order
PIPELINE_FIELDS: tuple[str, ...] = (
    "backend",
    "kind",
    "reason",
    "attempts",
    "failed_before",
    "failed_backends",
    "document_type",
    "hint",
    "mode",
)

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="-")


def current_request_id() -> str:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.request_id = current_request_id()
        return True


class PipelineFormatter(logging.Formatter):
    """Appends the pipeline's ``extra`` fields as ``key=value`` pairs.

    ``backend_attempt_failed`` then reads as one greppable line, e.g.
    ``... | backend_attempt_failed backend=google/gemini kind=http_failure reason=HTTP 429``.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [
            f"{name}={getattr(record, name)}"
            for name in PIPELINE_FIELDS
            if getattr(record, name, None) is not None
        ]
        return f"{line} {' '.join(pairs)}" if pairs else line


def configure_logging(level: str = "INFO") -> None:
    """Route all records to stdout with request id and pipeline fields.

    Replaces existing root handlers, so repeated calls do not duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(PipelineFormatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tags each request with ``X-Request-ID`` (client-supplied or generated) for log correlation."""

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = rid
        token = _request_id.set(rid)
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)
        response.headers["X-Request-ID"] = rid
        return response
