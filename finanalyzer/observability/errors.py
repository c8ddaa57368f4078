from __future__ import annotations

from typing import Any

from fastapi import HTTPException

ERROR_REGISTRY: dict[str, dict[str, Any]] = {
    "INVALID_INPUT": {
        "status": 400,
        "message": "Document text must be a non-empty string",
    },
    "BACKENDS_EXHAUSTED": {
        "status": 502,
        "message": "All analysis backends failed",
    },
    "BACKENDS_UNAVAILABLE": {
        "status": 503,
        "message": "No usable LLM backend configured",
    },
    "INTERNAL_PROCESSING_ERROR": {
        "status": 500,
        "message": "Internal processing error",
    },
}


def to_http_error(code: str, *, message: str | None = None, status: int | None = None) -> HTTPException:
    meta = ERROR_REGISTRY.get(code, {"status": 500, "message": code})
    status_code = int(status or meta.get("status", 500))
    detail_msg = message or str(meta.get("message", code))
    return HTTPException(status_code=status_code, detail={"code": code, "message": detail_msg})
