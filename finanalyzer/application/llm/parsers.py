"""Normalization of raw model content into typed records.

Models often wrap JSON in a code fence or surround it with prose despite
instructions. Cleaning is one fence strip plus a single first-``{`` /
last-``}`` slice; bracket depth is not tracked.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterator, TypeVar

from pydantic import BaseModel, ValidationError

from finanalyzer.domain.errors import ParseFailure
from finanalyzer.domain.pipeline.models import FinancialDocumentAnalysis

ModelT = TypeVar("ModelT", bound=BaseModel)

_LEADING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*")
_TRAILING_FENCE = re.compile(r"```$")


def strip_code_fence(raw: str) -> str:
    text = raw.strip()
    text = _LEADING_FENCE.sub("", text, count=1).strip()
    text = _TRAILING_FENCE.sub("", text, count=1).strip()
    return text


def extract_json_object(text: str) -> str | None:
    """Inclusive slice from the first ``{`` to the last ``}``, or None."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _candidates(raw: str) -> Iterator[str]:
    cleaned = strip_code_fence(raw)
    yield cleaned
    extracted = extract_json_object(cleaned)
    if extracted is not None and extracted != cleaned:
        yield extracted


def normalize(raw: str, model: type[ModelT] = FinancialDocumentAnalysis) -> ModelT:  # type: ignore[assignment]
    """Parse backend content into ``model``, repairing wrapped JSON once.

    Raises ParseFailure carrying the first (strict) parse error when neither
    the cleaned text nor the extracted object validates.
    """
    first_error: ValidationError | None = None
    for candidate in _candidates(raw or ""):
        try:
            return model.model_validate_json(candidate)
        except ValidationError as exc:
            if first_error is None:
                first_error = exc
    reason = _describe(first_error) if first_error else "empty response"
    raise ParseFailure(reason, original=first_error)


def parse_json_object(raw: str) -> dict[str, Any]:
    """Same cleaning and repair as ``normalize`` for schema-less JSON objects."""
    first_error: Exception | None = None
    for candidate in _candidates(raw or ""):
        try:
            obj = json.loads(candidate)
        except json.JSONDecodeError as exc:
            if first_error is None:
                first_error = exc
            continue
        if isinstance(obj, dict):
            return obj
        if first_error is None:
            first_error = ValueError(f"expected a JSON object, got {type(obj).__name__}")
    reason = str(first_error) if first_error else "empty response"
    raise ParseFailure(reason, original=first_error)


def _describe(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    head = errors[0]
    loc = ".".join(str(p) for p in head.get("loc", ())) or "<root>"
    more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
    return f"{loc}: {head.get('msg', 'invalid')}{more}"
