"""Domain-level errors for the analysis pipeline.

Only ``InvalidInputError`` and ``ExhaustionError`` ever reach the caller; the
per-backend failures are recorded by the orchestrator and the next backend is
tried. Mapping to HTTP is handled in ``finanalyzer.observability.errors``.
"""

from __future__ import annotations

from typing import Sequence


class AnalyzerError(Exception):
    """Base error for analysis pipeline failures."""


class InvalidInputError(AnalyzerError):
    """Raised when the document text is empty or malformed, before any network call."""


class BackendFailure(AnalyzerError):
    """A single backend could not produce a usable analysis."""

    kind = "backend_failure"

    def __init__(self, message: str, *, backend: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.backend = backend

    def __str__(self) -> str:
        if self.backend:
            return f"{self.backend}: {self.kind}: {self.message}"
        return f"{self.kind}: {self.message}"


class TransportFailure(BackendFailure):
    """No response was received (connection refused, DNS, timeout)."""

    kind = "transport_failure"


class HttpFailure(BackendFailure):
    """The backend answered with a non-2xx status."""

    kind = "http_failure"

    def __init__(self, message: str, *, backend: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, backend=backend)
        self.status_code = status_code


class BackendError(BackendFailure):
    """2xx response whose envelope reports a provider/model error or carries no content."""

    kind = "backend_error"


class ParseFailure(BackendFailure):
    """Backend content could not be parsed into the target schema, even after repair."""

    kind = "parse_failure"

    def __init__(
        self,
        message: str,
        *,
        backend: str | None = None,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message, backend=backend)
        self.original = original


class ExhaustionError(AnalyzerError):
    """Every configured backend failed or returned unparseable output."""

    def __init__(self, failures: Sequence[BackendFailure]) -> None:
        self.failures: list[BackendFailure] = list(failures)
        if self.failures:
            summary = "; ".join(str(f) for f in self.failures)
        else:
            summary = "no backends configured"
        super().__init__(f"All backends failed: {summary}")
