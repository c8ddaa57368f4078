"""Analyze-document use-case.

The caller always gets an analysis: the first backend that answers with a
parseable record, or the pre-authored simulation when every backend failed or
no usable API key is configured. Only empty input is rejected.
"""

from __future__ import annotations

import time
from typing import Literal

from pydantic import BaseModel, Field

from finanalyzer.application.llm.orchestrator import FallbackOrchestrator, FallbackResult
from finanalyzer.core.logging import get_logger
from finanalyzer.domain.errors import BackendFailure, ExhaustionError
from finanalyzer.domain.pipeline.models import AnalysisRequest, FinancialDocumentAnalysis
from finanalyzer.domain.pipeline.simulation import simulate_text
from finanalyzer.observability.metrics import record_analysis, record_backend_attempt

logger = get_logger(__name__)

AnalysisSource = Literal["model", "simulation"]


class AnalysisReport(BaseModel):
    analysis: FinancialDocumentAnalysis
    source: AnalysisSource
    backend: str | None = None
    failures: list[str] = Field(default_factory=list)


def _record_failures(failures: list[BackendFailure]) -> list[str]:
    for failure in failures:
        record_backend_attempt(failure.backend or "unknown", failure.kind)
    return [str(f) for f in failures]


def _from_result(result: FallbackResult[FinancialDocumentAnalysis], started: float) -> AnalysisReport:
    failures = _record_failures(result.failures)
    record_backend_attempt(result.backend.identifier, "success")
    record_analysis("model", time.perf_counter() - started)
    logger.info(
        "analysis_completed",
        extra={"backend": result.backend.identifier, "document_type": result.value.document_type},
    )
    return AnalysisReport(
        analysis=result.value,
        source="model",
        backend=result.backend.identifier,
        failures=failures,
    )


def _simulated(request: AnalysisRequest, failures: list[BackendFailure], started: float) -> AnalysisReport:
    reasons = _record_failures(failures)
    analysis = simulate_text(request.text)
    record_analysis("simulation", time.perf_counter() - started)
    logger.warning(
        "simulation_used",
        extra={"hint": request.hint.value if request.hint else None, "failed_backends": len(failures)},
    )
    return AnalysisReport(analysis=analysis, source="simulation", failures=reasons)


def analyze_document(text: str, *, orchestrator: FallbackOrchestrator | None) -> AnalysisReport:
    """Run the fallback chain for one document; raises InvalidInputError on empty text."""
    started = time.perf_counter()
    request = AnalysisRequest.from_text(text)
    if orchestrator is None:
        return _simulated(request, [], started)
    try:
        result = orchestrator.analyze_detailed(request.text)
    except ExhaustionError as exc:
        return _simulated(request, exc.failures, started)
    return _from_result(result, started)


async def aanalyze_document(text: str, *, orchestrator: FallbackOrchestrator | None) -> AnalysisReport:
    started = time.perf_counter()
    request = AnalysisRequest.from_text(text)
    if orchestrator is None:
        return _simulated(request, [], started)
    try:
        result = await orchestrator.aanalyze_detailed(request.text)
    except ExhaustionError as exc:
        return _simulated(request, exc.failures, started)
    return _from_result(result, started)
