from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from finanalyzer.application.llm.orchestrator import FallbackOrchestrator
from finanalyzer.application.llm.structured_analyzer import StructuredAnalyzer
from finanalyzer.application.services.factories import build_orchestrator


@lru_cache(maxsize=1)
def get_orchestrator() -> FallbackOrchestrator | None:
    # Backends and credentials are read-only, so one instance serves all requests
    return build_orchestrator()


def get_structured_analyzer(
    orchestrator: FallbackOrchestrator | None = Depends(get_orchestrator),
) -> StructuredAnalyzer | None:
    return StructuredAnalyzer(orchestrator) if orchestrator is not None else None
