"""Ordered fallback across chat-completion backends.

Backends are tried strictly one after another in the configured order. The
first response that parses wins; every failure before it is recorded and only
total exhaustion reaches the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Sequence, TypeVar

from finanalyzer.application.llm.parsers import normalize
from finanalyzer.application.llm.prompts import build_analysis_prompt
from finanalyzer.core.logging import get_logger
from finanalyzer.domain.errors import BackendFailure, ExhaustionError, ParseFailure
from finanalyzer.domain.pipeline.enhancer import enhance
from finanalyzer.domain.pipeline.models import (
    AnalysisRequest,
    BackendDescriptor,
    FinancialDocumentAnalysis,
    Prompt,
    RawModelResponse,
)
from finanalyzer.domain.ports.llm_port import ChatCompletionPort

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 30.0

logger = get_logger(__name__)


@dataclass(frozen=True)
class FallbackResult(Generic[T]):
    value: T
    backend: BackendDescriptor
    failures: list[BackendFailure] = field(default_factory=list)


def parse_analysis(content: str) -> FinancialDocumentAnalysis:
    return enhance(normalize(content))


class FallbackOrchestrator:
    def __init__(
        self,
        invoker: ChatCompletionPort,
        backends: Sequence[BackendDescriptor],
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._invoker = invoker
        self._backends: tuple[BackendDescriptor, ...] = tuple(sorted(backends, key=lambda b: b.priority))
        self._timeout = timeout_seconds

    @property
    def backends(self) -> tuple[BackendDescriptor, ...]:
        return self._backends

    def _accept(
        self,
        backend: BackendDescriptor,
        response: RawModelResponse,
        parse: Callable[[str], T],
        failures: list[BackendFailure],
    ) -> FallbackResult[T] | None:
        if not response.ok:
            failure = response.failure()
        else:
            try:
                value = parse(response.content or "")
            except ParseFailure as exc:
                exc.backend = backend.identifier
                failure = exc
            else:
                logger.info(
                    "backend_succeeded",
                    extra={"backend": backend.identifier, "failed_before": len(failures)},
                )
                return FallbackResult(value=value, backend=backend, failures=list(failures))

        logger.warning(
            "backend_attempt_failed",
            extra={"backend": backend.identifier, "kind": failure.kind, "reason": failure.message},
        )
        failures.append(failure)
        return None

    def execute(self, prompt: Prompt, parse: Callable[[str], T]) -> FallbackResult[T]:
        failures: list[BackendFailure] = []
        for backend in self._backends:
            logger.info("backend_attempt", extra={"backend": backend.identifier})
            response = self._invoker.invoke(backend, prompt, self._timeout)
            result = self._accept(backend, response, parse, failures)
            if result is not None:
                return result
        logger.error("backends_exhausted", extra={"attempts": len(failures)})
        raise ExhaustionError(failures)

    async def aexecute(self, prompt: Prompt, parse: Callable[[str], T]) -> FallbackResult[T]:
        failures: list[BackendFailure] = []
        for backend in self._backends:
            logger.info("backend_attempt", extra={"backend": backend.identifier})
            response = await self._invoker.ainvoke(backend, prompt, self._timeout)
            result = self._accept(backend, response, parse, failures)
            if result is not None:
                return result
        logger.error("backends_exhausted", extra={"attempts": len(failures)})
        raise ExhaustionError(failures)

    def analyze_detailed(self, text: str) -> FallbackResult[FinancialDocumentAnalysis]:
        request = AnalysisRequest.from_text(text)
        prompt = build_analysis_prompt(request.text, request.hint)
        return self.execute(prompt, parse_analysis)

    async def aanalyze_detailed(self, text: str) -> FallbackResult[FinancialDocumentAnalysis]:
        request = AnalysisRequest.from_text(text)
        prompt = build_analysis_prompt(request.text, request.hint)
        return await self.aexecute(prompt, parse_analysis)

    def analyze(self, text: str) -> FinancialDocumentAnalysis:
        """Analyze document text; raises InvalidInputError or ExhaustionError."""
        return self.analyze_detailed(text).value

    async def aanalyze(self, text: str) -> FinancialDocumentAnalysis:
        return (await self.aanalyze_detailed(text)).value
