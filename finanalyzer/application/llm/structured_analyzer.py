from __future__ import annotations

from typing import Any

from finanalyzer.application.llm.orchestrator import FallbackOrchestrator
from finanalyzer.application.llm.parsers import normalize, parse_json_object
from finanalyzer.application.llm.prompts import (
    build_conversion_prompt,
    build_structured_prompt,
    build_validation_prompt,
)
from finanalyzer.domain.pipeline.models import StructuredFinancialDocument, ValidationResult


def _parse_structured(content: str) -> StructuredFinancialDocument:
    return normalize(content, StructuredFinancialDocument)


def _parse_validation(content: str) -> ValidationResult:
    return normalize(content, ValidationResult)


class StructuredAnalyzer:
    """Typed analysis, validation and free-form JSON conversion.

    Requests ask for ``json_object`` responses and run through the same
    ordered fallback as the plain analysis; no enhancement is applied.
    """

    def __init__(self, orchestrator: FallbackOrchestrator) -> None:
        self._orchestrator = orchestrator

    def analyze_document(self, text: str) -> StructuredFinancialDocument:
        return self._orchestrator.execute(build_structured_prompt(text), _parse_structured).value

    def validate_document(self, document: StructuredFinancialDocument) -> ValidationResult:
        return self._orchestrator.execute(build_validation_prompt(document), _parse_validation).value

    def convert_to_json(self, text: str) -> dict[str, Any]:
        return self._orchestrator.execute(build_conversion_prompt(text), parse_json_object).value

    async def aanalyze_document(self, text: str) -> StructuredFinancialDocument:
        result = await self._orchestrator.aexecute(build_structured_prompt(text), _parse_structured)
        return result.value

    async def avalidate_document(self, document: StructuredFinancialDocument) -> ValidationResult:
        result = await self._orchestrator.aexecute(build_validation_prompt(document), _parse_validation)
        return result.value

    async def aconvert_to_json(self, text: str) -> dict[str, Any]:
        result = await self._orchestrator.aexecute(build_conversion_prompt(text), parse_json_object)
        return result.value
