from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from finanalyzer.domain.pipeline.models import (
    FinancialDocumentAnalysis,
    StructuredFinancialDocument,
    ValidationResult,
)


class AnalyzeRequest(BaseModel):
    text: str


class AnalyzeResponse(BaseModel):
    source: Literal["model", "simulation"]
    backend: str | None = None
    failures: list[str] = Field(default_factory=list)
    analysis: FinancialDocumentAnalysis


class StructuredAnalyzeResponse(BaseModel):
    document: StructuredFinancialDocument
    validation: ValidationResult | None = None


class ConvertResponse(BaseModel):
    data: dict[str, Any]
