"""Domain models for the analysis pipeline.

Every model is created per request and discarded once returned; none of them
carries state across requests.
"""

from __future__ import annotations

import json
import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from finanalyzer.domain.errors import BackendError, BackendFailure, HttpFailure, InvalidInputError, TransportFailure
from finanalyzer.domain.pipeline.doc_types import DocumentType, DocumentTypeHint, RiskLevel, infer_document_type_hint


def _clamp_unit(value: float) -> float:
    if math.isnan(value):
        raise ValueError("value must be a number, got NaN")
    return min(1.0, max(0.0, value))


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        raise ValueError("expected a list of strings")
    return [item if isinstance(item, str) else json.dumps(item, ensure_ascii=False) for item in value if item is not None]


def _string_mapping(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError("expected an object of field values")
    out: dict[str, str] = {}
    for key, item in value.items():
        if item is None:
            continue
        if isinstance(item, str):
            out[str(key)] = item
        elif isinstance(item, (int, float)) and not isinstance(item, bool):
            out[str(key)] = str(item)
        else:
            out[str(key)] = json.dumps(item, ensure_ascii=False)
    return out


class AnalysisRequest(BaseModel):
    """Raw document text plus a keyword-derived type hint."""

    model_config = ConfigDict(frozen=True)

    text: str
    hint: DocumentTypeHint | None = None

    @classmethod
    def from_text(cls, text: str | None) -> "AnalysisRequest":
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError("Document text must be a non-empty string")
        return cls(text=text, hint=infer_document_type_hint(text))


class BackendDescriptor(BaseModel):
    """One entry of the fixed backend priority list (lower priority value = tried first)."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    priority: int

    @property
    def tier(self) -> str:
        return "free" if self.identifier.endswith(":free") else "paid"

    @classmethod
    def from_identifiers(cls, identifiers: list[str] | tuple[str, ...]) -> tuple["BackendDescriptor", ...]:
        return tuple(cls(identifier=ident, priority=pos) for pos, ident in enumerate(identifiers))


class Prompt(BaseModel):
    """Backend-agnostic chat prompt."""

    model_config = ConfigDict(frozen=True)

    system: str
    user: str
    json_mode: bool = False
    max_tokens: int | None = None

    def messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


class InvocationOutcome(str, Enum):
    SUCCESS = "success"
    TRANSPORT_FAILURE = "transport_failure"
    HTTP_FAILURE = "http_failure"
    BACKEND_ERROR = "backend_error"


class StatusClass(str, Enum):
    SUCCESS = "success"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    TRANSPORT_ERROR = "transport_error"

    @classmethod
    def from_status_code(cls, status_code: int) -> "StatusClass":
        if 200 <= status_code < 300:
            return cls.SUCCESS
        if 400 <= status_code < 500:
            return cls.CLIENT_ERROR
        return cls.SERVER_ERROR


class RawModelResponse(BaseModel):
    """Classified result of exactly one backend request."""

    model_config = ConfigDict(frozen=True)

    backend: str
    outcome: InvocationOutcome
    status_class: StatusClass
    status_code: int | None = None
    error_message: str | None = None
    content: str | None = None

    @model_validator(mode="after")
    def _content_only_on_success(self) -> "RawModelResponse":
        if self.outcome is InvocationOutcome.SUCCESS and self.content is None:
            raise ValueError("successful response requires content")
        if self.outcome is not InvocationOutcome.SUCCESS and self.content is not None:
            raise ValueError("content is only present on success")
        return self

    @property
    def ok(self) -> bool:
        return self.outcome is InvocationOutcome.SUCCESS

    def failure(self) -> BackendFailure:
        """Exception describing a non-successful response (returned, not raised)."""
        message = self.error_message or self.outcome.value
        if self.outcome is InvocationOutcome.TRANSPORT_FAILURE:
            return TransportFailure(message, backend=self.backend)
        if self.outcome is InvocationOutcome.HTTP_FAILURE:
            return HttpFailure(message, backend=self.backend, status_code=self.status_code)
        if self.outcome is InvocationOutcome.BACKEND_ERROR:
            return BackendError(message, backend=self.backend)
        raise ValueError("successful response has no failure")


class FinancialDocumentAnalysis(BaseModel):
    """Analysis record produced by a backend (after normalization) or by the simulation."""

    document_type: str
    confidence: float
    extracted_data: dict[str, str] = Field(default_factory=dict)
    validation_errors: list[str] = Field(default_factory=list)
    suggested_categories: list[str] = Field(default_factory=list)
    document_insights: list[str] = Field(default_factory=list)

    @field_validator("document_type", mode="before")
    @classmethod
    def _type_is_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("document_type must not be empty")
        return value

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return _clamp_unit(value)

    @field_validator("extracted_data", mode="before")
    @classmethod
    def _coerce_fields(cls, value: Any) -> dict[str, str]:
        return _string_mapping(value)

    @field_validator("validation_errors", "suggested_categories", "document_insights", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> list[str]:
        return _string_list(value)


class Party(BaseModel):
    role: str
    name: str
    identifier: str | None = None


class LineItem(BaseModel):
    description: str
    quantity: float | None = None
    unit_price: float | None = None
    amount: float


class DocumentMetadata(BaseModel):
    document_date: str | None = None
    total_amount: float | None = None
    currency: str | None = None
    parties: list[Party] = Field(default_factory=list)
    line_items: list[LineItem] = Field(default_factory=list)


class StructuredFinancialDocument(BaseModel):
    """Typed analysis produced by the structured analyzer."""

    document_type: DocumentType
    confidence: float
    extracted_data: dict[str, str] = Field(default_factory=dict)
    validation_errors: list[str] = Field(default_factory=list)
    suggested_categories: list[str] = Field(default_factory=list)
    tax_implications: list[str] = Field(default_factory=list)
    risk_assessment: RiskLevel | None = None
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)

    @field_validator("document_type", mode="before")
    @classmethod
    def _canonical_type(cls, value: Any) -> DocumentType:
        if isinstance(value, DocumentType):
            return value
        return DocumentType.from_label(value if isinstance(value, str) else None)

    @field_validator("risk_assessment", mode="before")
    @classmethod
    def _risk_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            for level in RiskLevel:
                if level.value.lower() == value.strip().lower():
                    return level
            return None
        return value

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        return _clamp_unit(value)

    @field_validator("extracted_data", mode="before")
    @classmethod
    def _coerce_fields(cls, value: Any) -> dict[str, str]:
        return _string_mapping(value)

    @field_validator("validation_errors", "suggested_categories", "tax_implications", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> list[str]:
        return _string_list(value)


class ValidationResult(BaseModel):
    """Validation outcome for a structured analysis.

    ``is_valid`` is recomputed: any reported issue makes the document invalid,
    whatever the model claimed.
    """

    is_valid: bool
    missing_fields: list[str] = Field(default_factory=list)
    data_quality_issues: list[str] = Field(default_factory=list)
    compliance_issues: list[str] = Field(default_factory=list)
    overall_score: float

    @field_validator("missing_fields", "data_quality_issues", "compliance_issues", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> list[str]:
        return _string_list(value)

    @field_validator("overall_score")
    @classmethod
    def _clamp_score(cls, value: float) -> float:
        return _clamp_unit(value)

    @model_validator(mode="after")
    def _issues_invalidate(self) -> "ValidationResult":
        if self.missing_fields or self.data_quality_issues or self.compliance_issues:
            self.is_valid = False
        return self
