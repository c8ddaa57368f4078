from __future__ import annotations

import pytest
from pydantic import ValidationError

from finanalyzer.domain.errors import BackendError, HttpFailure, InvalidInputError, TransportFailure
from finanalyzer.domain.pipeline.doc_types import (
    DocumentType,
    DocumentTypeHint,
    infer_document_type_hint,
    normalize_label,
)
from finanalyzer.domain.pipeline.models import (
    AnalysisRequest,
    BackendDescriptor,
    InvocationOutcome,
    RawModelResponse,
    StatusClass,
    StructuredFinancialDocument,
    ValidationResult,
)
from finanalyzer.domain.pipeline.simulation import SAMPLE_DOCUMENTS


def test_validation_result_issues_force_invalid() -> None:
    result = ValidationResult(
        is_valid=True,
        missing_fields=[],
        data_quality_issues=["Total does not match line items"],
        compliance_issues=[],
        overall_score=0.9,
    )
    assert result.is_valid is False


def test_validation_result_without_issues_keeps_flag() -> None:
    assert ValidationResult(is_valid=True, overall_score=0.95).is_valid is True
    assert ValidationResult(is_valid=False, overall_score=0.2).is_valid is False


def test_validation_score_is_clamped() -> None:
    assert ValidationResult(is_valid=True, overall_score=3).overall_score == 1.0


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Invoice", DocumentType.INVOICE),
        ("Bank Statement", DocumentType.BANK_STATEMENT),
        ("bank_statement", DocumentType.BANK_STATEMENT),
        ("Tax Form W-2", DocumentType.TAX_FORM),
        ("payment confirmation", DocumentType.PAYMENT_CONFIRMATION),
        ("PAYROLL", DocumentType.PAYROLL),
        ("Gibberish", DocumentType.UNKNOWN),
        ("", DocumentType.UNKNOWN),
    ],
)
def test_document_type_from_label(label: str, expected: DocumentType) -> None:
    assert DocumentType.from_label(label) is expected


def test_structured_document_maps_free_form_labels() -> None:
    doc = StructuredFinancialDocument.model_validate(
        {"document_type": "Bank Statement", "confidence": 0.8, "risk_assessment": "high"}
    )
    assert doc.document_type is DocumentType.BANK_STATEMENT
    assert doc.risk_assessment is not None and doc.risk_assessment.value == "High"
    assert doc.metadata.parties == []


def test_normalize_label() -> None:
    assert normalize_label("  Bank_Statement ") == "bank statement"
    assert normalize_label("BANK   -  STATEMENT") == "bank statement"
    assert normalize_label(None) == ""


def test_hints_for_sample_documents() -> None:
    hints = [infer_document_type_hint(doc) for doc in SAMPLE_DOCUMENTS]
    assert hints == [
        DocumentTypeHint.INVOICE,
        DocumentTypeHint.RECEIPT,
        DocumentTypeHint.BANK_STATEMENT,
        DocumentTypeHint.TAX_FORM,
    ]
    assert infer_document_type_hint("Lorem ipsum") is None


def test_hint_keywords_match_whole_words() -> None:
    assert infer_document_type_hint("Payment reminder for the new 2024 laptop lease") is None
    assert infer_document_type_hint("Filed under tax law 2023") is None
    assert infer_document_type_hint("Employee W2 wages") is DocumentTypeHint.TAX_FORM
    assert infer_document_type_hint("form w-2 copy b") is DocumentTypeHint.TAX_FORM
    assert infer_document_type_hint("Attached: two receipts") is DocumentTypeHint.RECEIPT


def test_analysis_request() -> None:
    request = AnalysisRequest.from_text("INVOICE\nTotal: $1")
    assert request.hint is DocumentTypeHint.INVOICE
    with pytest.raises(ValidationError):
        request.text = "changed"  # type: ignore[misc]
    with pytest.raises(InvalidInputError):
        AnalysisRequest.from_text("  ")


def test_backend_descriptors_keep_configured_order() -> None:
    backends = BackendDescriptor.from_identifiers(["a/model:free", "b/model"])
    assert [b.priority for b in backends] == [0, 1]
    assert backends[0].tier == "free"
    assert backends[1].tier == "paid"


def test_raw_response_content_only_on_success() -> None:
    with pytest.raises(ValidationError):
        RawModelResponse(backend="a", outcome=InvocationOutcome.SUCCESS, status_class=StatusClass.SUCCESS)
    with pytest.raises(ValidationError):
        RawModelResponse(
            backend="a",
            outcome=InvocationOutcome.HTTP_FAILURE,
            status_class=StatusClass.SERVER_ERROR,
            content="x",
        )


def test_raw_response_failure_types() -> None:
    def make(outcome: InvocationOutcome, status_class: StatusClass) -> RawModelResponse:
        return RawModelResponse(backend="a", outcome=outcome, status_class=status_class, error_message="boom")

    assert isinstance(make(InvocationOutcome.TRANSPORT_FAILURE, StatusClass.TRANSPORT_ERROR).failure(), TransportFailure)
    assert isinstance(make(InvocationOutcome.HTTP_FAILURE, StatusClass.CLIENT_ERROR).failure(), HttpFailure)
    failure = make(InvocationOutcome.BACKEND_ERROR, StatusClass.SUCCESS).failure()
    assert isinstance(failure, BackendError)
    assert str(failure) == "a: backend_error: boom"


def test_status_class_from_code() -> None:
    assert StatusClass.from_status_code(200) is StatusClass.SUCCESS
    assert StatusClass.from_status_code(429) is StatusClass.CLIENT_ERROR
    assert StatusClass.from_status_code(503) is StatusClass.SERVER_ERROR
