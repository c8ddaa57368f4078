from __future__ import annotations

from finanalyzer.domain.pipeline.doc_types import normalize_label
from finanalyzer.domain.pipeline.models import FinancialDocumentAnalysis

HIGH_CONFIDENCE = 0.9
MODERATE_CONFIDENCE = 0.7

_BANK_LABELS = frozenset({"bank statement", "bank", "bankstatement"})
_INAPPLICABLE_TO_STATEMENTS = ("vendor", "client")

# (field, insight prefix) per normalized type label
_FIELD_INSIGHTS: dict[str, tuple[tuple[str, str], ...]] = {
    "bank": (("ending_balance", "Ending balance"), ("period", "Statement period")),
    "invoice": (("due_date", "Payment due"), ("tax_amount", "Tax amount")),
    "receipt": (("store", "Purchase from"), ("payment_method", "Paid with")),
}


def _type_key(document_type: str) -> str:
    label = normalize_label(document_type)
    if label in _BANK_LABELS:
        return "bank"
    return label


def confidence_insight(confidence: float) -> str | None:
    if confidence > HIGH_CONFIDENCE:
        return "High confidence analysis"
    if confidence > MODERATE_CONFIDENCE:
        return "Moderate confidence analysis"
    return None


def enhance(analysis: FinancialDocumentAnalysis) -> FinancialDocumentAnalysis:
    """Apply type-specific post-processing and derive insights.

    Returns a new record; the input is left untouched. Insights are rebuilt
    from scratch on every call, so enhancing twice gives the same output.
    """
    key = _type_key(analysis.document_type)
    errors = list(analysis.validation_errors)
    if key == "bank":
        errors = [
            e for e in errors if not any(word in e.lower() for word in _INAPPLICABLE_TO_STATEMENTS)
        ]

    insights: list[str] = []
    for field, prefix in _FIELD_INSIGHTS.get(key, ()):
        value = analysis.extracted_data.get(field)
        if value:
            insights.append(f"{prefix}: {value}")

    tier = confidence_insight(analysis.confidence)
    if tier:
        insights.append(tier)

    return analysis.model_copy(
        update={
            "validation_errors": errors,
            "document_insights": insights,
            "extracted_data": dict(analysis.extracted_data),
            "suggested_categories": list(analysis.suggested_categories),
        }
    )
