from __future__ import annotations

import json

from finanalyzer.domain.errors import InvalidInputError
from finanalyzer.domain.pipeline.doc_types import DocumentTypeHint
from finanalyzer.domain.pipeline.models import Prompt, StructuredFinancialDocument

ANALYSIS_SYSTEM_PROMPT = (
    "You are a financial document analysis expert. Analyze the document type and extract "
    "relevant fields accordingly. Return ONLY valid JSON."
)

STRUCTURED_SYSTEM_PROMPT = (
    "You are a financial document analysis expert. Analyze financial documents and extract "
    "structured data. Always respond with valid JSON in the specified format. "
    "Be accurate and thorough in your analysis."
)

VALIDATION_SYSTEM_PROMPT = (
    "You are a financial document validation expert. Validate financial documents for "
    "completeness, accuracy, and compliance. Return JSON with validation results."
)

CONVERSION_SYSTEM_PROMPT = "Convert financial documents to structured JSON format."

# Guidance only: the model may omit or add fields.
EXPECTED_FIELDS: dict[DocumentTypeHint, tuple[str, tuple[str, ...]]] = {
    DocumentTypeHint.INVOICE: (
        "INVOICE",
        ("date", "vendor", "client", "total_amount", "invoice_number", "tax_amount", "due_date"),
    ),
    DocumentTypeHint.RECEIPT: (
        "RECEIPT",
        ("date", "store", "total_amount", "items", "tax_amount", "payment_method"),
    ),
    DocumentTypeHint.BANK_STATEMENT: (
        "BANK STATEMENT",
        ("period", "account_number", "beginning_balance", "ending_balance", "transactions"),
    ),
    DocumentTypeHint.TAX_FORM: (
        "TAX FORM",
        ("year", "taxpayer", "employer", "wages", "taxes_withheld", "form_type"),
    ),
}

ANALYSIS_SCHEMA = """{
  "document_type": "specific type",
  "confidence": 0.95,
  "extracted_data": { "extract RELEVANT fields for the document type" },
  "validation_errors": ["only actual missing REQUIRED fields"],
  "suggested_categories": ["relevant categories"],
  "document_insights": ["key observations about the document"]
}"""

STRUCTURED_SCHEMA = """{
  "document_type": "Invoice|Receipt|BankStatement|TaxForm|Contract|Bill|PaymentConfirmation|Payroll|Unknown",
  "confidence": 0.95,
  "extracted_data": {
    "date": "YYYY-MM-DD",
    "total_amount": "123.45",
    "vendor": "Company Name",
    "tax_amount": "12.34",
    "currency": "USD",
    "document_number": "INV-001",
    "payment_terms": "Net 30"
  },
  "validation_errors": ["Missing invoice number", "Invalid date format"],
  "suggested_categories": ["Office Supplies", "Tax Deductible"],
  "tax_implications": ["VAT applicable", "Business expense"],
  "risk_assessment": "Low|Medium|High|Critical",
  "metadata": {
    "document_date": "2024-01-15",
    "total_amount": 4860.0,
    "currency": "USD",
    "parties": [
      {"role": "payer", "name": "ABC Corporation"},
      {"role": "payee", "name": "Tech Solutions Inc."}
    ],
    "line_items": [
      {"description": "Software License", "quantity": 2, "unit_price": 1500.0, "amount": 3000.0}
    ]
  }
}"""

VALIDATION_SCHEMA = """{
  "is_valid": true,
  "missing_fields": ["field1", "field2"],
  "data_quality_issues": ["issue1", "issue2"],
  "compliance_issues": ["compliance1", "compliance2"],
  "overall_score": 0.95
}"""


def _require_text(text: str | None) -> str:
    if not isinstance(text, str) or not text.strip():
        raise InvalidInputError("Document text must be a non-empty string")
    return text


def _expected_fields_section(hint: DocumentTypeHint | None) -> str:
    lines = ["COMMON DOCUMENT TYPES & EXPECTED FIELDS:"]
    for label, fields in EXPECTED_FIELDS.values():
        lines.append(f"- {label}: {', '.join(fields)}")
    if hint is not None:
        label, fields = EXPECTED_FIELDS[hint]
        lines.append("")
        lines.append(
            f"The document looks like a {label}. Prioritise these fields if present: {', '.join(fields)}."
        )
    return "\n".join(lines)


def build_analysis_prompt(text: str, hint: DocumentTypeHint | None = None) -> Prompt:
    body = _require_text(text)
    user = (
        "Analyze this financial document and return JSON. Adapt field extraction based on document type.\n\n"
        + _expected_fields_section(hint)
        + "\n\nJSON STRUCTURE:\n"
        + ANALYSIS_SCHEMA
        + "\n\nDOCUMENT:\n"
        + body
        + "\n\nReturn ONLY the JSON object."
    )
    return Prompt(system=ANALYSIS_SYSTEM_PROMPT, user=user)


def build_structured_prompt(text: str) -> Prompt:
    body = _require_text(text)
    user = (
        "Analyze this financial document and extract structured information.\n\n"
        "DOCUMENT TEXT:\n" + body + "\n\n"
        "Return JSON in this exact format:\n" + STRUCTURED_SCHEMA + "\n\n"
        "Be thorough and accurate in your analysis."
    )
    return Prompt(system=STRUCTURED_SYSTEM_PROMPT, user=user, json_mode=True)


def build_validation_prompt(document: StructuredFinancialDocument) -> Prompt:
    doc_json = json.dumps(document.model_dump(mode="json"), indent=2, ensure_ascii=False)
    user = (
        "Validate this financial document analysis for completeness and compliance.\n\n"
        "DOCUMENT ANALYSIS:\n" + doc_json + "\n\n"
        "Check for:\n"
        "1. Missing required fields based on document type\n"
        "2. Data consistency issues\n"
        "3. Compliance with financial regulations\n"
        "4. Risk factors\n\n"
        "Return JSON:\n" + VALIDATION_SCHEMA
    )
    return Prompt(system=VALIDATION_SYSTEM_PROMPT, user=user, json_mode=True, max_tokens=1000)


def build_conversion_prompt(text: str) -> Prompt:
    body = _require_text(text)
    user = (
        "Convert this financial document into structured JSON format. "
        "Extract all relevant fields and maintain data relationships.\n\n"
        "DOCUMENT:\n" + body + "\n\n"
        "Return a clean JSON object with all extracted data."
    )
    return Prompt(system=CONVERSION_SYSTEM_PROMPT, user=user, json_mode=True)
