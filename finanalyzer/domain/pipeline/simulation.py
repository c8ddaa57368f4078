"""Pre-authored analyses served when no backend can be reached.

Indices line up with ``SAMPLE_DOCUMENTS``; any other index yields a
low-confidence ``Unknown`` record.
"""

from __future__ import annotations

from finanalyzer.domain.pipeline.doc_types import DocumentTypeHint, infer_document_type_hint
from finanalyzer.domain.pipeline.models import FinancialDocumentAnalysis

SAMPLE_DOCUMENTS: tuple[str, ...] = (
    """INVOICE
From: Tech Solutions Inc.
To: ABC Corporation
Invoice #: INV-2024-001
Date: January 15, 2024
Due Date: February 14, 2024
Total: $2,750.00
Tax: $250.00
Description: Software Development Services
Payment Terms: Net 30""",
    """RECEIPT
Store: Office Supply World
Date: 2024-01-20
Receipt #: RCPT-789123
Total: $53.43
Tax: $3.96
Items: Printer Paper, Pens, Stapler
Payment Method: Credit Card""",
    """BANK STATEMENT
Account: ****1234
Statement Period: Jan 1-31, 2024
Beginning Balance: $12,500.00
Ending Balance: $16,714.50
Transactions: Various deposits and withdrawals""",
    """TAX FORM W-2
Employee: John Smith
Employer: Tech Solutions Inc.
Employer EIN: 12-3456789
Wages: $85,000.00
Federal Tax Withheld: $15,300.00
Year: 2023
Social Security Wages: $85,000.00""",
)

_CANNED: dict[int, dict] = {
    0: {
        "document_type": "Invoice",
        "confidence": 0.96,
        "extracted_data": {
            "date": "January 15, 2024",
            "due_date": "February 14, 2024",
            "total_amount": "$2,750.00",
            "tax_amount": "$250.00",
            "vendor": "Tech Solutions Inc.",
            "client": "ABC Corporation",
            "invoice_number": "INV-2024-001",
            "payment_terms": "Net 30",
        },
        "validation_errors": [],
        "suggested_categories": ["Technology", "Professional Services"],
        "document_insights": [
            "Payment due: February 14, 2024",
            "Tax amount: $250.00",
            "High confidence analysis",
        ],
    },
    1: {
        "document_type": "Receipt",
        "confidence": 0.94,
        "extracted_data": {
            "date": "2024-01-20",
            "total_amount": "$53.43",
            "tax_amount": "$3.96",
            "store": "Office Supply World",
            "receipt_number": "RCPT-789123",
            "payment_method": "Credit Card",
        },
        "validation_errors": ["Missing individual item prices"],
        "suggested_categories": ["Office Supplies", "Business Expenses"],
        "document_insights": [
            "Purchase from: Office Supply World",
            "Paid with: Credit Card",
            "High confidence analysis",
        ],
    },
    2: {
        "document_type": "Bank Statement",
        "confidence": 0.95,
        "extracted_data": {
            "period": "Jan 1-31, 2024",
            "account_number": "****1234",
            "beginning_balance": "$12,500.00",
            "ending_balance": "$16,714.50",
        },
        "validation_errors": [],
        "suggested_categories": ["Banking", "Financial Records"],
        "document_insights": [
            "Ending balance: $16,714.50",
            "Statement period: Jan 1-31, 2024",
            "High confidence analysis",
        ],
    },
    3: {
        "document_type": "Tax Form W-2",
        "confidence": 0.97,
        "extracted_data": {
            "year": "2023",
            "employee": "John Smith",
            "employer": "Tech Solutions Inc.",
            "wages": "$85,000.00",
            "federal_tax_withheld": "$15,300.00",
            "employer_ein": "12-3456789",
        },
        "validation_errors": [],
        "suggested_categories": ["Tax Documents", "Income Records"],
        "document_insights": [
            "Tax year: 2023",
            "Wages: $85,000.00",
            "High confidence analysis",
        ],
    },
}

_UNKNOWN: dict = {
    "document_type": "Unknown",
    "confidence": 0.5,
    "extracted_data": {},
    "validation_errors": ["Cannot analyze document"],
    "suggested_categories": [],
    "document_insights": [],
}

_HINT_INDEX: dict[DocumentTypeHint, int] = {
    DocumentTypeHint.INVOICE: 0,
    DocumentTypeHint.RECEIPT: 1,
    DocumentTypeHint.BANK_STATEMENT: 2,
    DocumentTypeHint.TAX_FORM: 3,
}


def simulate(index: int) -> FinancialDocumentAnalysis:
    return FinancialDocumentAnalysis.model_validate(_CANNED.get(index, _UNKNOWN))


def simulation_index(text: str) -> int:
    hint = infer_document_type_hint(text or "")
    if hint is None:
        return -1
    return _HINT_INDEX[hint]


def simulate_text(text: str) -> FinancialDocumentAnalysis:
    return simulate(simulation_index(text))
