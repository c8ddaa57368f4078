"""Document-type vocabulary.

Models emit free-form type labels ("Bank Statement", "bank_statement",
"Tax Form W-2", ...). Dispatch always goes through ``normalize_label`` and the
canonical enum is used only where a closed set is required.
"""

from __future__ import annotations

import re
from enum import Enum

_SEPARATORS = re.compile(r"[\s_\-]+")


def normalize_label(label: str | None) -> str:
    """Lowercase and collapse whitespace, underscores and hyphens to single spaces."""
    if not label:
        return ""
    return _SEPARATORS.sub(" ", label).strip().lower()


class DocumentTypeHint(str, Enum):
    """Keyword-derived guess at the document type; not guaranteed correct."""

    INVOICE = "invoice"
    RECEIPT = "receipt"
    BANK_STATEMENT = "bank_statement"
    TAX_FORM = "tax_form"


# Keywords start at a word boundary; W-2 must also end one ("new 2024" is not a W-2)
_HINT_KEYWORDS: tuple[tuple[re.Pattern[str], DocumentTypeHint], ...] = (
    (re.compile(r"\bbank statement"), DocumentTypeHint.BANK_STATEMENT),
    (re.compile(r"\btax form"), DocumentTypeHint.TAX_FORM),
    (re.compile(r"\bw ?2\b"), DocumentTypeHint.TAX_FORM),
    (re.compile(r"\binvoice"), DocumentTypeHint.INVOICE),
    (re.compile(r"\breceipt"), DocumentTypeHint.RECEIPT),
)


def infer_document_type_hint(text: str) -> DocumentTypeHint | None:
    """Return the hint whose keyword appears earliest in the text, if any."""
    haystack = normalize_label(text)
    best: tuple[int, DocumentTypeHint] | None = None
    for pattern, hint in _HINT_KEYWORDS:
        match = pattern.search(haystack)
        if match is None:
            continue
        pos = match.start()
        if best is None or pos < best[0]:
            best = (pos, hint)
    return best[1] if best else None


class DocumentType(str, Enum):
    """Canonical document types used by the structured analyzer."""

    INVOICE = "Invoice"
    RECEIPT = "Receipt"
    BANK_STATEMENT = "BankStatement"
    TAX_FORM = "TaxForm"
    CONTRACT = "Contract"
    BILL = "Bill"
    PAYMENT_CONFIRMATION = "PaymentConfirmation"
    PAYROLL = "Payroll"
    UNKNOWN = "Unknown"

    @classmethod
    def from_label(cls, label: str | None) -> "DocumentType":
        key = normalize_label(label).replace(" ", "")
        if not key:
            return cls.UNKNOWN
        for member in cls:
            if member.value.lower() == key:
                return member
        # "Tax Form W-2", "TaxForm(1099)" and friends
        if key.startswith("taxform"):
            return cls.TAX_FORM
        if key in {"bank", "statement"}:
            return cls.BANK_STATEMENT
        if key in {"payslip", "paystub", "payrollstatement"}:
            return cls.PAYROLL
        return cls.UNKNOWN


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"
