# src/relevance/profiles.py — v1
"""Expectation profiles per DocumentContext.

Each profile lists entity groups expected to be present and groups that
should be absent. A group is satisfied by any of its entity types, at the
strength (highest confidence) with which the analyzer found it. Weights
favour entities that separate one context from another: a total amount
tells a receipt from a business card far better than a date does.
"""

from __future__ import annotations

from dataclasses import dataclass

from docintel.core.models import DocumentContext


@dataclass(frozen=True)
class Expectation:
    """One entity group and its weight in a context profile."""

    label: str
    entity_types: tuple[str, ...]
    weight: float
    strong: bool = False


@dataclass(frozen=True)
class ContextProfile:
    context: DocumentContext
    expected: tuple[Expectation, ...]
    unexpected: tuple[Expectation, ...] = ()
    preferred_mime_types: tuple[str, ...] = ()
    guidance: str = ""

    @property
    def total_weight(self) -> float:
        return sum(e.weight for e in self.expected) + sum(e.weight for e in self.unexpected)


_TOTAL = ("total_amount", "amount")
_CONTACT = ("email", "phone", "address", "website")

CONTEXT_PROFILES: dict[str, ContextProfile] = {
    "expense_receipt": ContextProfile(
        context="expense_receipt",
        expected=(
            Expectation("total amount", _TOTAL, 3.0, strong=True),
            Expectation("vendor or merchant name", ("vendor_name",), 2.0, strong=True),
            Expectation("date", ("date",), 1.5, strong=True),
        ),
        unexpected=(
            Expectation("person name", ("person_name",), 1.0),
            Expectation("job title", ("job_title",), 1.5),
        ),
        preferred_mime_types=("application/pdf", "image/jpeg", "image/png"),
        guidance="For expense receipts, ensure the document shows the amount, date, and merchant name.",
    ),
    "invoice": ContextProfile(
        context="invoice",
        expected=(
            Expectation("invoice number", ("invoice_number",), 3.0, strong=True),
            Expectation("total amount", _TOTAL, 2.5, strong=True),
            Expectation("date", ("date",), 1.5, strong=True),
            Expectation("business name", ("vendor_name",), 1.5),
            Expectation("contact information", _CONTACT, 0.5),
        ),
        unexpected=(
            Expectation("job title", ("job_title",), 1.0),
        ),
        preferred_mime_types=("application/pdf", "image/jpeg", "image/png"),
        guidance="For invoices, ensure the document includes invoice number, amounts, dates, and business details.",
    ),
    "business_card": ContextProfile(
        context="business_card",
        expected=(
            Expectation("person name", ("person_name",), 2.0, strong=True),
            Expectation("phone or email", ("phone", "email"), 2.5, strong=True),
            Expectation("job title", ("job_title",), 1.0),
            Expectation("website or address", ("website", "address"), 1.0),
            Expectation("company name", ("vendor_name",), 0.5),
        ),
        unexpected=(
            Expectation("total amount", ("total_amount",), 2.5),
            Expectation("invoice number", ("invoice_number",), 1.5),
            Expectation("legal terms", ("legal_term",), 1.0),
        ),
        preferred_mime_types=("image/jpeg", "image/png", "image/gif"),
        guidance="For business cards, ensure the name and phone or email are legible.",
    ),
    "contract": ContextProfile(
        context="contract",
        expected=(
            Expectation("legal terms", ("legal_term",), 3.0, strong=True),
            Expectation("parties", ("vendor_name", "person_name"), 1.5),
            Expectation("date", ("date",), 1.5, strong=True),
        ),
        unexpected=(
            Expectation("job title only", ("job_title",), 0.5),
        ),
        preferred_mime_types=("application/pdf", "text/plain"),
        guidance="For contracts, upload the full agreement including parties, terms, and dates.",
    ),
    "vendor_document": ContextProfile(
        context="vendor_document",
        expected=(
            Expectation("business name", ("vendor_name",), 3.0, strong=True),
            Expectation("contact information", _CONTACT, 2.5, strong=True),
            Expectation("invoice number", ("invoice_number",), 0.5),
            Expectation("amount", _TOTAL, 0.5),
        ),
        preferred_mime_types=("application/pdf", "image/jpeg", "image/png", "text/plain"),
        guidance="For vendor documents, include business cards, invoices, or documents with contact information.",
    ),
    "customer_document": ContextProfile(
        context="customer_document",
        expected=(
            Expectation("business name", ("vendor_name",), 2.5, strong=True),
            Expectation("contact information", _CONTACT, 2.5, strong=True),
            Expectation("contact person", ("person_name",), 1.0),
        ),
        preferred_mime_types=("application/pdf", "image/jpeg", "image/png", "text/plain"),
        guidance="For customer documents, include the customer's business name and contact details.",
    ),
    "generic_business": ContextProfile(
        context="generic_business",
        expected=(
            Expectation(
                "business content",
                ("vendor_name", "total_amount", "amount", "date", "invoice_number",
                 "email", "phone", "address", "website", "legal_term"),
                1.0,
            ),
        ),
        preferred_mime_types=("application/pdf", "image/jpeg", "image/png", "text/plain"),
    ),
}

BUSINESS_KEYWORDS = frozenset({
    "invoice", "receipt", "bill", "statement", "purchase", "payment",
    "vendor", "supplier", "customer", "client", "company", "business",
    "tax", "vat", "total", "contract", "agreement", "expense", "order",
})

PERSONAL_KEYWORDS = frozenset({
    "selfie", "vacation", "holiday", "family", "personal", "pet", "cat",
    "dog", "friend", "birthday", "party", "wedding", "celebration",
    "memories", "fun", "love", "smile", "happy", "cute",
})
