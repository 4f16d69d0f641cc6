# src/content/pattern_analyzer.py — v1
"""Pattern-based content analyzer over the text layer of a file.

Reads text/* payloads directly and the embedded text of PDFs via
PyMuPDF (fitz). Images have no text layer and are refused with
ContentAnalysisUnavailable; OCR belongs to an external analyzer.

Entities come from regular expressions and line heuristics, each with a
fixed confidence. Overall confidence grows with the kinds of entities
found.
"""

from __future__ import annotations

import asyncio
import logging
import re

from docintel.content.base_analyzer import BaseContentAnalyzer
from docintel.core.errors import ContentAnalysisUnavailable
from docintel.core.models import (
    ContentAnalysis,
    ExtractedEntity,
    TemporalClassification,
)
from docintel.core.similarity import parse_amount

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 10

_AMOUNT = r"(\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+(?:\.\d{2})?)"
CURRENCY_PATTERNS = (
    re.compile(rf"\$\s*{_AMOUNT}"),
    re.compile(rf"{_AMOUNT}\s*USD\b", re.IGNORECASE),
    re.compile(rf"\bUSD\s*{_AMOUNT}", re.IGNORECASE),
    re.compile(rf"£\s*{_AMOUNT}"),
    re.compile(rf"€\s*{_AMOUNT}"),
)
BARE_AMOUNT_PATTERN = re.compile(r"(?<![\d.])(\d{1,3}(?:,\d{3})*\.\d{2}|\d+\.\d{2})(?![\d.])")
TOTAL_LINE_PATTERN = re.compile(
    r"\b(total|subtotal|sub-total|tax|vat|amount due|balance due|grand total)\b",
    re.IGNORECASE,
)

_MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.?"
DATE_PATTERNS = (
    re.compile(r"(?<!\d)(\d{4}-\d{1,2}-\d{1,2})(?!\d)"),
    re.compile(r"(?<!\d)(\d{1,2}/\d{1,2}/\d{2,4})(?!\d)"),
    re.compile(r"(?<![\d-])(\d{1,2}-\d{1,2}-\d{2,4})(?!\d)"),
    re.compile(rf"\b({_MONTHS}\s+\d{{1,2}},?\s+\d{{4}})\b", re.IGNORECASE),
    re.compile(rf"\b(\d{{1,2}}\s+{_MONTHS}\s+\d{{4}})\b", re.IGNORECASE),
)

EMAIL_PATTERN = re.compile(r"\b([A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
PHONE_PATTERN = re.compile(
    r"(?<![\d-])((?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4})(?![\d-])"
)
WEBSITE_PATTERN = re.compile(
    r"(?<![@\w.])((?:https?://|www\.)[\w-]+(?:\.[\w-]+)+(?:/[^\s]*)?)", re.IGNORECASE
)
INVOICE_NUMBER_PATTERN = re.compile(
    r"\b(?:invoice|inv)\s*(?:no\.?|number|num|#)?\s*[:#]?\s*([A-Z0-9][A-Z0-9-]{2,})",
    re.IGNORECASE,
)
VENDOR_MARKER_PATTERN = re.compile(
    r"\b(LLC|Inc|Corp|Corporation|Ltd|Limited|Company|Services|GmbH|PLC)\b\.?",
    re.IGNORECASE,
)
VENDOR_LABEL_PATTERN = re.compile(
    r"^\s*(?:vendor|merchant|supplier|from|bill from|sold by)\s*:\s*(.{3,60})$",
    re.IGNORECASE,
)
PERSON_NAME_PATTERN = re.compile(r"^[A-Z][a-z]+(?:\s+[A-Z]\.)?(?:\s+[A-Z][a-z'-]+){1,2}$")
JOB_TITLE_PATTERN = re.compile(
    r"\b(CEO|CFO|CTO|COO|President|Vice President|Director|Manager|Engineer|"
    r"Consultant|Founder|Co-Founder|Partner|Owner|Analyst|Designer|Developer|"
    r"Account Executive|Sales Representative|Attorney|Accountant)\b"
)
ADDRESS_PATTERNS = (
    re.compile(r"\d+.*\w+.*\w+.*(?<!\d)\d{5}(?:-\d{4})?(?!\d)"),
    re.compile(
        r"^\s*\d+\s+\w+.*\b(Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|"
        r"Drive|Dr|Suite|Way|Court|Ct|Place|Pl)\b",
        re.IGNORECASE,
    ),
)
LEGAL_TERMS = (
    "agreement",
    "hereby",
    "whereas",
    "parties",
    "terms and conditions",
    "governing law",
    "indemnify",
    "indemnification",
    "liability",
    "termination",
    "confidentiality",
    "in witness whereof",
    "effective date",
)

# Words that make a two-word capitalised line something other than a name.
_NON_NAME_WORDS = frozenset({
    "thank", "you", "receipt", "invoice", "total", "subtotal", "tax", "date",
    "store", "cash", "card", "change", "balance", "due", "payment", "visa",
    "amount", "order", "customer", "service", "services", "statement", "bill",
    "page", "agreement", "terms", "welcome", "please", "come", "again", "main",
    "street", "avenue", "road", "suite", "company", "inc", "llc", "ltd",
})

ENTITY_CONFIDENCE = {
    "amount": 0.9,
    "total_amount": 0.9,
    "date": 0.8,
    "vendor_name": 0.8,
    "email": 0.95,
    "phone": 0.9,
    "website": 0.85,
    "invoice_number": 0.85,
    "address": 0.7,
    "job_title": 0.7,
    "person_name": 0.6,
    "legal_term": 0.7,
}
LABELLED_VENDOR_CONFIDENCE = 0.75
VENDOR_SCAN_LINES = 5
PERSON_SCAN_LINES = 10


class PatternContentAnalyzer(BaseContentAnalyzer):
    """Regex and line-heuristic analyzer for text and PDF inputs."""

    @property
    def name(self) -> str:
        return "pattern"

    def supports(self, mime_type: str) -> bool:
        mime = mime_type.lower()
        return mime.startswith("text/") or mime == "application/pdf"

    async def analyze(self, file_bytes: bytes, mime_type: str) -> ContentAnalysis:
        if not self.supports(mime_type):
            raise ContentAnalysisUnavailable(
                f"No text layer for {mime_type}; OCR analyzer required"
            )
        text = await asyncio.to_thread(extract_text, bytes(file_bytes), mime_type)
        return analyze_text(text, analyzer=self.name)


def extract_text(file_bytes: bytes, mime_type: str) -> str:
    """Text layer of a text/* or PDF payload.

    Raises:
        ContentAnalysisUnavailable: If a PDF cannot be opened.
    """
    if mime_type.lower() != "application/pdf":
        return file_bytes.decode("utf-8", errors="replace")

    import fitz  # PyMuPDF

    try:
        with fitz.open(stream=file_bytes, filetype="pdf") as doc:
            return "\n".join(page.get_text("text") for page in doc)
    except (RuntimeError, ValueError) as e:
        raise ContentAnalysisUnavailable(f"Cannot read PDF text layer: {e}") from e


def analyze_text(text: str, analyzer: str = "pattern") -> ContentAnalysis:
    """Build a ContentAnalysis from plain text."""
    entities = extract_entities(text)
    analysis = ContentAnalysis(
        raw_text=text,
        entities=entities,
        confidence=overall_confidence(text, entities),
        temporal_classification=classify_temporal(text, entities),
        analyzer=analyzer,
    )
    logger.debug(
        "Extracted %d entities (%d kinds), confidence=%.2f",
        len(entities), len({e.type for e in entities}), analysis.confidence,
    )
    return analysis


def extract_entities(text: str) -> list[ExtractedEntity]:
    lines = [line.strip() for line in text.splitlines()]
    entities: list[ExtractedEntity] = []
    entities += _extract_amounts(lines)
    entities += _extract_dates(text)
    entities += _find_all(EMAIL_PATTERN, text, "email")
    entities += _find_all(PHONE_PATTERN, text, "phone")
    entities += _find_all(WEBSITE_PATTERN, text, "website")
    entities += _find_all(INVOICE_NUMBER_PATTERN, text, "invoice_number", need_digit=True)
    vendors = _extract_vendors(lines)
    entities += vendors
    titles = _extract_job_titles(lines)
    entities += titles
    entities += _extract_person_names(lines, {v.value for v in vendors} | {t.value for t in titles})
    entities += _extract_addresses(lines)
    entities += _extract_legal_terms(text)
    return entities


def overall_confidence(text: str, entities: list[ExtractedEntity]) -> float:
    """Base 0.5 plus bonuses per entity family; low for near-empty text."""
    if len(text.strip()) < MIN_TEXT_LENGTH:
        return 0.1
    if not entities:
        return 0.25

    kinds = {e.type for e in entities}
    confidence = 0.5
    if kinds & {"amount", "total_amount"}:
        confidence += 0.2
    if "date" in kinds:
        confidence += 0.1
    if "vendor_name" in kinds:
        confidence += 0.1
    if kinds & {"email", "phone"}:
        confidence += 0.1
    if len(kinds) >= 5:
        confidence += 0.05
    return round(min(1.0, confidence), 4)


def classify_temporal(
    text: str, entities: list[ExtractedEntity]
) -> TemporalClassification:
    lowered = text.lower()
    if re.search(r"\bmonth(ly|s)?\b|billing cycle", lowered):
        return "monthly"
    if re.search(r"\b(annual(ly)?|yearly|per year)\b", lowered):
        return "annual"
    if re.search(r"\bquarter(ly|s)?\b", lowered):
        return "quarterly"
    if re.search(r"service period|billing period", lowered):
        return "unknown"
    if sum(1 for e in entities if e.type == "date") >= 2:
        return "unknown"
    return "one_time"


def _entity(entity_type: str, value: str, numeric: float | None = None,
            confidence: float | None = None) -> ExtractedEntity:
    return ExtractedEntity(
        type=entity_type,
        value=value,
        confidence=ENTITY_CONFIDENCE[entity_type] if confidence is None else confidence,
        numeric_value=numeric,
    )


def _find_all(
    pattern: re.Pattern[str], text: str, entity_type: str, need_digit: bool = False
) -> list[ExtractedEntity]:
    seen: set[str] = set()
    found: list[ExtractedEntity] = []
    for m in pattern.finditer(text):
        value = m.group(1).strip().rstrip(".,;")
        key = value.lower()
        if key in seen or (need_digit and not any(c.isdigit() for c in value)):
            continue
        seen.add(key)
        found.append(_entity(entity_type, value))
    return found


def _extract_amounts(lines: list[str]) -> list[ExtractedEntity]:
    found: list[ExtractedEntity] = []
    for line in lines:
        is_total = bool(TOTAL_LINE_PATTERN.search(line))
        raw_values = [m.group(1) for p in CURRENCY_PATTERNS for m in p.finditer(line)]
        if not raw_values and is_total:
            raw_values = [m.group(1) for m in BARE_AMOUNT_PATTERN.finditer(line)]
        for raw in raw_values:
            value = parse_amount(raw)
            if value is None:
                continue
            found.append(_entity("total_amount" if is_total else "amount", raw, value))
    return found


def _extract_dates(text: str) -> list[ExtractedEntity]:
    seen: set[str] = set()
    found: list[ExtractedEntity] = []
    for pattern in DATE_PATTERNS:
        for m in pattern.finditer(text):
            value = re.sub(r"\s+", " ", m.group(1).strip())
            if value.lower() in seen:
                continue
            seen.add(value.lower())
            found.append(_entity("date", value))
    return found


def _extract_vendors(lines: list[str]) -> list[ExtractedEntity]:
    found: list[ExtractedEntity] = []
    seen: set[str] = set()
    for line in lines:
        m = VENDOR_LABEL_PATTERN.match(line)
        if m and m.group(1).strip().lower() not in seen:
            seen.add(m.group(1).strip().lower())
            found.append(_entity("vendor_name", m.group(1).strip(),
                                 confidence=LABELLED_VENDOR_CONFIDENCE))
    for line in [ln for ln in lines if ln][:VENDOR_SCAN_LINES]:
        if 3 < len(line) < 50 and VENDOR_MARKER_PATTERN.search(line) and line.lower() not in seen:
            seen.add(line.lower())
            found.append(_entity("vendor_name", line))
    return found


def _extract_job_titles(lines: list[str]) -> list[ExtractedEntity]:
    return [
        _entity("job_title", line)
        for line in lines
        if line and len(line) < 60 and JOB_TITLE_PATTERN.search(line)
        and not any(c.isdigit() for c in line)
    ]


def _extract_person_names(lines: list[str], exclude: set[str]) -> list[ExtractedEntity]:
    found: list[ExtractedEntity] = []
    for line in [ln for ln in lines if ln][:PERSON_SCAN_LINES]:
        if line in exclude or not PERSON_NAME_PATTERN.match(line):
            continue
        words = {w.strip(".").lower() for w in line.split()}
        if words & _NON_NAME_WORDS:
            continue
        found.append(_entity("person_name", line))
    return found


def _extract_addresses(lines: list[str]) -> list[ExtractedEntity]:
    found: list[ExtractedEntity] = []
    for line in lines:
        if not line or "@" in line or "$" in line:
            continue
        if any(p.search(line) for p in ADDRESS_PATTERNS):
            found.append(_entity("address", line))
    return found


def _extract_legal_terms(text: str) -> list[ExtractedEntity]:
    lowered = text.lower()
    return [
        _entity("legal_term", term)
        for term in LEGAL_TERMS
        if re.search(rf"\b{re.escape(term)}\b", lowered)
    ]
