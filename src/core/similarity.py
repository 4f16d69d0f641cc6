# src/core/similarity.py — v3
"""Similarity helpers for extracted business entities.

Vendor names are compared after normalisation (case, punctuation and
legal-form suffixes removed) with difflib's ratio; dates are compared on
their parsed calendar day; amounts within one cent are equal.
"""

from __future__ import annotations

import re
from datetime import datetime
from difflib import SequenceMatcher

VENDOR_SUFFIXES = (
    "incorporated", "inc", "llc", "ltd", "limited", "corp", "corporation",
    "co", "company", "gmbh", "plc", "sa", "sarl", "bv", "pty",
)

AMOUNT_TOLERANCE = 0.01

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%d.%m.%Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%B %d %Y",
    "%d %B %Y",
)


def normalize_vendor(name: str) -> str:
    """Lowercase, strip punctuation and legal-form suffixes."""
    if not name:
        return ""
    n = name.lower().strip()
    n = re.sub(r"[.,;:!@#$%^&*()\[\]{}|\\/<>\"']", " ", n)
    n = re.sub(r"\s+", " ", n).strip()
    for suffix in VENDOR_SUFFIXES:
        n = re.sub(rf"\b{re.escape(suffix)}\b", "", n)
    return re.sub(r"\s+", " ", n).strip()


def vendor_similarity(a: str, b: str) -> float:
    """Normalised similarity between two vendor names (0.0 - 1.0)."""
    if not a or not b:
        return 0.0
    na, nb = normalize_vendor(a), normalize_vendor(b)
    if not na or not nb:
        return 0.0
    if na == nb:
        return 1.0
    return SequenceMatcher(None, na, nb).ratio()


def amounts_equal(a: float | None, b: float | None) -> bool:
    if a is None or b is None:
        return False
    return abs(a - b) < AMOUNT_TOLERANCE


def normalize_date(raw: str) -> str:
    """ISO day for a recognised date string, else the trimmed lowercase text."""
    text = re.sub(r"\s+", " ", raw.strip())
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    return text.lower()


def parse_amount(raw: str) -> float | None:
    """Parse '1,234.56' style amounts; None when not numeric."""
    cleaned = re.sub(r"[^\d.\-]", "", raw.replace(",", ""))
    if not cleaned or cleaned in {".", "-"}:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None
