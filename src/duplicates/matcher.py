# src/duplicates/matcher.py — v1
"""Duplicate matcher: classify each candidate against the new file.

Rules are tried in order per candidate and the first that fires wins:

    exact    identical checksum                       confidence 1.0
    visual   perceptual hash distance < 10 of 64 bits confidence 0.8
    content  enough salient entities agree            confidence <= 0.75

A content match never reaches the confidence of a visual match, and a
visual match never reaches an exact one. Candidates that match no rule
are dropped from the output.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable

from docintel.core.models import (
    ContentAnalysis,
    DuplicateMatch,
    Fingerprints,
    StoredDocument,
)
from docintel.core.similarity import (
    amounts_equal,
    normalize_date,
    vendor_similarity,
)
from docintel.hashing.hasher import hamming_distance

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 1.0
VISUAL_CONFIDENCE = 0.8
VISUAL_DISTANCE_THRESHOLD = 10
CONTENT_MAX_CONFIDENCE = 0.75
CONTENT_SIMILARITY_THRESHOLD = 0.6
MIN_COMPARABLE_ENTITIES = 2
VENDOR_SIMILARITY_THRESHOLD = 0.8

RECURRING_PERIOD_DAYS = 30
RECURRING_KEYWORDS = (
    "monthly",
    "billing cycle",
    "service period",
    "subscription",
    "recurring",
    "bill",
    "statement",
)

SALIENT_ENTITY_TYPES = ("vendor_name", "total_amount", "date", "invoice_number", "email")


def match(
    new_fingerprints: Fingerprints,
    candidates: list[StoredDocument],
    content: ContentAnalysis | None = None,
    now: datetime | None = None,
    temporal_tolerance_days: int = 30,
) -> list[DuplicateMatch]:
    """Return matches ordered by confidence, newest candidate first on ties."""
    now = now or datetime.now(timezone.utc)
    recurring_text = content is not None and has_recurring_keywords(content.raw_text)

    matches: list[DuplicateMatch] = []
    for candidate in candidates:
        found = _match_one(new_fingerprints, candidate, content)
        if found is None:
            continue
        if recurring_text and _in_recurring_window(
            candidate.created_at, now, temporal_tolerance_days
        ):
            found = found.model_copy(update={"recurring": True})
        matches.append(found)

    matches.sort(key=lambda m: (-m.confidence, -m.created_at.timestamp()))
    logger.debug("Matched %d of %d candidates", len(matches), len(candidates))
    return matches


def has_recurring_keywords(text: str) -> bool:
    lowered = text.lower()
    return any(re.search(rf"\b{re.escape(k)}\b", lowered) for k in RECURRING_KEYWORDS)


def _match_one(
    fingerprints: Fingerprints,
    candidate: StoredDocument,
    content: ContentAnalysis | None,
) -> DuplicateMatch | None:
    if fingerprints.checksum == candidate.checksum:
        return DuplicateMatch(
            candidate_id=candidate.id,
            match_type="exact",
            confidence=EXACT_CONFIDENCE,
            created_at=candidate.created_at,
            hash_distance=0 if fingerprints.perceptual_hash else None,
        )

    if fingerprints.perceptual_hash and candidate.perceptual_hash:
        distance = hamming_distance(fingerprints.perceptual_hash, candidate.perceptual_hash)
        if distance < VISUAL_DISTANCE_THRESHOLD:
            return DuplicateMatch(
                candidate_id=candidate.id,
                match_type="visual",
                confidence=VISUAL_CONFIDENCE,
                created_at=candidate.created_at,
                hash_distance=distance,
            )

    if content is not None and candidate.content_analysis is not None:
        fraction, agreed = content_similarity(content, candidate.content_analysis)
        if fraction >= CONTENT_SIMILARITY_THRESHOLD:
            return DuplicateMatch(
                candidate_id=candidate.id,
                match_type="content",
                confidence=round(CONTENT_MAX_CONFIDENCE * fraction, 4),
                created_at=candidate.created_at,
                matched_entities=agreed,
            )

    return None


def content_similarity(
    new: ContentAnalysis, stored: ContentAnalysis
) -> tuple[float, list[str]]:
    """Fraction of salient entity types present in both that agree.

    Returns (0.0, []) when fewer than MIN_COMPARABLE_ENTITIES types can
    be compared at all.
    """
    compared = 0
    agreed: list[str] = []
    for entity_type in SALIENT_ENTITY_TYPES:
        left = new.entities_of(entity_type)
        right = stored.entities_of(entity_type)
        if not left or not right:
            continue
        compared += 1
        same = _COMPARATORS.get(entity_type, _same_text)
        if any(same(a.value, a.numeric_value, b.value, b.numeric_value) for a in left for b in right):
            agreed.append(entity_type)

    if compared < MIN_COMPARABLE_ENTITIES:
        return 0.0, []
    return len(agreed) / compared, agreed


def _same_vendor(a: str, _an: float | None, b: str, _bn: float | None) -> bool:
    return vendor_similarity(a, b) > VENDOR_SIMILARITY_THRESHOLD


def _same_amount(_a: str, an: float | None, _b: str, bn: float | None) -> bool:
    return amounts_equal(an, bn)


def _same_date(a: str, _an: float | None, b: str, _bn: float | None) -> bool:
    return normalize_date(a) == normalize_date(b)


def _same_text(a: str, _an: float | None, b: str, _bn: float | None) -> bool:
    return re.sub(r"\s+", "", a).lower() == re.sub(r"\s+", "", b).lower()


_COMPARATORS: dict[str, Callable[[str, float | None, str, float | None], bool]] = {
    "vendor_name": _same_vendor,
    "total_amount": _same_amount,
    "date": _same_date,
}


def _in_recurring_window(
    created_at: datetime, now: datetime, temporal_tolerance_days: int
) -> bool:
    """Candidate age falls within one billing period, give or take half the tolerance."""
    age_days = (now - created_at).total_seconds() / 86400
    half = temporal_tolerance_days / 2
    return RECURRING_PERIOD_DAYS - half <= age_days <= RECURRING_PERIOD_DAYS + half
