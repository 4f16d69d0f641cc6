# tests/unit/duplicates/test_unit_matcher.py — v1
"""Tests for duplicates/matcher.py — exact, visual and content rules."""

from __future__ import annotations

from datetime import timedelta

from docintel.core.models import ContentAnalysis, ExtractedEntity, Fingerprints
from docintel.duplicates.matcher import (
    CONTENT_MAX_CONFIDENCE,
    EXACT_CONFIDENCE,
    VISUAL_CONFIDENCE,
    content_similarity,
    has_recurring_keywords,
    match,
)

PHASH = "ffff0000ffff0000"
PHASH_NEAR = "ffff0000ffff0003"  # 2 bits away
PHASH_FAR = "0000ffff0000ffff"   # 64 bits away


def _entity(kind: str, value: str, numeric: float | None = None) -> ExtractedEntity:
    return ExtractedEntity(type=kind, value=value, confidence=0.9, numeric_value=numeric)


def _content(*entities: ExtractedEntity, text: str = "") -> ContentAnalysis:
    return ContentAnalysis(raw_text=text, entities=list(entities), confidence=0.8)


RECEIPT_CONTENT = _content(
    _entity("vendor_name", "Corner Coffee Company"),
    _entity("total_amount", "$8.37", 8.37),
    _entity("date", "2026-02-27"),
)


class TestExactRule:
    def test_identical_checksum(self, make_document):
        doc = make_document("doc-a", checksum="abc")
        result = match(Fingerprints(checksum="abc"), [doc])
        assert len(result) == 1
        assert result[0].match_type == "exact"
        assert result[0].confidence == EXACT_CONFIDENCE
        assert result[0].hash_distance is None

    def test_exact_with_phash_reports_zero_distance(self, make_document):
        doc = make_document("doc-a", checksum="abc", perceptual_hash=PHASH_FAR)
        fp = Fingerprints(checksum="abc", perceptual_hash=PHASH, perceptual_status="computed")
        result = match(fp, [doc])
        assert result[0].match_type == "exact"
        assert result[0].hash_distance == 0

    def test_different_checksum_no_other_signal(self, make_document):
        assert match(Fingerprints(checksum="abc"), [make_document("doc-a")]) == []


class TestVisualRule:
    def test_near_hash(self, make_document):
        doc = make_document("doc-a", perceptual_hash=PHASH_NEAR)
        fp = Fingerprints(checksum="new", perceptual_hash=PHASH, perceptual_status="computed")
        result = match(fp, [doc])
        assert result[0].match_type == "visual"
        assert result[0].confidence == VISUAL_CONFIDENCE
        assert result[0].hash_distance == 2

    def test_far_hash(self, make_document):
        doc = make_document("doc-a", perceptual_hash=PHASH_FAR)
        fp = Fingerprints(checksum="new", perceptual_hash=PHASH, perceptual_status="computed")
        assert match(fp, [doc]) == []

    def test_candidate_without_hash(self, make_document):
        fp = Fingerprints(checksum="new", perceptual_hash=PHASH, perceptual_status="computed")
        assert match(fp, [make_document("doc-a")]) == []


class TestContentRule:
    def test_agreeing_entities(self, make_document):
        doc = make_document("doc-a", content_analysis=RECEIPT_CONTENT)
        new = _content(
            _entity("vendor_name", "CORNER COFFEE CO."),
            _entity("total_amount", "8.37", 8.37),
            _entity("date", "Feb 27, 2026"),
        )
        result = match(Fingerprints(checksum="new"), [doc], content=new)
        assert result[0].match_type == "content"
        assert result[0].confidence == CONTENT_MAX_CONFIDENCE
        assert set(result[0].matched_entities) == {"vendor_name", "total_amount", "date"}

    def test_content_never_reaches_visual(self, make_document):
        doc = make_document("doc-a", content_analysis=RECEIPT_CONTENT)
        result = match(Fingerprints(checksum="new"), [doc], content=RECEIPT_CONTENT)
        assert result[0].confidence < VISUAL_CONFIDENCE

    def test_disagreeing_amount_lowers_fraction(self):
        new = _content(
            _entity("vendor_name", "Corner Coffee Company"),
            _entity("total_amount", "$9.99", 9.99),
            _entity("date", "2026-02-27"),
        )
        fraction, agreed = content_similarity(new, RECEIPT_CONTENT)
        assert round(fraction, 4) == round(2 / 3, 4)
        assert agreed == ["vendor_name", "date"]

    def test_too_few_comparable_types(self):
        new = _content(_entity("vendor_name", "Corner Coffee Company"))
        assert content_similarity(new, RECEIPT_CONTENT) == (0.0, [])

    def test_below_threshold_dropped(self, make_document):
        doc = make_document("doc-a", content_analysis=RECEIPT_CONTENT)
        new = _content(
            _entity("vendor_name", "Zylo Labs"),
            _entity("total_amount", "$1.00", 1.0),
            _entity("date", "2026-02-27"),
        )
        assert match(Fingerprints(checksum="new"), [doc], content=new) == []


class TestOrdering:
    def test_confidence_then_newest(self, make_document, fixed_now):
        old_exact = make_document("old", checksum="abc", created_at=fixed_now - timedelta(days=5))
        new_exact = make_document("new", checksum="abc", created_at=fixed_now - timedelta(days=1))
        visual = make_document(
            "vis", perceptual_hash=PHASH_NEAR, created_at=fixed_now - timedelta(hours=1)
        )
        fp = Fingerprints(checksum="abc", perceptual_hash=PHASH, perceptual_status="computed")
        result = match(fp, [visual, old_exact, new_exact], now=fixed_now)
        assert [m.candidate_id for m in result] == ["new", "old", "vis"]


class TestRecurring:
    def test_keywords(self):
        assert has_recurring_keywords("Your MONTHLY statement")
        assert not has_recurring_keywords("billing address")
        assert not has_recurring_keywords("one coffee please")

    def test_monthly_bill_flagged(self, make_document, fixed_now):
        doc = make_document(
            "last-month",
            content_analysis=RECEIPT_CONTENT,
            created_at=fixed_now - timedelta(days=29),
        )
        new = RECEIPT_CONTENT.model_copy(update={"raw_text": "Monthly statement"})
        result = match(Fingerprints(checksum="new"), [doc], content=new, now=fixed_now)
        assert result[0].recurring is True

    def test_outside_period_not_flagged(self, make_document, fixed_now):
        doc = make_document(
            "yesterday",
            content_analysis=RECEIPT_CONTENT,
            created_at=fixed_now - timedelta(days=1),
        )
        new = RECEIPT_CONTENT.model_copy(update={"raw_text": "Monthly statement"})
        result = match(Fingerprints(checksum="new"), [doc], content=new, now=fixed_now)
        assert result[0].recurring is False
