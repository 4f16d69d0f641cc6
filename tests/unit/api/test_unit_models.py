# tests/unit/api/test_unit_models.py — v2
"""Tests for api/models.py — FileMeta, AnalysisOptions, Caller, AnalysisResult."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from docintel.api.models import AnalysisOptions, AnalysisResult, Caller, FileMeta


class TestFileMeta:
    def test_normalisation(self):
        meta = FileMeta(original_name="Scan.PDF", mime_type=" Application/PDF ", size=10, extension=".PDF")
        assert meta.mime_type == "application/pdf"
        assert meta.extension == "pdf"

    def test_resolved_extension_from_name(self):
        meta = FileMeta(original_name="receipt.Final.JPG", mime_type="image/jpeg", size=1)
        assert meta.resolved_extension == "jpg"

    def test_no_extension(self):
        assert FileMeta(original_name="README", mime_type="text/plain", size=1).resolved_extension == ""

    def test_negative_size(self):
        with pytest.raises(ValidationError):
            FileMeta(original_name="a.pdf", mime_type="application/pdf", size=-1)

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            FileMeta(original_name="a.pdf", mime_type="application/pdf", size=1, owner="x")


class TestAnalysisOptions:
    def test_defaults(self):
        options = AnalysisOptions()
        assert options.declared_context == "generic_business"
        assert options.enable_duplicate_detection
        assert options.enable_relevance_analysis
        assert options.enable_content_analysis
        assert options.duplicate_scope == "company"
        assert options.temporal_tolerance_days == 30
        assert not options.strict_relevance
        assert not options.include_archived

    @pytest.mark.parametrize("days", [0, 366])
    def test_tolerance_range(self, days):
        with pytest.raises(ValidationError):
            AnalysisOptions(temporal_tolerance_days=days)

    def test_unknown_context(self):
        with pytest.raises(ValidationError):
            AnalysisOptions(declared_context="holiday_photo")

    def test_unknown_key(self):
        with pytest.raises(ValidationError):
            AnalysisOptions(enable_ocr=True)


class TestCaller:
    def test_requires_identity(self):
        with pytest.raises(ValidationError):
            Caller(company_id="", user_id="u")


class TestAnalysisResult:
    def test_frozen(self):
        result = AnalysisResult(
            overall_score=0.5,
            recommended_action="accept",
            checksum="abc",
            processing_time_ms=3,
            analysis_timestamp=datetime(2026, 3, 1, tzinfo=timezone.utc),
        )
        with pytest.raises(ValidationError):
            result.recommended_action = "reject"

    def test_json_round_trip_shape(self):
        result = AnalysisResult(
            overall_score=0.5,
            recommended_action="warn",
            checksum="abc",
            processing_time_ms=0,
            analysis_timestamp=datetime(2026, 3, 1, tzinfo=timezone.utc),
        )
        data = result.model_dump(mode="json")
        assert data["duplicate_analysis"] is None
        assert data["warnings"] == []
        assert data["recommended_action"] == "warn"
