# tests/unit/decision/test_unit_security.py — v1
"""Tests for decision/security.py — embedded PDF scripts and tiny files."""

from __future__ import annotations

import pytest

from docintel.api.models import FileMeta
from docintel.decision.security import (
    MIN_MEANINGFUL_SIZE,
    has_pdf_script,
    security_warnings,
)

PDF_BODY = b"%PDF-1.7\n1 0 obj <</Type/Catalog/Pages 2 0 R>> endobj\n" + b"%" * 80
SCRIPTED_PDF = PDF_BODY + b"3 0 obj <</S/JavaScript/JS(app.alert)>> endobj\n%%EOF"


def _meta(data: bytes, mime_type: str = "application/pdf", name: str = "doc.pdf") -> FileMeta:
    return FileMeta(original_name=name, mime_type=mime_type, size=len(data))


class TestPdfScripts:
    @pytest.mark.parametrize("marker", [b"/JS", b"/JavaScript"])
    def test_marker_detected(self, marker):
        assert has_pdf_script(PDF_BODY + marker)

    def test_plain_pdf(self):
        assert not has_pdf_script(PDF_BODY)

    def test_scripted_pdf_warns(self):
        warnings = security_warnings(SCRIPTED_PDF, _meta(SCRIPTED_PDF))
        assert len(warnings) == 1
        assert warnings[0].kind == "security"
        assert warnings[0].severity == "warning"
        assert warnings[0].actionable

    def test_markers_ignored_outside_pdf(self, receipt_bytes):
        data = receipt_bytes + b"/JavaScript"
        assert security_warnings(data, _meta(data, "text/plain", "r.txt")) == []


class TestTinyFiles:
    def test_below_threshold_is_info(self):
        data = b"Total $8.37"
        warnings = security_warnings(data, _meta(data, "text/plain", "t.txt"))
        assert [w.severity for w in warnings] == ["info"]
        assert warnings[0].details == {"size": len(data)}

    def test_threshold_is_exclusive(self):
        data = b"x" * MIN_MEANINGFUL_SIZE
        assert security_warnings(data, _meta(data, "text/plain", "t.txt")) == []

    def test_both_checks_combine(self):
        data = b"%PDF /JS"
        assert [w.severity for w in security_warnings(data, _meta(data))] == ["warning", "info"]
