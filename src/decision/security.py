# src/decision/security.py — v1
"""Content-level security checks on the raw upload.

Oversized files and blocked extensions are refused by upload validation
before analysis starts. The checks here never refuse a file; they only
attach `security` warnings for the decision fuser.
"""

from __future__ import annotations

import logging

from docintel.api.models import FileMeta
from docintel.core.models import AnalysisWarning

logger = logging.getLogger(__name__)

PDF_SCRIPT_MARKERS = (b"/JavaScript", b"/JS")
MIN_MEANINGFUL_SIZE = 100


def security_warnings(file_bytes: bytes, file_meta: FileMeta) -> list[AnalysisWarning]:
    """Warnings for embedded PDF scripts and suspiciously small files."""
    warnings: list[AnalysisWarning] = []

    if file_meta.mime_type == "application/pdf" and has_pdf_script(file_bytes):
        warnings.append(AnalysisWarning(
            kind="security",
            severity="warning",
            message="PDF contains JavaScript; open it with caution",
            actionable=True,
        ))

    size = len(file_bytes)
    if size < MIN_MEANINGFUL_SIZE:
        warnings.append(AnalysisWarning(
            kind="security",
            severity="info",
            message="File is very small and may not contain meaningful content",
            actionable=True,
            details={"size": size},
        ))

    if warnings:
        logger.info("Security checks raised %d warning(s) for %s", len(warnings), file_meta.original_name)
    return warnings


def has_pdf_script(file_bytes: bytes) -> bool:
    data = bytes(file_bytes)
    return any(marker in data for marker in PDF_SCRIPT_MARKERS)
