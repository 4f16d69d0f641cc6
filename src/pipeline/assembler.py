# src/pipeline/assembler.py — v1
"""Result assembler: stage outputs + decision -> immutable AnalysisResult."""

from __future__ import annotations

import time
from datetime import datetime, timezone

from docintel.api.models import AnalysisResult
from docintel.core.models import (
    AnalysisWarning,
    ContentAnalysis,
    Decision,
    DuplicateAnalysis,
    Fingerprints,
    RelevanceAnalysis,
)


def assemble(
    decision: Decision,
    fingerprints: Fingerprints,
    started_monotonic: float,
    content_analysis: ContentAnalysis | None = None,
    duplicate_analysis: DuplicateAnalysis | None = None,
    relevance_analysis: RelevanceAnalysis | None = None,
    stage_warnings: list[AnalysisWarning] | None = None,
    now: datetime | None = None,
) -> AnalysisResult:
    """Package one analysis call.

    Decision warnings come first, followed by warnings about degraded
    stages. processing_time_ms spans from started_monotonic to now.
    """
    elapsed_ms = max(0, int((time.monotonic() - started_monotonic) * 1000))
    return AnalysisResult(
        overall_score=decision.overall_score,
        recommended_action=decision.recommended_action,
        warnings=[*decision.warnings, *(stage_warnings or [])],
        suggestions=list(decision.suggestions),
        content_analysis=content_analysis,
        duplicate_analysis=duplicate_analysis,
        relevance_analysis=relevance_analysis,
        perceptual_hash=fingerprints.perceptual_hash,
        checksum=fingerprints.checksum,
        processing_time_ms=elapsed_ms,
        analysis_timestamp=now or datetime.now(timezone.utc),
    )
