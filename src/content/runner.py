# src/content/runner.py — v1
"""Bounded invocation of a content analyzer.

Any analyzer failure, including a timeout, surfaces as
ContentAnalysisUnavailable so the pipeline can degrade that stage.
"""

from __future__ import annotations

import asyncio

from docintel.content.base_analyzer import BaseContentAnalyzer
from docintel.core.errors import ContentAnalysisUnavailable
from docintel.core.models import ContentAnalysis


async def run_content_analysis(
    analyzer: BaseContentAnalyzer,
    file_bytes: bytes,
    mime_type: str,
    timeout_s: float,
) -> ContentAnalysis:
    """Run analyzer.analyze() with a hard timeout.

    Raises:
        ContentAnalysisUnavailable: On timeout or any analyzer error.
    """
    try:
        return await asyncio.wait_for(
            analyzer.analyze(file_bytes, mime_type), timeout=timeout_s
        )
    except asyncio.TimeoutError as e:
        raise ContentAnalysisUnavailable(
            f"Content analyzer '{analyzer.name}' timed out after {timeout_s:.1f}s"
        ) from e
    except ContentAnalysisUnavailable:
        raise
    except Exception as e:
        raise ContentAnalysisUnavailable(
            f"Content analyzer '{analyzer.name}' failed: {type(e).__name__}: {e}"
        ) from e
