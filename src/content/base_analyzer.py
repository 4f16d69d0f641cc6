# src/content/base_analyzer.py — v1
"""Abstract content analyzer interface.

A content analyzer is an opaque OCR/AI collaborator: bytes in, raw text,
entities and a confidence out. It may fail or be slow; callers go
through content.runner, which bounds latency.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docintel.core.models import ContentAnalysis


class BaseContentAnalyzer(ABC):
    """Unified interface for content analyzers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier recorded on ContentAnalysis.analyzer."""

    @abstractmethod
    async def analyze(self, file_bytes: bytes, mime_type: str) -> ContentAnalysis:
        """Extract text and business entities.

        Raises:
            ContentAnalysisUnavailable: If this input cannot be analyzed.
        """

    def supports(self, mime_type: str) -> bool:
        """Whether analyze() can be expected to succeed for this type."""
        return True
