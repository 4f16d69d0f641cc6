# src/duplicates/models.py — v1
"""Models for batch duplicate detection across stored documents."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from docintel.core.models import DuplicateAnalysis


class BatchDuplicateEntry(BaseModel):
    """Duplicate check outcome for one stored document of a batch."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    original_name: str | None = None
    duplicate_analysis: DuplicateAnalysis | None = None
    error: str | None = None

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicate_analysis.matches) if self.duplicate_analysis else 0


class BatchDuplicateReport(BaseModel):
    """Per-document entries, in request order, plus summary counts."""

    model_config = ConfigDict(frozen=True)

    results: list[BatchDuplicateEntry] = Field(default_factory=list)
    documents_analyzed: int = 0
    documents_with_duplicates: int = 0
    total_duplicates_found: int = 0
    processing_time_ms: int = 0
