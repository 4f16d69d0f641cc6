# src/api/models.py — v2
"""API-level models: FileMeta, AnalysisOptions, Caller, AnalysisResult.

Options are an explicit, exhaustively typed structure with named
defaults; unknown keys are rejected.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docintel.core.models import (
    AnalysisWarning,
    ContentAnalysis,
    DocumentContext,
    DuplicateAnalysis,
    DuplicateScope,
    RecommendedAction,
    RelevanceAnalysis,
)
from docintel.duplicates.locator import MAX_TOLERANCE_DAYS, MIN_TOLERANCE_DAYS


class FileMeta(BaseModel):
    """Caller-supplied description of the uploaded file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    original_name: str = Field(min_length=1)
    mime_type: str = Field(min_length=1)
    size: int = Field(ge=0)
    extension: str = ""

    @field_validator("mime_type")
    @classmethod
    def normalize_mime(cls, v: str) -> str:  # noqa: N805
        return v.strip().lower()

    @field_validator("extension")
    @classmethod
    def normalize_extension(cls, v: str) -> str:  # noqa: N805
        return v.strip().lower().lstrip(".")

    @property
    def resolved_extension(self) -> str:
        """Declared extension, or the one on original_name."""
        if self.extension:
            return self.extension
        _, dot, ext = self.original_name.rpartition(".")
        return ext.lower() if dot else ""


class AnalysisOptions(BaseModel):
    """Per-call pipeline switches."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    declared_context: DocumentContext = "generic_business"
    enable_duplicate_detection: bool = True
    enable_relevance_analysis: bool = True
    enable_content_analysis: bool = True
    duplicate_scope: DuplicateScope = "company"
    temporal_tolerance_days: int = Field(
        default=30, ge=MIN_TOLERANCE_DAYS, le=MAX_TOLERANCE_DAYS
    )
    strict_relevance: bool = False
    include_archived: bool = False


class Caller(BaseModel):
    """Identity supplied by the authorization layer."""

    model_config = ConfigDict(frozen=True)

    company_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


class AnalysisResult(BaseModel):
    """Return value of the facade analysis calls. Immutable."""

    model_config = ConfigDict(frozen=True)

    overall_score: float = Field(ge=0.0, le=1.0)
    recommended_action: RecommendedAction
    warnings: list[AnalysisWarning] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    content_analysis: ContentAnalysis | None = None
    duplicate_analysis: DuplicateAnalysis | None = None
    relevance_analysis: RelevanceAnalysis | None = None
    perceptual_hash: str | None = None
    checksum: str
    processing_time_ms: int = Field(ge=0)
    analysis_timestamp: datetime
