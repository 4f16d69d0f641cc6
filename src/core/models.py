# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

# === ENUMERATIONS ===

DocumentContext = Literal[
    "expense_receipt",
    "vendor_document",
    "customer_document",
    "business_card",
    "invoice",
    "contract",
    "generic_business",
]
DOCUMENT_CONTEXTS: tuple[str, ...] = get_args(DocumentContext)

EntityType = Literal[
    "amount",
    "total_amount",
    "date",
    "vendor_name",
    "person_name",
    "job_title",
    "phone",
    "email",
    "address",
    "website",
    "invoice_number",
    "legal_term",
]

TemporalClassification = Literal["one_time", "monthly", "quarterly", "annual", "unknown"]
DuplicateScope = Literal["company", "user"]
MatchType = Literal["exact", "visual", "content"]
RecommendedAction = Literal["accept", "warn", "reject"]
WarningKind = Literal["duplicate", "relevance", "quality", "availability", "security"]
Severity = Literal["info", "warning", "error"]


# === CONTENT ANALYSIS ===


class ExtractedEntity(BaseModel):
    """One business entity found by a content analyzer."""

    model_config = ConfigDict(frozen=True)

    type: EntityType
    value: str
    confidence: float = Field(ge=0.0, le=1.0)
    numeric_value: float | None = None


class ContentAnalysis(BaseModel):
    """Structured extraction returned by a content analyzer."""

    model_config = ConfigDict(frozen=True)

    raw_text: str = ""
    entities: list[ExtractedEntity] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    temporal_classification: TemporalClassification = "unknown"
    analyzer: str = "unknown"

    def entities_of(self, entity_type: str) -> list[ExtractedEntity]:
        return [e for e in self.entities if e.type == entity_type]

    def strength(self, entity_type: str) -> float:
        """Highest confidence among entities of this type (0.0 when absent)."""
        return max((e.confidence for e in self.entities_of(entity_type)), default=0.0)


# === FINGERPRINTS ===


class Fingerprints(BaseModel):
    """Exact and perceptual fingerprints of one file."""

    model_config = ConfigDict(frozen=True)

    checksum: str
    perceptual_hash: str | None = None
    perceptual_status: Literal["computed", "not_applicable", "failed"] = "not_applicable"


# === DUPLICATES ===


class DuplicateMatch(BaseModel):
    """Relationship between the analyzed file and one stored candidate."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    match_type: MatchType
    confidence: float = Field(ge=0.0, le=1.0)
    created_at: datetime
    hash_distance: int | None = None
    matched_entities: list[str] = Field(default_factory=list)
    recurring: bool = False


class DuplicateAnalysis(BaseModel):
    """Outcome of one duplicate check: ordered matches plus its bounds."""

    model_config = ConfigDict(frozen=True)

    matches: list[DuplicateMatch] = Field(default_factory=list)
    candidates_checked: int = 0
    scope: DuplicateScope = "company"
    temporal_tolerance_days: int = 30

    @property
    def has_duplicates(self) -> bool:
        return bool(self.matches)

    @property
    def top_confidence(self) -> float:
        return self.matches[0].confidence if self.matches else 0.0

    @property
    def exact_match(self) -> bool:
        return any(m.match_type == "exact" for m in self.matches)


# === RELEVANCE ===


class MismatchWarning(BaseModel):
    """Disagreement between extracted content and the declared context."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["missing_expected", "foreign_context", "personal_content"]
    severity: Severity = "warning"
    message: str
    entity: str | None = None
    suggested_context: DocumentContext | None = None


class RelevanceAnalysis(BaseModel):
    """How well a file fits its declared business context."""

    model_config = ConfigDict(frozen=True)

    declared_context: DocumentContext
    overall_score: float = Field(ge=0.0, le=1.0)
    mismatch_warnings: list[MismatchWarning] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    context_scores: dict[str, float] = Field(default_factory=dict)
    best_matching_context: DocumentContext | None = None
    basis: Literal["content", "file_metadata", "neutral"] = "content"


# === STORED DOCUMENTS ===


class StoredDocument(BaseModel):
    """A persisted file record as seen by duplicate detection."""

    id: str
    company_id: str
    uploaded_by: str
    original_name: str = ""
    mime_type: str = "application/octet-stream"
    size: int = 0
    checksum: str
    perceptual_hash: str | None = None
    content_analysis: ContentAnalysis | None = None
    relevance_score: float | None = None
    duplicate_analysis: DuplicateAnalysis | None = None
    is_deleted: bool = False
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def ensure_aware(cls, v: datetime) -> datetime:  # noqa: N805
        """Naive timestamps are taken as UTC so window comparisons never mix kinds."""
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)

    def fingerprints(self) -> Fingerprints:
        return Fingerprints(
            checksum=self.checksum,
            perceptual_hash=self.perceptual_hash,
            perceptual_status="computed" if self.perceptual_hash else "not_applicable",
        )


class ReanalysisFields(BaseModel):
    """Fields replaced together when a stored document is re-analyzed."""

    model_config = ConfigDict(frozen=True)

    content_analysis: ContentAnalysis | None = None
    relevance_score: float | None = None
    duplicate_analysis: DuplicateAnalysis | None = None
    perceptual_hash: str | None = None


# === DECISION ===


class AnalysisWarning(BaseModel):
    """User-visible warning attached to an analysis result."""

    model_config = ConfigDict(frozen=True)

    kind: WarningKind
    severity: Severity
    message: str
    actionable: bool = False
    details: dict[str, Any] = Field(default_factory=dict)


class Decision(BaseModel):
    """Output of the decision fuser."""

    model_config = ConfigDict(frozen=True)

    recommended_action: RecommendedAction
    overall_score: float = Field(ge=0.0, le=1.0)
    warnings: list[AnalysisWarning] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
