# src/storage/models.py — v2
"""Storage query models: CandidateScope, CandidateFilters."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from docintel.core.models import DuplicateScope, ReanalysisFields, StoredDocument


class CandidateScope(BaseModel):
    """Ownership boundary of a candidate lookup: one company or one uploader."""

    model_config = ConfigDict(frozen=True)

    kind: DuplicateScope
    owner_id: str = Field(min_length=1)

    def owns(self, document: StoredDocument) -> bool:
        if self.kind == "company":
            return document.company_id == self.owner_id
        return document.uploaded_by == self.owner_id


class CandidateFilters(BaseModel):
    """Row filters applied inside the scope."""

    model_config = ConfigDict(frozen=True)

    include_archived: bool = False
    created_after: datetime | None = None
    exclude_id: str | None = None
    limit: int = Field(default=500, gt=0)

    def accepts(self, document: StoredDocument) -> bool:
        if not self.include_archived and document.is_deleted:
            return False
        if self.exclude_id is not None and document.id == self.exclude_id:
            return False
        if self.created_after is not None and document.created_at < self.created_after:
            return False
        return True


def apply_reanalysis(document: StoredDocument, fields: ReanalysisFields) -> StoredDocument:
    """Return a copy of the document with every re-analysis field replaced."""
    return document.model_copy(
        update={
            "content_analysis": fields.content_analysis,
            "relevance_score": fields.relevance_score,
            "duplicate_analysis": fields.duplicate_analysis,
            "perceptual_hash": fields.perceptual_hash,
        }
    )
