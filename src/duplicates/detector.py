# src/duplicates/detector.py — v1
"""Duplicate detection: locate candidates, then match.

Usage:
    detector = DuplicateDetector(store)
    analysis = await detector.check(fingerprints, scope, 30, content=content)
    report = await detector.check_stored_batch(["doc-a", "doc-b"], company_id="acme")

Batch checks run every document concurrently; a document that cannot be
checked gets an `error` entry and never aborts the others.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone

from docintel.core.errors import DocumentNotFound, InvalidInput
from docintel.core.models import (
    ContentAnalysis,
    DuplicateAnalysis,
    DuplicateScope,
    Fingerprints,
    StoredDocument,
)
from docintel.duplicates import matcher
from docintel.duplicates.locator import (
    MAX_TOLERANCE_DAYS,
    MIN_TOLERANCE_DAYS,
    CandidateLocator,
    resolve_scope,
)
from docintel.duplicates.models import BatchDuplicateEntry, BatchDuplicateReport
from docintel.storage.base_document_store import BaseDocumentStore
from docintel.storage.models import CandidateScope

logger = logging.getLogger(__name__)

MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 20


class DuplicateDetector:
    """Candidate Locator + Duplicate Matcher over one document store."""

    def __init__(self, store: BaseDocumentStore, candidate_limit: int = 500) -> None:
        self._store = store
        self._locator = CandidateLocator(store, candidate_limit=candidate_limit)

    async def check(
        self,
        fingerprints: Fingerprints,
        scope: CandidateScope,
        temporal_tolerance_days: int,
        include_archived: bool = False,
        exclude_id: str | None = None,
        content: ContentAnalysis | None = None,
        now: datetime | None = None,
    ) -> DuplicateAnalysis:
        """Run one duplicate check.

        Raises:
            InvalidInput: Tolerance out of range.
            StorageUnavailable: Candidates could not be fetched.
        """
        now = now or datetime.now(timezone.utc)
        candidates = await self._locator.find_candidates(
            scope,
            temporal_tolerance_days,
            include_archived=include_archived,
            exclude_id=exclude_id,
            now=now,
        )
        return self.match_candidates(
            fingerprints, candidates, scope.kind, temporal_tolerance_days, content, now
        )

    @property
    def locator(self) -> CandidateLocator:
        return self._locator

    @staticmethod
    def match_candidates(
        fingerprints: Fingerprints,
        candidates: list[StoredDocument],
        scope_kind: DuplicateScope,
        temporal_tolerance_days: int,
        content: ContentAnalysis | None = None,
        now: datetime | None = None,
    ) -> DuplicateAnalysis:
        matches = matcher.match(
            fingerprints,
            candidates,
            content=content,
            now=now,
            temporal_tolerance_days=temporal_tolerance_days,
        )
        return DuplicateAnalysis(
            matches=matches,
            candidates_checked=len(candidates),
            scope=scope_kind,
            temporal_tolerance_days=temporal_tolerance_days,
        )

    async def check_stored_batch(
        self,
        document_ids: list[str],
        company_id: str,
        temporal_tolerance_days: int = 30,
        include_archived: bool = False,
        now: datetime | None = None,
    ) -> BatchDuplicateReport:
        """Check each stored document against the rest of its company.

        Each document is excluded from its own candidate set, so two
        byte-identical documents report each other as exact duplicates.

        Raises:
            InvalidInput: Batch size outside 1..20 or bad tolerance.
        """
        if not MIN_BATCH_SIZE <= len(document_ids) <= MAX_BATCH_SIZE:
            raise InvalidInput(
                f"document_ids must contain {MIN_BATCH_SIZE}-{MAX_BATCH_SIZE} ids, "
                f"got {len(document_ids)}"
            )
        if not company_id:
            raise InvalidInput("Missing company identity for batch duplicate check")
        if not MIN_TOLERANCE_DAYS <= temporal_tolerance_days <= MAX_TOLERANCE_DAYS:
            raise InvalidInput(
                f"temporal_tolerance_days must be within "
                f"{MIN_TOLERANCE_DAYS}..{MAX_TOLERANCE_DAYS}, got {temporal_tolerance_days}"
            )

        start = time.monotonic()
        now = now or datetime.now(timezone.utc)
        entries = await asyncio.gather(
            *(
                self._check_stored(
                    doc_id, company_id, temporal_tolerance_days, include_archived, now
                )
                for doc_id in document_ids
            )
        )

        with_duplicates = [e for e in entries if e.duplicate_count > 0]
        report = BatchDuplicateReport(
            results=list(entries),
            documents_analyzed=len(document_ids),
            documents_with_duplicates=len(with_duplicates),
            total_duplicates_found=sum(e.duplicate_count for e in with_duplicates),
            processing_time_ms=int((time.monotonic() - start) * 1000),
        )
        logger.info(
            "Batch duplicate check: %d documents, %d with duplicates, %d failed",
            report.documents_analyzed,
            report.documents_with_duplicates,
            sum(1 for e in entries if e.error),
        )
        return report

    async def _check_stored(
        self,
        document_id: str,
        company_id: str,
        temporal_tolerance_days: int,
        include_archived: bool,
        now: datetime,
    ) -> BatchDuplicateEntry:
        try:
            document = await self._store.get_by_id(document_id)
            if document.company_id != company_id:
                raise DocumentNotFound(document_id)
            if document.is_deleted and not include_archived:
                raise DocumentNotFound(document_id)

            analysis = await self.check(
                document.fingerprints(),
                resolve_scope("company", company_id, document.uploaded_by),
                temporal_tolerance_days,
                include_archived=include_archived,
                exclude_id=document.id,
                content=document.content_analysis,
                now=now,
            )
        except Exception as e:
            logger.warning(
                "Duplicate check failed for %s", document_id, exc_info=True
            )
            return BatchDuplicateEntry(document_id=document_id, error=str(e))

        return BatchDuplicateEntry(
            document_id=document_id,
            original_name=document.original_name or None,
            duplicate_analysis=analysis,
        )
