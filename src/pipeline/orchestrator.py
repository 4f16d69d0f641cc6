# src/pipeline/orchestrator.py — v3
"""Pipeline orchestrator for one analysis call.

Stage graph:

    hashing ─────────────┐
    candidate location ──┴─> duplicate matching ─┐
    content analysis ──────> relevance scoring ──┴─> security checks -> decision -> result

Hashing, candidate location and content analysis run concurrently.
Only a hashing failure aborts the call (AnalysisFailed). Storage and
analyzer failures degrade their stage to None and add an `availability`
warning; relevance then falls back to its neutral score.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone

from docintel.api.models import AnalysisOptions, AnalysisResult, Caller, FileMeta
from docintel.config.settings import Settings
from docintel.content.base_analyzer import BaseContentAnalyzer
from docintel.content.runner import run_content_analysis
from docintel.core.errors import (
    AnalysisFailed,
    ContentAnalysisUnavailable,
    StorageUnavailable,
)
from docintel.core.models import (
    AnalysisWarning,
    ContentAnalysis,
    DuplicateAnalysis,
    Fingerprints,
    RelevanceAnalysis,
    StoredDocument,
)
from docintel.decision.fuser import decide
from docintel.decision.security import security_warnings
from docintel.duplicates.detector import DuplicateDetector
from docintel.duplicates.locator import resolve_scope
from docintel.hashing.hasher import compute_fingerprints
from docintel.logging.context import (
    clear_context,
    set_analysis_context,
    set_stage_context,
)
from docintel.pipeline.assembler import assemble
from docintel.relevance.scorer import RelevanceScorer
from docintel.storage.base_document_store import BaseDocumentStore
from docintel.storage.models import CandidateScope

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Runs the analysis stages for one file.

    Args:
        settings: Application settings (timeouts, candidate limit, hashing).
        store: Document store queried for duplicate candidates.
        analyzer: Content analyzer. None behaves as a disabled stage.
        scorer: Relevance scorer. Defaults to the built-in profiles.
    """

    def __init__(
        self,
        settings: Settings,
        store: BaseDocumentStore,
        analyzer: BaseContentAnalyzer | None = None,
        scorer: RelevanceScorer | None = None,
    ) -> None:
        self._settings = settings
        self._detector = DuplicateDetector(store, candidate_limit=settings.candidate_limit)
        self._analyzer = analyzer
        self._scorer = scorer or RelevanceScorer()

    async def run(
        self,
        file_bytes: bytes,
        file_meta: FileMeta,
        options: AnalysisOptions,
        caller: Caller,
        exclude_id: str | None = None,
        quick: bool = False,
        now: datetime | None = None,
    ) -> AnalysisResult:
        """Analyze one file.

        Args:
            file_bytes: Raw file content.
            file_meta: Validated file metadata.
            options: Stage switches and duplicate/relevance parameters.
            caller: Company and user identity for duplicate scope.
            exclude_id: Stored document to leave out of its own candidate set.
            quick: Skip content analysis and score relevance from file metadata.
            now: Anchor of the temporal window (defaults to current UTC time).

        Raises:
            AnalysisFailed: If the file could not be fingerprinted.
            InvalidInput: If the duplicate scope has no identity.
        """
        started = time.monotonic()
        now = now or datetime.now(timezone.utc)
        set_analysis_context(uuid.uuid4().hex[:12], document_id=exclude_id)
        try:
            return await self._run_stages(
                file_bytes, file_meta, options, caller, exclude_id, quick, now, started
            )
        finally:
            clear_context()

    async def _run_stages(
        self,
        file_bytes: bytes,
        file_meta: FileMeta,
        options: AnalysisOptions,
        caller: Caller,
        exclude_id: str | None,
        quick: bool,
        now: datetime,
        started: float,
    ) -> AnalysisResult:
        scope: CandidateScope | None = None
        if options.enable_duplicate_detection:
            scope = resolve_scope(options.duplicate_scope, caller.company_id, caller.user_id)

        run_content = options.enable_content_analysis and not quick
        logger.info(
            "Analysis started: %s (%s, %d bytes) as %s%s",
            file_meta.original_name, file_meta.mime_type, file_meta.size,
            options.declared_context, " [quick]" if quick else "",
        )

        hashed, located, analyzed = await asyncio.gather(
            self._hash(file_bytes, file_meta.mime_type),
            self._locate(scope, options, exclude_id, now),
            self._analyze(file_bytes, file_meta.mime_type, run_content),
            return_exceptions=True,
        )
        for outcome in (hashed, located, analyzed):
            if isinstance(outcome, BaseException):
                raise outcome
        fingerprints: Fingerprints = hashed
        candidates, locate_warning = located
        content, content_warning = analyzed
        stage_warnings = [w for w in (locate_warning, content_warning) if w is not None]

        set_stage_context("matching")
        duplicates: DuplicateAnalysis | None = None
        if scope is not None and candidates is not None:
            duplicates = DuplicateDetector.match_candidates(
                fingerprints,
                candidates,
                scope.kind,
                options.temporal_tolerance_days,
                content=content,
                now=now,
            )

        set_stage_context("relevance")
        relevance: RelevanceAnalysis | None = None
        if options.enable_relevance_analysis:
            if quick:
                relevance = self._scorer.score_file_fit(
                    file_meta.original_name, file_meta.mime_type, options.declared_context
                )
            else:
                relevance = self._scorer.score(content, options.declared_context)

        set_stage_context("security")
        security = security_warnings(file_bytes, file_meta)

        set_stage_context("decision")
        decision = decide(duplicates, relevance, options, content, fingerprints, security)
        result = assemble(
            decision,
            fingerprints,
            started,
            content_analysis=content,
            duplicate_analysis=duplicates,
            relevance_analysis=relevance,
            stage_warnings=stage_warnings,
        )

        logger.info(
            "Analysis complete: action=%s score=%.3f duplicates=%d warnings=%d in %dms",
            result.recommended_action,
            result.overall_score,
            len(duplicates.matches) if duplicates else 0,
            len(result.warnings),
            result.processing_time_ms,
        )
        return result

    async def _hash(self, file_bytes: bytes, mime_type: str) -> Fingerprints:
        set_stage_context("hashing")
        try:
            return await asyncio.to_thread(
                compute_fingerprints,
                file_bytes,
                mime_type,
                self._settings.perceptual_hash_pdf,
            )
        except AnalysisFailed:
            logger.error("Hashing failed for %s input", mime_type)
            raise
        except Exception as e:
            logger.error("Hashing failed for %s input: %s", mime_type, e)
            raise AnalysisFailed(f"Cannot fingerprint file: {e}") from e

    async def _locate(
        self,
        scope: CandidateScope | None,
        options: AnalysisOptions,
        exclude_id: str | None,
        now: datetime,
    ) -> tuple[list[StoredDocument] | None, AnalysisWarning | None]:
        if scope is None:
            return None, None
        set_stage_context("candidates")
        try:
            candidates = await self._detector.locator.find_candidates(
                scope,
                options.temporal_tolerance_days,
                include_archived=options.include_archived,
                exclude_id=exclude_id,
                now=now,
            )
        except StorageUnavailable as e:
            logger.warning("Duplicate detection degraded: %s", e)
            return None, AnalysisWarning(
                kind="availability",
                severity="warning",
                message="Duplicate detection was unavailable; duplicates were not checked",
                details={"stage": "duplicate_detection", "error": str(e)},
            )
        return candidates, None

    async def _analyze(
        self,
        file_bytes: bytes,
        mime_type: str,
        enabled: bool,
    ) -> tuple[ContentAnalysis | None, AnalysisWarning | None]:
        if not enabled:
            return None, None
        set_stage_context("content")
        if self._analyzer is None:
            logger.info("Content analysis skipped: no analyzer configured")
            return None, None
        try:
            content = await run_content_analysis(
                self._analyzer,
                file_bytes,
                mime_type,
                self._settings.content_analysis_timeout_s,
            )
        except ContentAnalysisUnavailable as e:
            logger.warning("Content analysis degraded: %s", e)
            return None, AnalysisWarning(
                kind="availability",
                severity="warning",
                message="Content analysis was unavailable; relevance uses a neutral score",
                details={"stage": "content_analysis", "error": str(e)},
            )
        return content, None
