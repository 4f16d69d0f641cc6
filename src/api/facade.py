# src/api/facade.py — v2
"""Public API facade: entry points used by the upload workflow.

Usage:
    from docintel.api.facade import analyze_document
    result = await analyze_document(data, file_meta, options, caller, store=store)

Only InvalidInput (bad metadata, options, or ids) and AnalysisFailed
(file could not be fingerprinted) escape these functions. Every other
failure degrades a stage and is reported in result.warnings.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from docintel.api.models import AnalysisOptions, AnalysisResult, Caller, FileMeta
from docintel.config.settings import Settings
from docintel.content.base_analyzer import BaseContentAnalyzer
from docintel.content.pattern_analyzer import PatternContentAnalyzer
from docintel.core.errors import (
    AnalysisFailed,
    DocumentNotFound,
    InvalidInput,
    StorageUnavailable,
)
from docintel.core.models import (
    AnalysisWarning,
    DocumentContext,
    ReanalysisFields,
    StoredDocument,
)
from docintel.duplicates.detector import DuplicateDetector
from docintel.duplicates.models import BatchDuplicateReport
from docintel.pipeline.orchestrator import PipelineOrchestrator
from docintel.storage.base_document_store import BaseDocumentStore
from docintel.storage.store_factory import create_document_store

logger = logging.getLogger(__name__)


async def quick_analysis(
    file_bytes: bytes,
    file_meta: FileMeta | dict[str, Any],
    declared_context: DocumentContext,
    company_id: str,
    user_id: str,
    store: BaseDocumentStore | None = None,
    settings: Settings | None = None,
) -> AnalysisResult:
    """Low-latency pre-upload check: duplicates plus file-fit relevance.

    Content analysis is skipped; relevance is scored from the file's
    type and name only.
    """
    settings = settings or Settings()
    meta = _validate_file(file_bytes, file_meta, settings)
    options = _build_options(
        {
            "declared_context": declared_context,
            "enable_content_analysis": False,
            "duplicate_scope": settings.default_duplicate_scope,
            "temporal_tolerance_days": settings.default_temporal_tolerance_days,
        }
    )
    caller = _build_caller(company_id, user_id)
    orchestrator = PipelineOrchestrator(settings, store or create_document_store(settings))
    return await orchestrator.run(file_bytes, meta, options, caller, quick=True)


async def analyze_document(
    file_bytes: bytes,
    file_meta: FileMeta | dict[str, Any],
    options: AnalysisOptions | dict[str, Any] | None,
    caller: Caller,
    store: BaseDocumentStore | None = None,
    analyzer: BaseContentAnalyzer | None = None,
    settings: Settings | None = None,
    exclude_id: str | None = None,
) -> AnalysisResult:
    """Run every enabled stage on one file.

    Args:
        file_bytes: Raw file content.
        file_meta: Original name, mime type, size and extension.
        options: Stage switches; None uses the defaults.
        caller: Company/user identity from the authorization layer.
        store: Document store for duplicate candidates. Defaults to the
            backend selected by settings.
        analyzer: Content analyzer. Defaults to PatternContentAnalyzer.
        settings: Global settings. Loaded from .env if None.
        exclude_id: Stored document to leave out of duplicate candidates.

    Returns:
        Immutable AnalysisResult.

    Raises:
        InvalidInput: Malformed metadata, unsupported type, bad options.
        AnalysisFailed: The file could not be fingerprinted.
    """
    settings = settings or Settings()
    meta = _validate_file(file_bytes, file_meta, settings)
    resolved = _build_options(options, settings)
    orchestrator = PipelineOrchestrator(
        settings,
        store or create_document_store(settings),
        analyzer=analyzer or PatternContentAnalyzer(),
    )
    return await orchestrator.run(file_bytes, meta, resolved, caller, exclude_id=exclude_id)


async def reanalyze_document(
    document_id: str,
    options: AnalysisOptions | dict[str, Any] | None,
    caller: Caller,
    store: BaseDocumentStore | None = None,
    analyzer: BaseContentAnalyzer | None = None,
    settings: Settings | None = None,
) -> AnalysisResult:
    """Re-run the analysis of a stored document and persist it.

    The document is excluded from its own candidate set. Content,
    relevance score, duplicate analysis and perceptual hash are replaced
    in one persist call; a failed write is reported as a warning.

    Raises:
        DocumentNotFound: Unknown id, or owned by another company.
        AnalysisFailed: The stored bytes could not be read or hashed.
    """
    settings = settings or Settings()
    store = store or create_document_store(settings)
    resolved = _build_options(options, settings)

    try:
        document = await store.get_by_id(document_id)
        if document.company_id != caller.company_id:
            raise DocumentNotFound(document_id)
        file_bytes = await store.get_file_bytes(document_id)
    except StorageUnavailable as e:
        raise AnalysisFailed(f"Cannot load stored document {document_id}: {e}") from e

    meta = FileMeta(
        original_name=document.original_name or document.id,
        mime_type=document.mime_type,
        size=len(file_bytes),
    )
    orchestrator = PipelineOrchestrator(
        settings, store, analyzer=analyzer or PatternContentAnalyzer()
    )
    result = await orchestrator.run(
        file_bytes, meta, resolved, caller, exclude_id=document.id
    )

    fields = ReanalysisFields(
        content_analysis=result.content_analysis,
        relevance_score=(
            result.relevance_analysis.overall_score if result.relevance_analysis else None
        ),
        duplicate_analysis=result.duplicate_analysis,
        perceptual_hash=result.perceptual_hash,
    )
    try:
        await store.persist_analysis(document.id, fields)
    except StorageUnavailable as e:
        logger.warning("Re-analysis of %s not persisted: %s", document.id, e)
        return result.model_copy(update={"warnings": [
            *result.warnings,
            AnalysisWarning(
                kind="availability",
                severity="warning",
                message="Re-analysis results could not be saved",
                details={"stage": "persistence", "error": str(e)},
            ),
        ]})

    logger.info("Re-analysis of %s persisted", document.id)
    return result


async def detect_duplicates_across(
    document_ids: list[str],
    caller: Caller,
    temporal_tolerance_days: int | None = None,
    include_archived: bool = False,
    store: BaseDocumentStore | None = None,
    settings: Settings | None = None,
) -> BatchDuplicateReport:
    """Duplicate check for 1..20 stored documents of the caller's company.

    Raises:
        InvalidInput: Batch size or tolerance out of range.
    """
    settings = settings or Settings()
    detector = DuplicateDetector(
        store or create_document_store(settings),
        candidate_limit=settings.candidate_limit,
    )
    return await detector.check_stored_batch(
        list(document_ids),
        caller.company_id,
        temporal_tolerance_days=(
            temporal_tolerance_days
            if temporal_tolerance_days is not None
            else settings.default_temporal_tolerance_days
        ),
        include_archived=include_archived,
    )


async def register_document(
    file_bytes: bytes,
    file_meta: FileMeta | dict[str, Any],
    caller: Caller,
    result: AnalysisResult,
    store: BaseDocumentStore,
    document_id: str | None = None,
    settings: Settings | None = None,
) -> StoredDocument:
    """Store an accepted upload together with its analysis fields."""
    meta = _validate_file(file_bytes, file_meta, settings or Settings())
    document = StoredDocument(
        id=document_id or _generate_document_id(),
        company_id=caller.company_id,
        uploaded_by=caller.user_id,
        original_name=meta.original_name,
        mime_type=meta.mime_type,
        size=meta.size,
        checksum=result.checksum,
        perceptual_hash=result.perceptual_hash,
        content_analysis=result.content_analysis,
        relevance_score=(
            result.relevance_analysis.overall_score if result.relevance_analysis else None
        ),
        duplicate_analysis=result.duplicate_analysis,
        created_at=datetime.now(timezone.utc),
    )
    await store.save(document, file_bytes)
    logger.info("Stored document %s (%s)", document.id, meta.original_name)
    return document


def validate_upload(
    file_bytes: bytes, file_meta: FileMeta, settings: Settings
) -> None:
    """Reject uploads the pipeline must not analyze.

    Raises:
        AnalysisFailed: file_bytes is not a byte sequence.
        InvalidInput: Size mismatch or limit, unsupported type, blocked extension.
    """
    if not isinstance(file_bytes, (bytes, bytearray, memoryview)):
        raise AnalysisFailed(f"Unreadable file content of type {type(file_bytes).__name__}")

    actual = len(file_bytes)
    if actual == 0:
        raise InvalidInput("File is empty")
    if file_meta.size != actual:
        raise InvalidInput(f"Declared size {file_meta.size} does not match content size {actual}")
    if actual > settings.max_file_size_bytes:
        raise InvalidInput(
            f"File size {actual} exceeds the {settings.max_file_size_mb}MB limit"
        )
    if file_meta.mime_type not in settings.supported_mime_types_list:
        raise InvalidInput(f"Unsupported file type: {file_meta.mime_type}")

    blocked = set(settings.blocked_extensions_list)
    _, dot, name_ext = file_meta.original_name.rpartition(".")
    if file_meta.resolved_extension in blocked or (dot and name_ext.lower() in blocked):
        raise InvalidInput(f"File extension not allowed: {file_meta.original_name}")


def _validate_file(
    file_bytes: bytes, file_meta: FileMeta | dict[str, Any], settings: Settings
) -> FileMeta:
    if isinstance(file_meta, FileMeta):
        meta = file_meta
    else:
        try:
            meta = FileMeta(**file_meta)
        except (TypeError, ValidationError) as e:
            raise InvalidInput(f"Invalid file metadata: {e}") from e
    validate_upload(file_bytes, meta, settings)
    return meta


def _build_options(
    options: AnalysisOptions | dict[str, Any] | None,
    settings: Settings | None = None,
) -> AnalysisOptions:
    if isinstance(options, AnalysisOptions):
        return options
    values: dict[str, Any] = {}
    if settings is not None:
        values["duplicate_scope"] = settings.default_duplicate_scope
        values["temporal_tolerance_days"] = settings.default_temporal_tolerance_days
    values.update(options or {})
    try:
        return AnalysisOptions(**values)
    except (TypeError, ValidationError) as e:
        raise InvalidInput(f"Invalid analysis options: {e}") from e


def _build_caller(company_id: str, user_id: str) -> Caller:
    try:
        return Caller(company_id=company_id, user_id=user_id)
    except ValidationError as e:
        raise InvalidInput(f"Invalid caller identity: {e}") from e


def _generate_document_id() -> str:
    """Generate a unique document ID: yyyymmdd_hhmmss_{uuid4_short}."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{ts}_{uuid.uuid4().hex[:8]}"
