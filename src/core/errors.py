# src/core/errors.py — v1
"""Error taxonomy for the document intelligence pipeline.

Only InvalidInput and AnalysisFailed reach callers of the public API.
StorageUnavailable and ContentAnalysisUnavailable are raised by
collaborators and absorbed by the orchestrator as degraded stages.
"""

from __future__ import annotations


class DocumentIntelligenceError(Exception):
    """Base class for all docintel errors."""


class InvalidInput(DocumentIntelligenceError):
    """Malformed metadata, unsupported type, or out-of-range option."""


class DocumentNotFound(InvalidInput):
    """A document id does not resolve to a stored document."""

    def __init__(self, document_id: str) -> None:
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}")


class StorageUnavailable(DocumentIntelligenceError):
    """Candidate lookup or persistence against the backing store failed."""


class ContentAnalysisUnavailable(DocumentIntelligenceError):
    """The content analyzer failed, timed out, or cannot read this input."""


class AnalysisFailed(DocumentIntelligenceError):
    """The hasher could not run; nothing downstream is meaningful."""
