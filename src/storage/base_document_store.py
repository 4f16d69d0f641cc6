# src/storage/base_document_store.py — v1
"""Abstract document store interface.

Backends raise StorageUnavailable for I/O failures and DocumentNotFound
for unknown ids. All reads must be safe under concurrent callers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docintel.core.models import ReanalysisFields, StoredDocument
from docintel.storage.models import CandidateFilters, CandidateScope


class BaseDocumentStore(ABC):
    """Unified interface for document storage backends."""

    @abstractmethod
    async def get_candidates(
        self, scope: CandidateScope, filters: CandidateFilters
    ) -> list[StoredDocument]:
        """Documents inside the scope that pass the filters, newest first."""

    @abstractmethod
    async def get_by_id(self, document_id: str) -> StoredDocument:
        """Fetch one document."""

    @abstractmethod
    async def get_file_bytes(self, document_id: str) -> bytes:
        """Fetch the stored payload of one document."""

    @abstractmethod
    async def persist_analysis(
        self, document_id: str, fields: ReanalysisFields
    ) -> None:
        """Replace all re-analysis fields of a document in one write."""

    @abstractmethod
    async def save(self, document: StoredDocument, file_bytes: bytes) -> None:
        """Insert or replace a document and its payload."""
