# src/storage/memory_store.py — v1
"""In-process document store (STORAGE_BACKEND=memory).

Reads return copies of the stored records, so readers never observe a
half-applied re-analysis: persist_analysis swaps the whole record.
"""

from __future__ import annotations

import logging

from docintel.core.errors import DocumentNotFound
from docintel.core.models import ReanalysisFields, StoredDocument
from docintel.storage.base_document_store import BaseDocumentStore
from docintel.storage.models import CandidateFilters, CandidateScope, apply_reanalysis

logger = logging.getLogger(__name__)


class MemoryDocumentStore(BaseDocumentStore):
    """Dict-backed store for tests and single-process deployments."""

    def __init__(self) -> None:
        self._documents: dict[str, StoredDocument] = {}
        self._payloads: dict[str, bytes] = {}

    async def get_candidates(
        self, scope: CandidateScope, filters: CandidateFilters
    ) -> list[StoredDocument]:
        rows = [
            doc
            for doc in list(self._documents.values())
            if scope.owns(doc) and filters.accepts(doc)
        ]
        rows.sort(key=lambda d: d.created_at, reverse=True)
        return [doc.model_copy() for doc in rows[: filters.limit]]

    async def get_by_id(self, document_id: str) -> StoredDocument:
        try:
            return self._documents[document_id].model_copy()
        except KeyError:
            raise DocumentNotFound(document_id) from None

    async def get_file_bytes(self, document_id: str) -> bytes:
        try:
            return self._payloads[document_id]
        except KeyError:
            raise DocumentNotFound(document_id) from None

    async def persist_analysis(
        self, document_id: str, fields: ReanalysisFields
    ) -> None:
        current = await self.get_by_id(document_id)
        self._documents[document_id] = apply_reanalysis(current, fields)
        logger.debug("Re-analysis fields replaced for %s", document_id)

    async def save(self, document: StoredDocument, file_bytes: bytes) -> None:
        self._documents[document.id] = document
        self._payloads[document.id] = bytes(file_bytes)
