# src/storage/json_store.py — v3
"""JSON file-based document store (STORAGE_BACKEND=json).

Layout under STORAGE_ROOT:
    documents/<id>.json   StoredDocument record (id percent-encoded)
    payloads/<id>.bin     original file bytes

Records are written to a temp file then renamed, so re-analysis fields
are replaced in one step.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from urllib.parse import quote

from pydantic import ValidationError

from docintel.core.errors import DocumentNotFound, StorageUnavailable
from docintel.core.models import ReanalysisFields, StoredDocument
from docintel.storage.base_document_store import BaseDocumentStore
from docintel.storage.models import CandidateFilters, CandidateScope, apply_reanalysis

logger = logging.getLogger(__name__)


class JsonDocumentStore(BaseDocumentStore):
    """File-based document store using one JSON file per document."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._documents_dir = self._root / "documents"
        self._payloads_dir = self._root / "payloads"
        try:
            self._documents_dir.mkdir(parents=True, exist_ok=True)
            self._payloads_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Cannot create store at {self._root}: {e}") from e

    async def get_candidates(
        self, scope: CandidateScope, filters: CandidateFilters
    ) -> list[StoredDocument]:
        rows = [
            doc
            for doc in self._iter_documents()
            if scope.owns(doc) and filters.accepts(doc)
        ]
        rows.sort(key=lambda d: d.created_at, reverse=True)
        return rows[: filters.limit]

    async def get_by_id(self, document_id: str) -> StoredDocument:
        path = self._record_path(document_id)
        if not path.exists():
            raise DocumentNotFound(document_id)
        try:
            return StoredDocument(**json.loads(path.read_text(encoding="utf-8")))
        except OSError as e:
            raise StorageUnavailable(f"Cannot read document {document_id}: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            raise StorageUnavailable(f"Corrupt record for {document_id}: {e}") from e

    async def get_file_bytes(self, document_id: str) -> bytes:
        path = self._payload_path(document_id)
        if not path.exists():
            raise DocumentNotFound(document_id)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageUnavailable(f"Cannot read payload {document_id}: {e}") from e

    async def persist_analysis(
        self, document_id: str, fields: ReanalysisFields
    ) -> None:
        current = await self.get_by_id(document_id)
        self._write_record(apply_reanalysis(current, fields))

    async def save(self, document: StoredDocument, file_bytes: bytes) -> None:
        try:
            self._payload_path(document.id).write_bytes(bytes(file_bytes))
        except OSError as e:
            raise StorageUnavailable(f"Cannot write payload {document.id}: {e}") from e
        self._write_record(document)

    def _iter_documents(self) -> list[StoredDocument]:
        if not self._documents_dir.is_dir():
            raise StorageUnavailable(f"Store directory missing: {self._documents_dir}")
        documents: list[StoredDocument] = []
        for path in self._documents_dir.glob("*.json"):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                documents.append(StoredDocument(**data))
            except OSError as e:
                raise StorageUnavailable(f"Cannot read {path.name}: {e}") from e
            except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
                logger.warning("Skipping corrupt document record %s: %s", path.name, e)
        return documents

    def _write_record(self, document: StoredDocument) -> None:
        path = self._record_path(document.id)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(document.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            raise StorageUnavailable(f"Cannot write document {document.id}: {e}") from e

    def _record_path(self, document_id: str) -> Path:
        return self._documents_dir / f"{_safe_key(document_id)}.json"

    def _payload_path(self, document_id: str) -> Path:
        return self._payloads_dir / f"{_safe_key(document_id)}.bin"


def _safe_key(key: str) -> str:
    """Percent-encode an id into a single path component."""
    return quote(key, safe="")
