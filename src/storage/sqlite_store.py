# src/storage/sqlite_store.py — v2
"""SQLite-based document store (STORAGE_BACKEND=sqlite).

Uses stdlib sqlite3. Ownership, archive flag and creation time are
real columns so candidate filtering happens in SQL; the full record is
kept as JSON in `data`.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from docintel.core.errors import DocumentNotFound, StorageUnavailable
from docintel.core.models import ReanalysisFields, StoredDocument
from docintel.storage.base_document_store import BaseDocumentStore
from docintel.storage.models import CandidateFilters, CandidateScope, apply_reanalysis

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    company_id TEXT NOT NULL,
    uploaded_by TEXT NOT NULL,
    checksum TEXT NOT NULL,
    perceptual_hash TEXT,
    is_deleted INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    data TEXT NOT NULL,
    payload BLOB
);
CREATE INDEX IF NOT EXISTS idx_documents_company ON documents(company_id, created_at);
CREATE INDEX IF NOT EXISTS idx_documents_uploader ON documents(uploaded_by, created_at);
CREATE INDEX IF NOT EXISTS idx_documents_checksum ON documents(checksum);
"""

_SCOPE_COLUMNS = {"company": "company_id", "user": "uploaded_by"}


class SqliteDocumentStore(BaseDocumentStore):
    """SQLite-backed document store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path))
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise StorageUnavailable(f"Cannot open {self._db_path}: {e}") from e

    async def get_candidates(
        self, scope: CandidateScope, filters: CandidateFilters
    ) -> list[StoredDocument]:
        query = f"SELECT data FROM documents WHERE {_SCOPE_COLUMNS[scope.kind]} = ?"
        params: list[object] = [scope.owner_id]

        if not filters.include_archived:
            query += " AND is_deleted = 0"
        if filters.exclude_id is not None:
            query += " AND id != ?"
            params.append(filters.exclude_id)
        if filters.created_after is not None:
            query += " AND created_at >= ?"
            params.append(_to_column(filters.created_after))

        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(filters.limit)

        try:
            rows = self._conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Candidate query failed: {e}") from e

        documents: list[StoredDocument] = []
        for (data,) in rows:
            try:
                documents.append(StoredDocument(**json.loads(data)))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.warning("Skipping corrupt document row: %s", e)
        return documents

    async def get_by_id(self, document_id: str) -> StoredDocument:
        row = self._fetch_one("SELECT data FROM documents WHERE id = ?", document_id)
        try:
            return StoredDocument(**json.loads(row[0]))
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageUnavailable(f"Corrupt record for {document_id}: {e}") from e

    async def get_file_bytes(self, document_id: str) -> bytes:
        row = self._fetch_one("SELECT payload FROM documents WHERE id = ?", document_id)
        return bytes(row[0] or b"")

    async def persist_analysis(
        self, document_id: str, fields: ReanalysisFields
    ) -> None:
        updated = apply_reanalysis(await self.get_by_id(document_id), fields)
        try:
            with self._conn:
                self._conn.execute(
                    "UPDATE documents SET data = ?, perceptual_hash = ? WHERE id = ?",
                    (updated.model_dump_json(), updated.perceptual_hash, document_id),
                )
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot persist analysis for {document_id}: {e}") from e

    async def save(self, document: StoredDocument, file_bytes: bytes) -> None:
        try:
            with self._conn:
                self._conn.execute(
                    """INSERT OR REPLACE INTO documents
                       (id, company_id, uploaded_by, checksum, perceptual_hash,
                        is_deleted, created_at, data, payload)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        document.id,
                        document.company_id,
                        document.uploaded_by,
                        document.checksum,
                        document.perceptual_hash,
                        int(document.is_deleted),
                        _to_column(document.created_at),
                        document.model_dump_json(),
                        sqlite3.Binary(bytes(file_bytes)),
                    ),
                )
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot save document {document.id}: {e}") from e

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def _fetch_one(self, query: str, document_id: str) -> tuple:
        try:
            row = self._conn.execute(query, (document_id,)).fetchone()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Lookup of {document_id} failed: {e}") from e
        if row is None:
            raise DocumentNotFound(document_id)
        return row


def _to_column(value: datetime) -> str:
    """UTC ISO-8601 text; lexical order equals chronological order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")
