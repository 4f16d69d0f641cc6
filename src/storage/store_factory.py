# src/storage/store_factory.py — v1
"""Factory for document store instantiation."""

from __future__ import annotations

from docintel.config.settings import Settings
from docintel.storage.base_document_store import BaseDocumentStore


def create_document_store(settings: Settings | None = None) -> BaseDocumentStore:
    """Instantiate the configured storage backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseDocumentStore implementation.
    """
    backend = "memory" if settings is None else settings.storage_backend

    if backend == "memory":
        from docintel.storage.memory_store import MemoryDocumentStore
        return MemoryDocumentStore()

    if backend == "json":
        from docintel.storage.json_store import JsonDocumentStore
        return JsonDocumentStore(root=settings.storage_root)  # type: ignore[union-attr]

    if backend == "sqlite":
        from docintel.storage.sqlite_store import SqliteDocumentStore
        root = settings.storage_root.expanduser()  # type: ignore[union-attr]
        return SqliteDocumentStore(db_path=root / "documents.db")

    raise ValueError(f"Unsupported storage backend: {backend!r}")
