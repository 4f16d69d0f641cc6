# tests/integration/storage/test_int_store_backends.py — v2
"""Facade flows against the file-backed stores (json, sqlite)."""

from __future__ import annotations

import pytest

from docintel.api.facade import analyze_document, reanalyze_document, register_document
from docintel.config.settings import Settings
from docintel.storage.json_store import JsonDocumentStore
from docintel.storage.sqlite_store import SqliteDocumentStore
from docintel.storage.store_factory import create_document_store


@pytest.fixture(params=["json", "sqlite"])
def backend_settings(request, tmp_path) -> Settings:
    return Settings(_env_file=None, storage_backend=request.param, storage_root=tmp_path)


class TestPersistentStores:
    @pytest.mark.asyncio
    async def test_duplicate_survives_reopen(
        self, backend_settings, caller, receipt_bytes, make_text_meta
    ):
        meta = make_text_meta("receipt.txt", receipt_bytes)
        store = create_document_store(backend_settings)
        first = await analyze_document(
            receipt_bytes, meta, None, caller, store=store, settings=backend_settings
        )
        await register_document(
            receipt_bytes, meta, caller, first, store, document_id="doc-1", settings=backend_settings
        )
        if isinstance(store, SqliteDocumentStore):
            store.close()

        reopened = create_document_store(backend_settings)
        try:
            second = await analyze_document(
                receipt_bytes, meta, None, caller, store=reopened, settings=backend_settings
            )
        finally:
            if isinstance(reopened, SqliteDocumentStore):
                reopened.close()
        assert second.recommended_action == "reject"
        assert second.duplicate_analysis.matches[0].candidate_id == "doc-1"

    @pytest.mark.asyncio
    async def test_reanalysis_written_through(
        self, backend_settings, caller, invoice_bytes, make_text_meta
    ):
        meta = make_text_meta("inv.txt", invoice_bytes)
        store = create_document_store(backend_settings)
        try:
            first = await analyze_document(
                invoice_bytes, meta, None, caller, store=store, settings=backend_settings
            )
            await register_document(
                invoice_bytes, meta, caller, first, store, document_id="inv-1",
                settings=backend_settings,
            )
            result = await reanalyze_document(
                "inv-1", {"declared_context": "invoice"}, caller,
                store=store, settings=backend_settings,
            )
            stored = await store.get_by_id("inv-1")
        finally:
            if isinstance(store, SqliteDocumentStore):
                store.close()

        assert stored.relevance_score == result.relevance_analysis.overall_score
        assert stored.content_analysis == result.content_analysis
        assert stored.duplicate_analysis.matches == []


class TestJsonLayout:
    @pytest.mark.asyncio
    async def test_files_on_disk(self, tmp_path, make_document):
        store = JsonDocumentStore(root=tmp_path)
        await store.save(make_document("doc/1"), b"payload")
        assert (tmp_path / "documents" / "doc%2F1.json").is_file()
        assert (tmp_path / "payloads" / "doc%2F1.bin").read_bytes() == b"payload"
        assert not list((tmp_path / "documents").glob("*.tmp"))
