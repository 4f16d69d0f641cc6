# tests/unit/storage/test_unit_stores.py — v2
"""Tests for the document store backends, run against every implementation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from docintel.config.settings import Settings
from docintel.core.errors import DocumentNotFound, StorageUnavailable
from docintel.core.models import ContentAnalysis, ReanalysisFields
from docintel.storage.json_store import JsonDocumentStore
from docintel.storage.memory_store import MemoryDocumentStore
from docintel.storage.models import CandidateFilters, CandidateScope
from docintel.storage.sqlite_store import SqliteDocumentStore
from docintel.storage.store_factory import create_document_store

ACME = CandidateScope(kind="company", owner_id="acme")
BASE = datetime(2026, 2, 1, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "json", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryDocumentStore()
    elif request.param == "json":
        yield JsonDocumentStore(root=tmp_path / "json")
    else:
        sqlite_store = SqliteDocumentStore(db_path=tmp_path / "docs.db")
        yield sqlite_store
        sqlite_store.close()


class TestRoundTrip:
    @pytest.mark.asyncio
    async def test_save_and_get(self, store, make_document):
        doc = make_document("doc-1", original_name="receipt.pdf", created_at=BASE)
        await store.save(doc, b"payload")
        loaded = await store.get_by_id("doc-1")
        assert loaded == doc
        assert await store.get_file_bytes("doc-1") == b"payload"

    @pytest.mark.asyncio
    async def test_unknown_id(self, store):
        with pytest.raises(DocumentNotFound):
            await store.get_by_id("missing")
        with pytest.raises(DocumentNotFound):
            await store.get_file_bytes("missing")

    @pytest.mark.asyncio
    async def test_save_replaces(self, store, make_document):
        await store.save(make_document("doc-1", original_name="a.pdf", created_at=BASE), b"a")
        await store.save(make_document("doc-1", original_name="b.pdf", created_at=BASE), b"b")
        assert (await store.get_by_id("doc-1")).original_name == "b.pdf"
        assert await store.get_file_bytes("doc-1") == b"b"


class TestCandidates:
    @pytest.mark.asyncio
    async def test_scope_window_order(self, store, make_document):
        await store.save(make_document("old", created_at=BASE - timedelta(days=10)), b"1")
        await store.save(make_document("mid", created_at=BASE - timedelta(days=2)), b"2")
        await store.save(make_document("new", created_at=BASE - timedelta(hours=1)), b"3")
        await store.save(make_document("foreign", company_id="globex", created_at=BASE), b"4")

        rows = await store.get_candidates(
            ACME, CandidateFilters(created_after=BASE - timedelta(days=5))
        )
        assert [d.id for d in rows] == ["new", "mid"]

    @pytest.mark.asyncio
    async def test_user_scope(self, store, make_document):
        await store.save(make_document("mine", created_at=BASE), b"1")
        await store.save(make_document("theirs", uploaded_by="user-2", created_at=BASE), b"2")
        rows = await store.get_candidates(
            CandidateScope(kind="user", owner_id="user-2"), CandidateFilters()
        )
        assert [d.id for d in rows] == ["theirs"]

    @pytest.mark.asyncio
    async def test_archived_and_exclude(self, store, make_document):
        await store.save(make_document("live", created_at=BASE), b"1")
        await store.save(make_document("gone", is_deleted=True, created_at=BASE), b"2")

        assert [d.id for d in await store.get_candidates(ACME, CandidateFilters())] == ["live"]
        rows = await store.get_candidates(
            ACME, CandidateFilters(include_archived=True, exclude_id="live")
        )
        assert [d.id for d in rows] == ["gone"]

    @pytest.mark.asyncio
    async def test_limit(self, store, make_document):
        for i in range(5):
            await store.save(make_document(f"d{i}", created_at=BASE + timedelta(minutes=i)), b"x")
        rows = await store.get_candidates(ACME, CandidateFilters(limit=2))
        assert [d.id for d in rows] == ["d4", "d3"]


class TestPersistAnalysis:
    @pytest.mark.asyncio
    async def test_all_fields_replaced(self, store, make_document):
        content = ContentAnalysis(raw_text="old", confidence=0.4)
        await store.save(
            make_document(
                "doc-1",
                created_at=BASE,
                content_analysis=content,
                relevance_score=0.2,
                perceptual_hash="ffff0000ffff0000",
            ),
            b"x",
        )
        await store.persist_analysis(
            "doc-1",
            ReanalysisFields(content_analysis=None, relevance_score=0.9, perceptual_hash=None),
        )
        loaded = await store.get_by_id("doc-1")
        assert loaded.content_analysis is None
        assert loaded.relevance_score == 0.9
        assert loaded.perceptual_hash is None

    @pytest.mark.asyncio
    async def test_unknown_id(self, store):
        with pytest.raises(DocumentNotFound):
            await store.persist_analysis("missing", ReanalysisFields())


class TestIsolation:
    @pytest.mark.asyncio
    async def test_memory_reads_are_copies(self, make_document):
        store = MemoryDocumentStore()
        await store.save(make_document("doc-1", created_at=BASE), b"x")
        first = await store.get_by_id("doc-1")
        first.original_name = "mutated"
        assert (await store.get_by_id("doc-1")).original_name == ""


class TestJsonStore:
    @pytest.mark.asyncio
    async def test_corrupt_record_skipped_in_candidates(self, tmp_path, make_document):
        store = JsonDocumentStore(root=tmp_path)
        await store.save(make_document("ok", created_at=BASE), b"x")
        (tmp_path / "documents" / "bad.json").write_text("{not json", encoding="utf-8")
        rows = await store.get_candidates(ACME, CandidateFilters())
        assert [d.id for d in rows] == ["ok"]

    @pytest.mark.asyncio
    async def test_corrupt_record_by_id(self, tmp_path):
        store = JsonDocumentStore(root=tmp_path)
        (tmp_path / "documents" / "bad.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageUnavailable):
            await store.get_by_id("bad")

    @pytest.mark.asyncio
    async def test_undecodable_record_skipped_in_candidates(self, tmp_path, make_document):
        store = JsonDocumentStore(root=tmp_path)
        await store.save(make_document("ok", created_at=BASE), b"x")
        (tmp_path / "documents" / "bad.json").write_bytes(b"\xff\xfe\x00garbage")
        rows = await store.get_candidates(ACME, CandidateFilters())
        assert [d.id for d in rows] == ["ok"]

    @pytest.mark.asyncio
    async def test_undecodable_record_by_id(self, tmp_path):
        store = JsonDocumentStore(root=tmp_path)
        (tmp_path / "documents" / "bad.json").write_bytes(b"\xff\xfe\x00garbage")
        with pytest.raises(StorageUnavailable):
            await store.get_by_id("bad")

    @pytest.mark.asyncio
    async def test_separator_ids_stay_distinct(self, tmp_path, make_document):
        store = JsonDocumentStore(root=tmp_path)
        await store.save(make_document("a/b", created_at=BASE), b"slash")
        await store.save(make_document("a_b", created_at=BASE), b"underscore")
        assert (await store.get_by_id("a/b")).id == "a/b"
        assert (await store.get_by_id("a_b")).id == "a_b"
        assert await store.get_file_bytes("a/b") == b"slash"
        assert await store.get_file_bytes("a_b") == b"underscore"
        assert len(list((tmp_path / "documents").glob("*.json"))) == 2

    def test_unwritable_root(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(StorageUnavailable):
            JsonDocumentStore(root=blocker / "store")


class TestStoreFactory:
    def test_default_memory(self):
        assert isinstance(create_document_store(), MemoryDocumentStore)

    def test_json(self, tmp_path):
        settings = Settings(_env_file=None, storage_backend="json", storage_root=tmp_path)
        assert isinstance(create_document_store(settings), JsonDocumentStore)

    def test_sqlite(self, tmp_path):
        settings = Settings(_env_file=None, storage_backend="sqlite", storage_root=tmp_path)
        store = create_document_store(settings)
        try:
            assert isinstance(store, SqliteDocumentStore)
            assert (tmp_path / "documents.db").exists()
        finally:
            store.close()
