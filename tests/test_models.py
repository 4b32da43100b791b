"""Tests for chunk, inventory and query result models."""

from datetime import datetime, timezone

import pytest

from knowledge_base.models import (
    REMOVED_ETAG,
    Chunk,
    InventoryEntry,
    InventoryStatus,
    QueryResult,
    generate_chunk_id,
)
from knowledge_base.models.inventory import MAX_ERROR_LENGTH

ADDRESS = "s3://kb-docs/a.pdf"


class TestChunk:
    def test_id_is_deterministic_per_version_and_position(self) -> None:
        assert generate_chunk_id(ADDRESS, "e1", 0) == generate_chunk_id(ADDRESS, "e1", 0)
        assert generate_chunk_id(ADDRESS, "e1", 0) != generate_chunk_id(ADDRESS, "e2", 0)
        assert generate_chunk_id(ADDRESS, "e1", 0) != generate_chunk_id(ADDRESS, "e1", 1)
        assert len(generate_chunk_id(ADDRESS, "e1", 0)) == 32

    def test_create_sets_identity_metadata(self) -> None:
        chunk = Chunk.create(ADDRESS, "e1", 3, "text", [0.5])

        assert chunk.source == ADDRESS
        assert chunk.etag == "e1"
        assert chunk.metadata == {"source": ADDRESS, "eTag": "e1"}

    def test_metadata_requires_source_and_etag(self) -> None:
        with pytest.raises(ValueError):
            Chunk(id="x", text="t", metadata={"source": ADDRESS})

    def test_document_roundtrip(self) -> None:
        chunk = Chunk.create(ADDRESS, "e1", 0, "text", [0.5, 0.25])

        document = chunk.to_document()

        assert document["_id"] == chunk.id
        assert Chunk.from_document(document) == chunk

    def test_document_without_embedding(self) -> None:
        assert "embedding" not in Chunk.create(ADDRESS, "e1", 0, "text").to_document()


class TestInventoryEntry:
    def test_success(self) -> None:
        entry = InventoryEntry.success(ADDRESS, "e1")

        assert entry.is_current("e1")
        assert not entry.is_current("e2")
        assert entry.updated_at.tzinfo is not None
        assert "error" not in entry.to_document()

    def test_failed_is_never_current(self) -> None:
        entry = InventoryEntry.failed(ADDRESS, "e1", "boom")

        assert not entry.is_current("e1")
        assert entry.to_document()["error"] == "boom"

    def test_failed_truncates_error(self) -> None:
        entry = InventoryEntry.failed(ADDRESS, "e1", "x" * (MAX_ERROR_LENGTH + 10))

        assert len(entry.error) == MAX_ERROR_LENGTH

    def test_removed_uses_sentinel_etag(self) -> None:
        entry = InventoryEntry.removed(ADDRESS)

        assert entry.etag == REMOVED_ETAG == "0"
        assert entry.status == InventoryStatus.REMOVED

    def test_error_iff_failed(self) -> None:
        with pytest.raises(ValueError):
            InventoryEntry(address=ADDRESS, etag="e1", status=InventoryStatus.FAIL)
        with pytest.raises(ValueError):
            InventoryEntry(address=ADDRESS, etag="e1", status=InventoryStatus.SUCCESS, error="boom")

    def test_from_document(self) -> None:
        updated = datetime(2024, 5, 1, tzinfo=timezone.utc)

        entry = InventoryEntry.from_document(
            {"_id": ADDRESS, "eTag": "e1", "status": "success", "updatedAt": updated}
        )

        assert entry == InventoryEntry(address=ADDRESS, etag="e1", status=InventoryStatus.SUCCESS, updated_at=updated)


class TestQueryResult:
    def test_from_document_defaults_missing_scores(self) -> None:
        result = QueryResult.from_document({"_id": "c1", "text": "t", "metadata": {"source": ADDRESS}, "vs_score": 0.2})

        assert result.fts_score == 0.0
        assert result.score == pytest.approx(0.2)
        assert result.source == ADDRESS

    def test_payload_shape(self) -> None:
        result = QueryResult(id="c1", text="t", metadata={"source": ADDRESS}, vs_score=0.1, fts_score=0.2, score=0.3)

        assert result.to_payload() == {
            "text": "t",
            "metadata": {"source": ADDRESS},
            "vs_score": 0.1,
            "fts_score": 0.2,
            "score": 0.3,
        }
