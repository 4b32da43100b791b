"""
Shared test fixtures for the knowledge base test suite.

Provides: in-memory chunk store, deterministic embedder, stub chunk builder
and sidecar loader, S3 event factories
Dependencies: pytest
System role: Test infrastructure and fixture management
"""

import json
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

from knowledge_base.boundary.db.memory_chunk_store import InMemoryChunkStore
from knowledge_base.configs.ingestion import IngestionSettings
from knowledge_base.core.exceptions import EmbeddingError
from knowledge_base.core.ingestion.models import ObjectEvent, SourceObject
from knowledge_base.core.ingestion.pipeline import IngestionPipeline
from knowledge_base.models import Chunk

BUCKET = "kb-docs"


class FakeEmbedder:
    """Deterministic bag-of-letters embedder."""

    dimensions = 4

    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise EmbeddingError(f"Bedrock throttled on {self.fail_on!r}")
        lowered = text.lower()
        return [
            float(lowered.count("a") + 1),
            float(lowered.count("e") + 1),
            float(lowered.count("o") + 1),
            float(len(lowered) % 7 + 1),
        ]

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(text) for text in texts]


class StubChunkBuilder:
    """Chunk builder returning preset segments per (key, eTag)."""

    def __init__(self, embedder: FakeEmbedder) -> None:
        self.embedder = embedder
        self.segments: dict[tuple[str, str], list[str]] = {}
        self.errors: dict[tuple[str, str], Exception] = {}
        self.builds: list[SourceObject] = []

    async def build(self, source: SourceObject) -> list[Chunk]:
        self.builds.append(source)
        error = self.errors.get((source.key, source.etag))
        if error is not None:
            raise error
        segments = self.segments.get((source.key, source.etag), [f"{source.key} version {source.etag}"])
        vectors = await self.embedder.embed_many(segments)
        return [
            Chunk.create(source.address, source.etag, position, text, vector)
            for position, (text, vector) in enumerate(zip(segments, vectors))
        ]


class StubMetadataTask:
    """Sidecar loader backed by a dict keyed by document key."""

    def __init__(self) -> None:
        self.sidecars: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []

    def load(self, bucket: str, key: str) -> dict[str, Any] | None:
        self.calls.append((bucket, key))
        return self.sidecars.get(key)


@pytest.fixture
def store() -> InMemoryChunkStore:
    return InMemoryChunkStore()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def chunk_builder(embedder: FakeEmbedder) -> StubChunkBuilder:
    return StubChunkBuilder(embedder)


@pytest.fixture
def metadata_task() -> StubMetadataTask:
    return StubMetadataTask()


@pytest.fixture
def pipeline(
    store: InMemoryChunkStore,
    chunk_builder: StubChunkBuilder,
    metadata_task: StubMetadataTask,
) -> IngestionPipeline:
    return IngestionPipeline(
        store=store,
        chunk_builder=chunk_builder,
        metadata_task=metadata_task,
        settings=IngestionSettings(document_extensions=[".pdf", ".txt"]),
    )


@pytest.fixture
def make_event() -> Callable[..., ObjectEvent]:
    """Factory for parsed object events."""

    def _make(
        key: str,
        etag: str | None = "etag-1",
        event_name: str = "ObjectCreated:Put",
        bucket: str = BUCKET,
    ) -> ObjectEvent:
        return ObjectEvent(event_name=event_name, bucket=bucket, key=key, etag=etag)

    return _make


@pytest.fixture
def s3_record() -> Callable[..., dict[str, Any]]:
    """Factory for raw S3 notification records."""

    def _make(
        key: str,
        etag: str | None = "etag-1",
        event_name: str = "ObjectCreated:Put",
        bucket: str = BUCKET,
    ) -> dict[str, Any]:
        s3_object: dict[str, Any] = {"key": key, "size": 1024}
        if etag is not None:
            s3_object["eTag"] = etag
        return {
            "eventVersion": "2.1",
            "eventSource": "aws:s3",
            "eventName": event_name,
            "s3": {"bucket": {"name": bucket}, "object": s3_object},
        }

    return _make


@pytest.fixture
def sqs_record(s3_record: Callable[..., dict[str, Any]]) -> Callable[..., dict[str, Any]]:
    """Factory for SQS records wrapping an S3 notification."""

    def _make(key: str, message_id: str = "msg-1", **kwargs: Any) -> dict[str, Any]:
        return {
            "messageId": message_id,
            "eventSource": "aws:sqs",
            "body": json.dumps({"Records": [s3_record(key, **kwargs)]}),
        }

    return _make


@pytest.fixture
def lambda_context() -> MagicMock:
    context = MagicMock()
    context.get_remaining_time_in_millis.return_value = 300_000
    return context
