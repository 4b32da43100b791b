"""
Chunk domain model.

Represents one retrievable text unit with its embedding and metadata. The
identifier is derived from (source, eTag, position) so that re-inserting a
batch after a failed attempt hits the same documents.

Dependencies: pydantic, hashlib
System role: Document chunk data structure shared by ingestion and the stores
"""

import hashlib
from typing import Any

from pydantic import BaseModel, Field, field_validator


def generate_chunk_id(source: str, etag: str, position: int) -> str:
    """
    Generate deterministic chunk ID.

    Args:
        source: Source address (s3://bucket/key)
        etag: Version of the source the chunk was produced from
        position: Segment position within the document

    Returns:
        str: SHA-256 hash prefix (32 chars)
    """
    hash_input = f"{source}:{etag}:{position}"
    return hashlib.sha256(hash_input.encode()).hexdigest()[:32]


class Chunk(BaseModel):
    """Document chunk with optional embedding vector."""

    id: str = Field(description="Deterministic chunk identifier (hash)")
    text: str = Field(description="Chunk text content")
    embedding: list[float] | None = Field(default=None, description="Embedding vector")
    metadata: dict[str, Any] = Field(
        description="Chunk metadata: source, eTag and attributes merged from a sidecar",
    )

    @field_validator("metadata")
    @classmethod
    def _require_source_and_etag(cls, value: dict[str, Any]) -> dict[str, Any]:
        if not value.get("source") or not value.get("eTag"):
            raise ValueError("metadata must contain 'source' and 'eTag'")
        return value

    @property
    def source(self) -> str:
        return self.metadata["source"]

    @property
    def etag(self) -> str:
        return self.metadata["eTag"]

    @classmethod
    def create(
        cls,
        source: str,
        etag: str,
        position: int,
        text: str,
        embedding: list[float] | None = None,
    ) -> "Chunk":
        """Build a chunk for the given segment of a source version."""
        return cls(
            id=generate_chunk_id(source, etag, position),
            text=text,
            embedding=embedding,
            metadata={"source": source, "eTag": etag},
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored document shape (``_id`` keyed)."""
        document: dict[str, Any] = {
            "_id": self.id,
            "text": self.text,
            "metadata": dict(self.metadata),
        }
        if self.embedding is not None:
            document["embedding"] = list(self.embedding)
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Chunk":
        """Rebuild a chunk from a stored document."""
        return cls(
            id=str(document["_id"]),
            text=document.get("text", ""),
            embedding=document.get("embedding"),
            metadata=document.get("metadata", {}),
        )
