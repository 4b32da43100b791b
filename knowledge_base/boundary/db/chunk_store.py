"""
Chunk store interface.

Both collections (chunks and inventory) live behind one store so the
ingestion pipeline has a single writer-facing dependency. Implementations
must be reusable across invocations and safe under concurrent calls.

Dependencies: knowledge_base.models
System role: Persistence contract for ingestion and retrieval
"""

from abc import ABC, abstractmethod
from typing import Any

from knowledge_base.models import Chunk, HybridSearchRequest, InventoryEntry, QueryResult


class ChunkStore(ABC):
    """Persistence for chunk documents and inventory entries."""

    name: str = "abstract"

    @abstractmethod
    async def insert_chunks(self, chunks: list[Chunk]) -> int:
        """
        Insert a batch of chunks.

        Chunks whose id already exists are left untouched, so re-inserting
        the batch of a retried (address, eTag) is a no-op.

        Returns:
            int: Number of newly inserted chunks
        """

    @abstractmethod
    async def delete_chunks(self, source: str, keep_etag: str | None = None) -> int:
        """
        Delete chunks of ``source``; when ``keep_etag`` is given, only those
        whose eTag differs from it.

        Returns:
            int: Number of deleted chunks
        """

    @abstractmethod
    async def merge_metadata(self, source: str, attributes: dict[str, Any]) -> int:
        """
        Merge ``attributes`` into ``metadata`` of every chunk of ``source``.

        Returns:
            int: Number of chunks matched
        """

    @abstractmethod
    async def find_chunks(self, source: str) -> list[Chunk]:
        """Return all chunks of ``source`` (with embeddings)."""

    @abstractmethod
    async def get_inventory(self, address: str) -> InventoryEntry | None:
        """Return the inventory entry for ``address`` if any."""

    @abstractmethod
    async def put_inventory(self, entry: InventoryEntry) -> None:
        """Upsert-replace the inventory entry keyed by ``entry.address``."""

    @abstractmethod
    async def hybrid_search(self, request: HybridSearchRequest) -> list[QueryResult]:
        """Run both search branches and return the fused, truncated ranking."""
