"""
Embedding task.

Turns ordered segments of one source version into chunks with vectors.

Dependencies: knowledge_base.boundary.embeddings
System role: Final stage of chunk creation
"""

from typing import TYPE_CHECKING

from knowledge_base.core.ingestion.models import SourceObject
from knowledge_base.models import Chunk

if TYPE_CHECKING:
    from knowledge_base.boundary.embeddings import BedrockEmbeddingClient


class EmbeddingTask:
    """Embed segments and build the chunk batch for a source version."""

    def __init__(self, embedder: "BedrockEmbeddingClient") -> None:
        self._embedder = embedder

    async def embed(self, source: SourceObject, segments: list[str]) -> list[Chunk]:
        """
        Embed every segment; any failure fails the whole batch.

        Raises:
            EmbeddingError: When any embedding call fails
        """
        vectors = await self._embedder.embed_many(segments)
        return [
            Chunk.create(source.address, source.etag, position, text, vector)
            for position, (text, vector) in enumerate(zip(segments, vectors))
        ]
