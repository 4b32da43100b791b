"""
Hybrid retrieval engine.

Embeds the query once, then asks the chunk store for a fused vector +
full-text search with the filter applied inside both branches. Read-only.

Dependencies: knowledge_base.boundary (via injection), filters
System role: Query -> ranked chunks for the agent
"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from knowledge_base.configs.retrieval import RetrievalSettings
from knowledge_base.core.exceptions import (
    ChunkStoreError,
    EmbeddingError,
    RetrievalError,
    RetrievalTimeoutError,
)
from knowledge_base.core.retrieval.filters import compile_filter
from knowledge_base.models import HybridSearchRequest, QueryResult

if TYPE_CHECKING:
    from knowledge_base.boundary.db import ChunkStore
    from knowledge_base.boundary.embeddings import BedrockEmbeddingClient

logger = logging.getLogger(__name__)


class HybridRetriever:
    """Reciprocal-rank-fusion retrieval over a chunk store."""

    def __init__(
        self,
        store: "ChunkStore",
        embedder: "BedrockEmbeddingClient",
        settings: RetrievalSettings | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._settings = settings or RetrievalSettings()

    def build_request(
        self,
        text: str,
        vector: list[float],
        predicate: dict[str, Any] | None = None,
        k: int | None = None,
    ) -> HybridSearchRequest:
        """Search parameters for one query; ``numCandidates`` is ``k`` times the over-fetch factor."""
        k = k or self._settings.k
        return HybridSearchRequest(
            text=text,
            vector=vector,
            k=k,
            num_candidates=k * self._settings.overfetch_factor,
            vector_weight=self._settings.vector_weight,
            fulltext_weight=self._settings.fulltext_weight,
            rank_constant=self._settings.rank_constant,
            filter=predicate,
        )

    async def query(
        self,
        text: str,
        filters: dict[str, Any] | None = None,
        k: int | None = None,
        timeout: float | None = None,
    ) -> list[QueryResult]:
        """
        Run a hybrid query.

        Args:
            text: Natural-language query
            filters: Flat equality map or structured filter over chunk metadata
            k: Number of results (configured default if None)
            timeout: Deadline in seconds (configured default if None)

        Returns:
            list[QueryResult]: At most ``k`` results, best first; empty when nothing matches

        Raises:
            FilterError: Malformed filter
            RetrievalError: Empty query, embedding or store failure
            RetrievalTimeoutError: Deadline exceeded (safe to retry)
        """
        if not text or not text.strip():
            raise RetrievalError("Query text is empty")

        predicate = compile_filter(filters)
        timeout = self._settings.timeout_seconds if timeout is None else timeout

        try:
            return await asyncio.wait_for(self._search(text, predicate, k), timeout)
        except asyncio.TimeoutError as e:
            raise RetrievalTimeoutError(f"Query exceeded {timeout}s deadline") from e

    async def _search(self, text: str, predicate: dict[str, Any] | None, k: int | None) -> list[QueryResult]:
        start_time = time.perf_counter()

        try:
            vector = await self._embedder.embed(text)
        except EmbeddingError as e:
            raise RetrievalError(f"Failed to embed query: {e}") from e

        request = self.build_request(text, vector, predicate, k)
        try:
            results = await self._store.hybrid_search(request)
        except ChunkStoreError as e:
            raise RetrievalError(f"Hybrid search failed: {e}") from e

        logger.info(
            "query - Hybrid search complete",
            extra={
                "result_count": len(results),
                "k": request.k,
                "filtered": predicate is not None,
                "elapsed_ms": round((time.perf_counter() - start_time) * 1000, 1),
            },
        )
        return results
