"""
Bedrock Titan embeddings client with fixed output dimensionality.

Wraps langchain-aws BedrockEmbeddings so every call requests the same
dimension as the Atlas vector index. Document batches fan out one call per
segment with a concurrency cap to stay under Bedrock throttling limits; a
single failed call fails the whole batch.

Dependencies: langchain_aws
System role: Text -> vector for ingestion and retrieval
"""

import asyncio
import logging
from functools import lru_cache
from typing import Sequence

from langchain_aws import BedrockEmbeddings

from knowledge_base.configs import get_settings
from knowledge_base.core.concurrency import run_blocking
from knowledge_base.core.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


class BedrockEmbeddingClient:
    """Titan text embeddings v2 with bounded concurrency."""

    def __init__(
        self,
        model_id: str = "amazon.titan-embed-text-v2:0",
        dimensions: int = 1024,
        region: str = "us-east-1",
        max_concurrency: int = 8,
        embeddings: BedrockEmbeddings | None = None,
    ) -> None:
        """
        Initialize embeddings client.

        Args:
            model_id: Bedrock model ID
            dimensions: Output dimension (must match the vector index)
            region: AWS region for Bedrock runtime
            max_concurrency: Maximum in-flight calls per batch
            embeddings: Preconfigured LangChain embeddings (tests)

        Raises:
            ValueError: When model_id is empty or max_concurrency < 1
        """
        if not model_id:
            raise ValueError("model_id cannot be empty")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.model_id = model_id
        self.dimensions = dimensions
        self.max_concurrency = max_concurrency
        self._embeddings = embeddings or BedrockEmbeddings(
            model_id=model_id,
            region_name=region,
            model_kwargs={"dimensions": dimensions},
        )
        logger.info(
            "__init__ - Initialized embeddings",
            extra={"model_id": model_id, "dimensions": dimensions, "max_concurrency": max_concurrency},
        )

    async def embed(self, text: str) -> list[float]:
        """
        Embed one text.

        Raises:
            EmbeddingError: When the Bedrock call fails
        """
        try:
            return await run_blocking(self._embeddings.embed_query, text)
        except Exception as e:
            raise EmbeddingError(
                f"Failed to generate embedding: {e}",
                {"model_id": self.model_id, "text_length": len(text)},
            ) from e

    async def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed texts one call each, at most ``max_concurrency`` at a time.

        Args:
            texts: Segments in document order

        Returns:
            list[list[float]]: Vectors in the same order as ``texts``

        Raises:
            EmbeddingError: When any call fails
        """
        if not texts:
            return []

        # Created per batch: a semaphore binds to the running loop
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(text: str) -> list[float]:
            async with semaphore:
                return await self.embed(text)

        tasks = [asyncio.ensure_future(_bounded(text)) for text in texts]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


@lru_cache
def get_embedding_client() -> BedrockEmbeddingClient:
    """Process-wide embeddings client."""
    config = get_settings().embedding
    return BedrockEmbeddingClient(
        model_id=config.model_id,
        dimensions=config.dimensions,
        region=config.region,
        max_concurrency=config.max_concurrency,
    )
