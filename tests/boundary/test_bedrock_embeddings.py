"""Tests for the Bedrock embeddings client."""

import asyncio
import threading
import time
from unittest.mock import MagicMock

import pytest

from knowledge_base.boundary.embeddings.bedrock_embeddings import BedrockEmbeddingClient
from knowledge_base.core.exceptions import EmbeddingError


def _client(embeddings: MagicMock, max_concurrency: int = 8) -> BedrockEmbeddingClient:
    return BedrockEmbeddingClient(embeddings=embeddings, max_concurrency=max_concurrency)


class TestBedrockEmbeddingClient:
    def test_rejects_invalid_configuration(self) -> None:
        with pytest.raises(ValueError):
            BedrockEmbeddingClient(model_id="", embeddings=MagicMock())
        with pytest.raises(ValueError):
            BedrockEmbeddingClient(max_concurrency=0, embeddings=MagicMock())

    @pytest.mark.asyncio
    async def test_embed_single_text(self) -> None:
        embeddings = MagicMock()
        embeddings.embed_query.return_value = [0.1, 0.2]

        assert await _client(embeddings).embed("hello") == [0.1, 0.2]
        embeddings.embed_query.assert_called_once_with("hello")

    @pytest.mark.asyncio
    async def test_embed_failure_is_wrapped(self) -> None:
        embeddings = MagicMock()
        embeddings.embed_query.side_effect = RuntimeError("ThrottlingException")

        with pytest.raises(EmbeddingError, match="ThrottlingException"):
            await _client(embeddings).embed("hello")

    @pytest.mark.asyncio
    async def test_embed_many_preserves_order(self) -> None:
        embeddings = MagicMock()
        embeddings.embed_query.side_effect = lambda text: [float(len(text))]

        vectors = await _client(embeddings).embed_many(["a", "bbb", "cc"])

        assert vectors == [[1.0], [3.0], [2.0]]

    @pytest.mark.asyncio
    async def test_embed_many_empty(self) -> None:
        assert await _client(MagicMock()).embed_many([]) == []

    @pytest.mark.asyncio
    async def test_embed_many_caps_concurrency(self) -> None:
        """Should never have more than max_concurrency calls in flight."""
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}

        def slow_embed(text: str) -> list[float]:
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.02)
            with lock:
                state["active"] -= 1
            return [1.0]

        embeddings = MagicMock()
        embeddings.embed_query.side_effect = slow_embed

        vectors = await _client(embeddings, max_concurrency=2).embed_many([str(i) for i in range(8)])

        assert len(vectors) == 8
        assert state["peak"] <= 2

    @pytest.mark.asyncio
    async def test_embed_many_fails_whole_batch(self) -> None:
        def flaky(text: str) -> list[float]:
            if text == "bad":
                raise RuntimeError("model error")
            return [1.0]

        embeddings = MagicMock()
        embeddings.embed_query.side_effect = flaky

        with pytest.raises(EmbeddingError):
            await _client(embeddings).embed_many(["ok", "bad", "ok"])

    @pytest.mark.asyncio
    async def test_concurrent_batches_complete_independently(self) -> None:
        embeddings = MagicMock()
        embeddings.embed_query.return_value = [1.0]
        client = _client(embeddings)

        await client.embed_many(["a"])
        result = await asyncio.gather(client.embed_many(["b"]), client.embed_many(["c"]))

        assert result == [[[1.0]], [[1.0]]]
