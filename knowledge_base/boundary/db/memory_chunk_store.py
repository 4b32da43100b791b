"""
In-memory chunk store for local development and tests.

Provides the same interface as MongoChunkStore. Hybrid search runs the two
branches separately (exact cosine similarity and term-frequency text
matching) and fuses them in process with the same reciprocal-rank-fusion
formula the Atlas aggregation uses.

Dependencies: knowledge_base.core.retrieval.fusion
System role: Local chunk store (no Atlas cluster required)
"""

import copy
import logging
import math
import re
from typing import Any

from knowledge_base.boundary.db.chunk_store import ChunkStore
from knowledge_base.core.retrieval.fusion import reciprocal_rank_fusion
from knowledge_base.models import Chunk, HybridSearchRequest, InventoryEntry, QueryResult

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)
_MISSING = object()


def _lookup(document: dict[str, Any], path: str) -> Any:
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _compare(value: Any, operator: str, operand: Any) -> bool:
    if operator == "$eq":
        return value is not _MISSING and value == operand
    if operator == "$ne":
        return value is _MISSING or value != operand
    if operator == "$in":
        return value is not _MISSING and value in operand
    if operator == "$nin":
        return value is _MISSING or value not in operand
    if value is _MISSING:
        return False
    try:
        if operator == "$gt":
            return value > operand
        if operator == "$gte":
            return value >= operand
        if operator == "$lt":
            return value < operand
        if operator == "$lte":
            return value <= operand
    except TypeError:
        return False
    raise ValueError(f"Unsupported operator: {operator}")


def matches(document: dict[str, Any], predicate: dict[str, Any] | None) -> bool:
    """Evaluate the MQL subset emitted by core.retrieval.filters."""
    if not predicate:
        return True
    for key, condition in predicate.items():
        if key == "$and":
            if not all(matches(document, clause) for clause in condition):
                return False
        elif key == "$or":
            if not any(matches(document, clause) for clause in condition):
                return False
        elif isinstance(condition, dict) and condition and all(op.startswith("$") for op in condition):
            value = _lookup(document, key)
            if not all(_compare(value, op, operand) for op, operand in condition.items()):
                return False
        elif not _compare(_lookup(document, key), "$eq", condition):
            return False
    return True


def cosine_similarity(left: list[float], right: list[float]) -> float:
    if len(left) != len(right):
        return 0.0
    dot = sum(a * b for a, b in zip(left, right))
    norm = math.sqrt(sum(a * a for a in left)) * math.sqrt(sum(b * b for b in right))
    return dot / norm if norm else 0.0


def tokenize(text: str) -> list[str]:
    return TOKEN_PATTERN.findall(text.lower())


class InMemoryChunkStore(ChunkStore):
    """Dictionary-backed chunk store."""

    name = "memory"

    def __init__(self) -> None:
        self._chunks: dict[str, dict[str, Any]] = {}
        self._inventory: dict[str, InventoryEntry] = {}

    async def insert_chunks(self, chunks: list[Chunk]) -> int:
        inserted = 0
        for chunk in chunks:
            if chunk.id in self._chunks:
                continue
            self._chunks[chunk.id] = chunk.to_document()
            inserted += 1
        return inserted

    async def delete_chunks(self, source: str, keep_etag: str | None = None) -> int:
        doomed = [
            chunk_id
            for chunk_id, document in self._chunks.items()
            if document["metadata"].get("source") == source
            and (keep_etag is None or document["metadata"].get("eTag") != keep_etag)
        ]
        for chunk_id in doomed:
            del self._chunks[chunk_id]
        return len(doomed)

    async def merge_metadata(self, source: str, attributes: dict[str, Any]) -> int:
        matched = 0
        for document in self._chunks.values():
            if document["metadata"].get("source") == source:
                document["metadata"].update(copy.deepcopy(attributes))
                matched += 1
        return matched

    async def find_chunks(self, source: str) -> list[Chunk]:
        return [
            Chunk.from_document(copy.deepcopy(document))
            for document in self._chunks.values()
            if document["metadata"].get("source") == source
        ]

    async def get_inventory(self, address: str) -> InventoryEntry | None:
        entry = self._inventory.get(address)
        return entry.model_copy() if entry is not None else None

    async def put_inventory(self, entry: InventoryEntry) -> None:
        self._inventory[entry.address] = entry.model_copy()

    def vector_branch(self, request: HybridSearchRequest) -> list[dict[str, Any]]:
        """Exact nearest neighbours among filtered chunks, best first."""
        candidates = [
            document
            for document in self._chunks.values()
            if document.get("embedding") and matches(document, request.filter)
        ]
        ranked = sorted(
            candidates,
            key=lambda document: cosine_similarity(request.vector, document["embedding"]),
            reverse=True,
        )
        return ranked[: request.num_candidates][: request.k]

    def text_branch(self, request: HybridSearchRequest) -> list[dict[str, Any]]:
        """Chunks containing query terms, ranked by term frequency."""
        terms = set(tokenize(request.text))
        if not terms:
            return []
        scored = []
        for document in self._chunks.values():
            if not matches(document, request.filter):
                continue
            score = sum(1 for token in tokenize(document.get("text", "")) if token in terms)
            if score:
                scored.append((score, document))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [document for _, document in scored[: request.k]]

    async def hybrid_search(self, request: HybridSearchRequest) -> list[QueryResult]:
        results = reciprocal_rank_fusion(
            self.vector_branch(request),
            self.text_branch(request),
            k=request.k,
            vector_weight=request.vector_weight,
            fulltext_weight=request.fulltext_weight,
            rank_constant=request.rank_constant,
        )
        logger.debug("hybrid_search - Fused %d results", len(results))
        return results
