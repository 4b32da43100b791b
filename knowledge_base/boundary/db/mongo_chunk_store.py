"""
MongoDB Atlas chunk store.

Chunks and inventory live in two collections of the same database. Hybrid
search runs as a single aggregation combining ``$vectorSearch`` and
``$search`` through ``$unionWith`` (see core.retrieval.fusion).

pymongo is synchronous and thread-safe; calls run on the shared blocking
pool (core.concurrency) so the pipeline can overlap them without blocking
the event loop.

Dependencies: pymongo, knowledge_base.core.retrieval.fusion
System role: Production chunk store
"""

import logging
from typing import Any

from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import BulkWriteError, PyMongoError
from pymongo.operations import SearchIndexModel

from knowledge_base.boundary.db.chunk_store import ChunkStore
from knowledge_base.core.concurrency import run_blocking
from knowledge_base.core.exceptions import ChunkStoreError
from knowledge_base.core.retrieval.fusion import build_hybrid_search_pipeline
from knowledge_base.models import Chunk, HybridSearchRequest, InventoryEntry, QueryResult
from knowledge_base.observability import human_readable_vector

logger = logging.getLogger(__name__)

DUPLICATE_KEY_ERROR = 11000


class MongoChunkStore(ChunkStore):
    """Chunk store backed by MongoDB Atlas collections."""

    name = "mongodb"

    def __init__(
        self,
        database: Database,
        chunks_collection: str = "kbChunks",
        inventory_collection: str = "kbInventory",
        vector_index: str = "vector_index",
        text_index: str = "text_index",
    ) -> None:
        """
        Initialize store with an already-connected database handle.

        Args:
            database: pymongo Database (from the process-wide client)
            chunks_collection: Chunk collection name
            inventory_collection: Inventory collection name
            vector_index: Atlas Vector Search index on ``embedding``
            text_index: Atlas Search index on ``text``
        """
        self._database = database
        self._chunks_name = chunks_collection
        self._chunks: Collection = database[chunks_collection]
        self._inventory: Collection = database[inventory_collection]
        self._vector_index = vector_index
        self._text_index = text_index

    async def insert_chunks(self, chunks: list[Chunk]) -> int:
        if not chunks:
            return 0
        documents = [chunk.to_document() for chunk in chunks]
        return await run_blocking(self._insert_many, documents)

    def _insert_many(self, documents: list[dict[str, Any]]) -> int:
        try:
            result = self._chunks.insert_many(documents, ordered=False)
            return len(result.inserted_ids)
        except BulkWriteError as e:
            write_errors = e.details.get("writeErrors", [])
            if write_errors and all(err.get("code") == DUPLICATE_KEY_ERROR for err in write_errors):
                inserted = e.details.get("nInserted", 0)
                logger.info(
                    "insert_chunks - Chunks already present, skipped duplicates",
                    extra={"inserted": inserted, "duplicates": len(write_errors)},
                )
                return inserted
            raise ChunkStoreError(
                f"Failed to insert chunks: {e}",
                operation="insert",
                details={"chunk_count": len(documents)},
            ) from e
        except PyMongoError as e:
            raise ChunkStoreError(
                f"Failed to insert chunks: {e}",
                operation="insert",
                details={"chunk_count": len(documents)},
            ) from e

    async def delete_chunks(self, source: str, keep_etag: str | None = None) -> int:
        query: dict[str, Any] = {"metadata.source": source}
        if keep_etag is not None:
            # where eTag is not equal to the version being kept
            query["metadata.eTag"] = {"$ne": keep_etag}
        try:
            result = await run_blocking(self._chunks.delete_many, query)
        except PyMongoError as e:
            raise ChunkStoreError(
                f"Failed to delete chunks: {e}",
                operation="delete",
                details={"source": source},
            ) from e
        return result.deleted_count

    async def merge_metadata(self, source: str, attributes: dict[str, Any]) -> int:
        if not attributes:
            return 0
        update = {"$set": {f"metadata.{key}": value for key, value in attributes.items()}}
        try:
            result = await run_blocking(
                self._chunks.update_many, {"metadata.source": source}, update
            )
        except PyMongoError as e:
            raise ChunkStoreError(
                f"Failed to merge chunk metadata: {e}",
                operation="update",
                details={"source": source},
            ) from e
        return result.matched_count

    async def find_chunks(self, source: str) -> list[Chunk]:
        def _find() -> list[dict[str, Any]]:
            return list(self._chunks.find({"metadata.source": source}))

        try:
            documents = await run_blocking(_find)
        except PyMongoError as e:
            raise ChunkStoreError(
                f"Failed to read chunks: {e}",
                operation="find",
                details={"source": source},
            ) from e
        return [Chunk.from_document(document) for document in documents]

    async def get_inventory(self, address: str) -> InventoryEntry | None:
        try:
            document = await run_blocking(self._inventory.find_one, {"_id": address})
        except PyMongoError as e:
            raise ChunkStoreError(
                f"Failed to read inventory: {e}",
                operation="find_one",
                details={"address": address},
            ) from e
        if document is None:
            return None
        return InventoryEntry.from_document(document)

    async def put_inventory(self, entry: InventoryEntry) -> None:
        try:
            await run_blocking(
                self._inventory.replace_one,
                {"_id": entry.address},
                entry.to_document(),
                upsert=True,
            )
        except PyMongoError as e:
            raise ChunkStoreError(
                f"Failed to write inventory: {e}",
                operation="upsert",
                details={"address": entry.address, "status": entry.status.value},
            ) from e

    def build_pipeline(self, request: HybridSearchRequest) -> list[dict[str, Any]]:
        """Hybrid search aggregation for this store's collections and indexes."""
        return build_hybrid_search_pipeline(
            request,
            chunks_collection=self._chunks_name,
            vector_index=self._vector_index,
            text_index=self._text_index,
        )

    async def hybrid_search(self, request: HybridSearchRequest) -> list[QueryResult]:
        pipeline = self.build_pipeline(request)
        if logger.isEnabledFor(logging.DEBUG):
            debug_request = request.model_copy(update={"vector": human_readable_vector(request.vector)})
            logger.debug(
                "hybrid_search - Aggregation pipeline: %s",
                self.build_pipeline(debug_request),
            )

        def _aggregate() -> list[dict[str, Any]]:
            return list(self._chunks.aggregate(pipeline))

        try:
            documents = await run_blocking(_aggregate)
        except PyMongoError as e:
            raise ChunkStoreError(
                f"Hybrid search failed: {e}",
                operation="search",
                details={"k": request.k},
            ) from e
        return [QueryResult.from_document(document) for document in documents]

    def ensure_indexes(self, dimensions: int, filter_fields: list[str] | None = None) -> list[str]:
        """
        Create the search indexes hybrid search relies on, when missing.

        The vector index dimension must equal the embedding model output
        dimension, otherwise ``$vectorSearch`` silently matches nothing.

        Args:
            dimensions: Embedding dimension
            filter_fields: Extra metadata keys usable in ``$vectorSearch`` filters

        Returns:
            list[str]: Names of indexes that were created
        """
        filter_paths = ["metadata.source", "metadata.eTag"]
        for field in filter_fields or []:
            path = f"metadata.{field}"
            if path not in filter_paths:
                filter_paths.append(path)

        created = []
        existing = {index["name"] for index in self._chunks.list_search_indexes()}

        if self._vector_index not in existing:
            fields: list[dict[str, Any]] = [
                {
                    "type": "vector",
                    "path": "embedding",
                    "numDimensions": dimensions,
                    "similarity": "cosine",
                }
            ]
            fields += [{"type": "filter", "path": path} for path in filter_paths]
            self._chunks.create_search_index(
                SearchIndexModel(definition={"fields": fields}, name=self._vector_index, type="vectorSearch")
            )
            created.append(self._vector_index)

        if self._text_index not in existing:
            self._chunks.create_search_index(
                SearchIndexModel(
                    definition={"mappings": {"dynamic": False, "fields": {"text": {"type": "string"}}}},
                    name=self._text_index,
                    type="search",
                )
            )
            created.append(self._text_index)

        self._chunks.create_index("metadata.source")
        logger.info("ensure_indexes - Search indexes checked", extra={"created": created})
        return created
