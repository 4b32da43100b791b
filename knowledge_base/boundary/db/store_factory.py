"""
Chunk store factory for selecting between in-memory (dev) and MongoDB Atlas (prod).

Depends on STORE_TYPE environment variable.

Dependencies: knowledge_base.boundary.db, knowledge_base.configs
System role: Chunk store instantiation and selection
"""

import logging
from functools import lru_cache

from knowledge_base.boundary.db.chunk_store import ChunkStore
from knowledge_base.configs import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_chunk_store() -> ChunkStore:
    """
    Factory function to get the chunk store based on environment configuration.

    The store is cached so every invocation in a container reuses it.

    Returns:
        ChunkStore: Configured store instance

    Raises:
        ValueError: If STORE_TYPE is invalid
    """
    settings = get_settings()
    store_type = settings.store_type.lower()

    if store_type == "memory":
        from knowledge_base.boundary.db.memory_chunk_store import InMemoryChunkStore

        logger.info("get_chunk_store - Creating in-memory chunk store (local dev mode)")
        return InMemoryChunkStore()

    if store_type == "mongodb":
        from knowledge_base.boundary.db.connection import get_mongo_client
        from knowledge_base.boundary.db.mongo_chunk_store import MongoChunkStore

        logger.info("get_chunk_store - Creating MongoDB chunk store (production mode)")
        config = settings.mongodb
        return MongoChunkStore(
            database=get_mongo_client()[config.database],
            chunks_collection=config.chunks_collection,
            inventory_collection=config.inventory_collection,
            vector_index=config.vector_index,
            text_index=config.text_index,
        )

    raise ValueError(
        f"Invalid STORE_TYPE: {store_type}. Must be 'memory' (dev) or 'mongodb' (production)."
    )
