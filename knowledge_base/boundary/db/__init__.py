"""
Chunk store implementations.
"""

from knowledge_base.boundary.db.chunk_store import ChunkStore
from knowledge_base.boundary.db.memory_chunk_store import InMemoryChunkStore
from knowledge_base.boundary.db.store_factory import get_chunk_store

__all__ = ["ChunkStore", "InMemoryChunkStore", "get_chunk_store"]
