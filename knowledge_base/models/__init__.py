"""
Shared domain models.

Exports: Chunk, InventoryEntry, InventoryStatus, QueryResult, HybridSearchRequest
"""

from .chunk import Chunk, generate_chunk_id
from .inventory import REMOVED_ETAG, InventoryEntry, InventoryStatus
from .query import HybridSearchRequest, QueryResult

__all__ = [
    "Chunk",
    "generate_chunk_id",
    "REMOVED_ETAG",
    "InventoryEntry",
    "InventoryStatus",
    "HybridSearchRequest",
    "QueryResult",
]
