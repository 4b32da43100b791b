"""
Core business logic module.

Contains the ingestion state machine, the hybrid retrieval engine and the
exception hierarchy shared by both.
"""

from knowledge_base.core.exceptions import (
    ChunkStoreError,
    ConfigurationError,
    EmbeddingError,
    EventParseError,
    FilterError,
    IngestionError,
    IngestionTimeoutError,
    KnowledgeBaseException,
    ObjectFetchError,
    ParsingError,
    RetrievalError,
    RetrievalTimeoutError,
    UnsupportedObjectError,
)

__all__ = [
    "ChunkStoreError",
    "ConfigurationError",
    "EmbeddingError",
    "EventParseError",
    "FilterError",
    "IngestionError",
    "IngestionTimeoutError",
    "KnowledgeBaseException",
    "ObjectFetchError",
    "ParsingError",
    "RetrievalError",
    "RetrievalTimeoutError",
    "UnsupportedObjectError",
]
