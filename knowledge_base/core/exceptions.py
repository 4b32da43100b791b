"""
Exception hierarchy for the knowledge base.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across ingestion and retrieval
"""

from typing import Any


class KnowledgeBaseException(Exception):
    """Base exception for all knowledge base errors."""

    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(KnowledgeBaseException):
    """Raised when required configuration is missing or invalid."""


class EventParseError(KnowledgeBaseException):
    """Raised when an S3 event record cannot be parsed."""

    def __init__(
        self,
        message: str,
        record_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if record_id:
            details["record_id"] = record_id
        super().__init__(message, details)


class IngestionError(KnowledgeBaseException):
    """Base exception for document ingestion errors."""

    def __init__(
        self,
        message: str,
        address: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize ingestion error.

        Args:
            message: Error message
            address: Source address of the object that failed
            details: Additional context
        """
        details = details or {}
        if address:
            details["address"] = address
        super().__init__(message, details)


class ObjectFetchError(IngestionError):
    """Raised when a source object cannot be downloaded from S3."""


class UnsupportedObjectError(IngestionError):
    """Raised when an object's format cannot be turned into chunks."""


class ParsingError(IngestionError):
    """Raised when document parsing fails."""

    def __init__(
        self,
        message: str,
        address: str | None = None,
        file_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if file_type:
            details["file_type"] = file_type
        super().__init__(message, address, details)


class EmbeddingError(KnowledgeBaseException):
    """Raised when embedding generation fails."""


class IngestionTimeoutError(IngestionError):
    """Raised when ingesting one object exceeds its deadline."""

    retryable = True


class ChunkStoreError(KnowledgeBaseException):
    """Raised when chunk store operations fail."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize chunk store error.

        Args:
            message: Error message
            operation: Operation that failed (insert, delete, update, search)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class FilterError(KnowledgeBaseException):
    """Raised when a metadata filter expression is malformed."""


class RetrievalError(KnowledgeBaseException):
    """Raised when retrieval operations fail."""


class RetrievalTimeoutError(RetrievalError):
    """Raised when a query exceeds its deadline."""

    retryable = True
