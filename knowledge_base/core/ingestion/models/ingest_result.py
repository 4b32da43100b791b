"""
Ingestion result model.

Represents the outcome of handling one object lifecycle event.

Dependencies: pydantic
System role: Return type for IngestionPipeline.handle_event()
"""

from enum import Enum

from pydantic import BaseModel, Field


class IngestOutcome(str, Enum):
    """What the state machine did with an event."""

    INGESTED = "ingested"
    FAILED = "failed"
    REMOVED = "removed"
    METADATA_MERGED = "metadata_merged"
    METADATA_MISSING = "metadata_missing"
    SKIPPED_CURRENT = "skipped_current"
    SKIPPED_UNSUPPORTED = "skipped_unsupported"
    IGNORED = "ignored"


class IngestResult(BaseModel):
    """Result of one event through the ingestion pipeline."""

    address: str = Field(description="Source address the event concerned")
    outcome: IngestOutcome
    etag: str | None = None
    chunk_count: int = Field(default=0, description="Chunks inserted (ingest) or updated (metadata)")
    stale_deleted: int = Field(default=0, description="Chunks removed")
    processing_time_ms: float = 0.0
    error: str | None = None

