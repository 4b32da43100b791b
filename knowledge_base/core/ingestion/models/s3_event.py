"""
S3 object lifecycle event models.

A parsed event carries the decoded object key plus everything the state
machine needs: which action happened, which source address it concerns and
what kind of object it is.

Dependencies: pydantic
System role: Data validation and contract definition for ingestion events
"""

from enum import Enum
from pathlib import PurePosixPath

from pydantic import BaseModel, Field

METADATA_SUFFIX = ".metadata.json"


class EventAction(str, Enum):
    """Lifecycle action derived from the S3 eventName prefix."""

    CREATED = "created"
    REMOVED = "removed"


class ObjectKind(str, Enum):
    """Role of an object key in the knowledge base."""

    DOCUMENT = "document"
    METADATA_SIDECAR = "metadata-sidecar"
    UNSUPPORTED = "unsupported"


def build_address(bucket: str, key: str) -> str:
    """Source address for an object: ``s3://<bucket>/<key>``."""
    return f"s3://{bucket}/{key}"


def is_sidecar_key(key: str) -> bool:
    return key.endswith(METADATA_SUFFIX)


def sidecar_target_key(key: str) -> str:
    """Key of the document a sidecar describes (``a.pdf.metadata.json`` -> ``a.pdf``)."""
    return key[: -len(METADATA_SUFFIX)] if is_sidecar_key(key) else key


def sidecar_key_for(key: str) -> str:
    """Sidecar key for a document key (``a.pdf`` -> ``a.pdf.metadata.json``)."""
    return f"{sidecar_target_key(key)}{METADATA_SUFFIX}"


def classify_key(key: str, document_extensions: list[str]) -> ObjectKind:
    """
    Classify an object key.

    Sidecars are recognized first so that ``report.pdf.metadata.json`` is never
    mistaken for a document.
    """
    if is_sidecar_key(key):
        return ObjectKind.METADATA_SIDECAR
    suffix = PurePosixPath(key).suffix.lower()
    if suffix and suffix in {ext.lower() for ext in document_extensions}:
        return ObjectKind.DOCUMENT
    return ObjectKind.UNSUPPORTED


class ObjectEvent(BaseModel):
    """One S3 object lifecycle event (decoded)."""

    event_name: str = Field(description="S3 eventName, e.g. ObjectCreated:Put")
    bucket: str = Field(min_length=1)
    key: str = Field(min_length=1, description="URL-decoded object key")
    etag: str | None = Field(default=None, description="Object eTag (absent on removals)")
    record_id: str | None = Field(default=None, description="SQS messageId or sequencer, for logging")

    @property
    def action(self) -> EventAction | None:
        if self.event_name.startswith("ObjectCreated:"):
            return EventAction.CREATED
        if self.event_name.startswith("ObjectRemoved:"):
            return EventAction.REMOVED
        return None

    @property
    def address(self) -> str:
        return build_address(self.bucket, self.key)


class SourceObject(BaseModel):
    """Identity of one logical input; chunks and inventory are keyed by its address."""

    bucket: str
    key: str
    etag: str

    @property
    def address(self) -> str:
        return build_address(self.bucket, self.key)
