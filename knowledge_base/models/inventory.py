"""
Inventory entry model.

One entry per source address recording the last attempted ingestion outcome.
A ``fail`` entry may coexist with chunks from an earlier successful version.

Dependencies: pydantic
System role: Per-address ingestion ledger
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

REMOVED_ETAG = "0"
MAX_ERROR_LENGTH = 2000


class InventoryStatus(str, Enum):
    """Last ingestion outcome for a source address."""

    SUCCESS = "success"
    FAIL = "fail"
    REMOVED = "removed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryEntry(BaseModel):
    """Inventory record keyed by source address."""

    address: str = Field(description="Source address (s3://bucket/key), primary key")
    etag: str = Field(description="Last processed version")
    status: InventoryStatus
    updated_at: datetime = Field(default_factory=_utcnow)
    error: str | None = Field(default=None, description="Failure detail, present iff status=fail")

    @model_validator(mode="after")
    def _error_iff_failed(self) -> "InventoryEntry":
        if self.status == InventoryStatus.FAIL and not self.error:
            raise ValueError("error is required when status is 'fail'")
        if self.status != InventoryStatus.FAIL and self.error is not None:
            raise ValueError("error is only allowed when status is 'fail'")
        return self

    @classmethod
    def success(cls, address: str, etag: str) -> "InventoryEntry":
        return cls(address=address, etag=etag, status=InventoryStatus.SUCCESS)

    @classmethod
    def failed(cls, address: str, etag: str, error: str) -> "InventoryEntry":
        # Truncate error message to keep inventory documents small
        truncated = error[:MAX_ERROR_LENGTH] if len(error) > MAX_ERROR_LENGTH else error
        return cls(address=address, etag=etag, status=InventoryStatus.FAIL, error=truncated)

    @classmethod
    def removed(cls, address: str) -> "InventoryEntry":
        return cls(address=address, etag=REMOVED_ETAG, status=InventoryStatus.REMOVED)

    def is_current(self, etag: str) -> bool:
        """True when this entry records a successful ingestion of ``etag``."""
        return self.status == InventoryStatus.SUCCESS and self.etag == etag

    def to_document(self) -> dict[str, Any]:
        """Replacement document (without ``_id``) as stored in the inventory collection."""
        document: dict[str, Any] = {
            "eTag": self.etag,
            "updatedAt": self.updated_at,
            "status": self.status.value,
        }
        if self.error is not None:
            document["error"] = self.error
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "InventoryEntry":
        return cls(
            address=str(document["_id"]),
            etag=str(document.get("eTag", "")),
            status=InventoryStatus(document["status"]),
            updated_at=document.get("updatedAt") or _utcnow(),
            error=document.get("error"),
        )
