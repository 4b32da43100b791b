"""
Ingestion pipeline: per-address state machine over object lifecycle events.

Rules, one event at a time:

1. Removed (any key): delete every chunk of the address, record ``removed``.
2. Created sidecar (``*.metadata.json``): merge its attributes into the
   chunks of the document it describes. Inventory untouched.
3. Created key with an unsupported extension: skipped, nothing written.
4. Created document: skipped when inventory already records this eTag as
   ``success``; otherwise build chunks, insert them, then delete chunks of
   other versions, record ``success`` and apply any sidecar present.
   A failure records ``fail`` with the new eTag.

New chunks are always inserted before stale ones are deleted, so an address
with a successful ingestion never has zero chunks.

Dependencies: knowledge_base.boundary.db, ChunkBuilder, MetadataTask
System role: Sole writer of chunks and inventory
"""

import asyncio
import json
import logging
import time
import traceback
from typing import TYPE_CHECKING, Any

from knowledge_base.configs.ingestion import IngestionSettings
from knowledge_base.core.concurrency import run_blocking
from knowledge_base.core.exceptions import EventParseError, IngestionTimeoutError
from knowledge_base.core.ingestion.chunk_builder import ChunkBuilder
from knowledge_base.core.ingestion.models import (
    EventAction,
    IngestOutcome,
    IngestResult,
    ObjectEvent,
    ObjectKind,
    SourceObject,
    build_address,
    classify_key,
    sidecar_target_key,
)
from knowledge_base.core.ingestion.tasks import MetadataTask
from knowledge_base.models import InventoryEntry
from knowledge_base.observability import log_exception_with_context

if TYPE_CHECKING:
    from knowledge_base.boundary.db import ChunkStore

logger = logging.getLogger(__name__)

RESERVED_METADATA_KEYS = frozenset({"source", "eTag"})


def sanitize_attributes(attributes: dict[str, Any], address: str = "") -> dict[str, Any]:
    """
    Drop sidecar attributes that would overwrite identity fields or break MQL paths.

    Args:
        attributes: Raw ``metadataAttributes`` map
        address: Target address, for logging

    Returns:
        dict: Attributes safe to merge under ``metadata.<key>``
    """
    sanitized: dict[str, Any] = {}
    for key, value in attributes.items():
        if not isinstance(key, str) or not key or key in RESERVED_METADATA_KEYS:
            logger.warning("sanitize_attributes - Ignoring reserved attribute %r for %s", key, address)
            continue
        if key.startswith("$") or "." in key:
            logger.warning("sanitize_attributes - Ignoring invalid attribute name %r for %s", key, address)
            continue
        sanitized[key] = value
    return sanitized


def describe_failure(error: BaseException) -> str:
    """Error description stored on a ``fail`` inventory entry."""
    return json.dumps(
        {
            "error": str(error),
            "type": type(error).__name__,
            "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        }
    )


class IngestionPipeline:
    """Apply object lifecycle events to the chunk store."""

    def __init__(
        self,
        store: "ChunkStore",
        chunk_builder: ChunkBuilder,
        metadata_task: MetadataTask,
        settings: IngestionSettings | None = None,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            store: Chunk and inventory store
            chunk_builder: Builds embedded chunks for a document version
            metadata_task: Sidecar loader
            settings: Ingestion settings (defaults if None)
        """
        self._store = store
        self._chunk_builder = chunk_builder
        self._metadata_task = metadata_task
        self._settings = settings or IngestionSettings()

    async def handle_event(self, event: ObjectEvent, timeout: float | None = None) -> IngestResult:
        """
        Process one object lifecycle event.

        Processing failures of a document are recorded in the inventory and
        reported through the result, not raised.

        Args:
            event: Parsed S3 event
            timeout: Deadline in seconds for building and writing a document

        Returns:
            IngestResult: What happened to the event

        Raises:
            EventParseError: Created document event without an eTag
            ChunkStoreError: Store unavailable outside the document ingest path
        """
        start_time = time.perf_counter()
        action = event.action

        if action is None:
            logger.info("handle_event - Ignoring event %s for %s", event.event_name, event.address)
            result = IngestResult(address=event.address, outcome=IngestOutcome.IGNORED)
        elif action is EventAction.REMOVED:
            result = await self._remove(event)
        else:
            kind = classify_key(event.key, self._settings.document_extensions)
            if kind is ObjectKind.METADATA_SIDECAR:
                result = await self._merge_sidecar(event.bucket, sidecar_target_key(event.key))
            elif kind is ObjectKind.UNSUPPORTED:
                logger.debug("handle_event - Skipping unsupported object %s", event.address)
                result = IngestResult(address=event.address, outcome=IngestOutcome.SKIPPED_UNSUPPORTED)
            else:
                if not event.etag:
                    raise EventParseError(f"Created event without eTag: {event.address}", event.record_id)
                source = SourceObject(bucket=event.bucket, key=event.key, etag=event.etag)
                result = await self._ingest(source, timeout)

        result.processing_time_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "handle_event - Event processed",
            extra={
                "address": result.address,
                "outcome": result.outcome.value,
                "chunk_count": result.chunk_count,
                "stale_deleted": result.stale_deleted,
                "processing_time_ms": round(result.processing_time_ms, 1),
            },
        )
        return result

    async def _remove(self, event: ObjectEvent) -> IngestResult:
        address = event.address
        deleted = await self._store.delete_chunks(address)
        kind = classify_key(event.key, self._settings.document_extensions)
        # Sidecars and unsupported keys only get an entry if one already exists
        if kind is ObjectKind.DOCUMENT or await self._store.get_inventory(address) is not None:
            await self._store.put_inventory(InventoryEntry.removed(address))
        else:
            logger.debug("_remove - No inventory entry for non-document %s", address)
        return IngestResult(address=address, outcome=IngestOutcome.REMOVED, stale_deleted=deleted)

    async def _merge_sidecar(self, bucket: str, document_key: str) -> IngestResult:
        address = build_address(bucket, document_key)
        attributes = await run_blocking(self._metadata_task.load, bucket, document_key)
        if attributes is None:
            return IngestResult(address=address, outcome=IngestOutcome.METADATA_MISSING)

        attributes = sanitize_attributes(attributes, address)
        updated = await self._store.merge_metadata(address, attributes)
        if updated == 0:
            logger.info("_merge_sidecar - No chunks to update for %s", address)
        return IngestResult(address=address, outcome=IngestOutcome.METADATA_MERGED, chunk_count=updated)

    async def _ingest(self, source: SourceObject, timeout: float | None) -> IngestResult:
        address = source.address
        entry = await self._store.get_inventory(address)
        if entry is not None and entry.is_current(source.etag):
            logger.info("_ingest - %s already ingested at eTag %s", address, source.etag)
            return IngestResult(address=address, outcome=IngestOutcome.SKIPPED_CURRENT, etag=source.etag)

        try:
            if timeout is None:
                inserted, deleted = await self._write_version(source)
            else:
                inserted, deleted = await asyncio.wait_for(self._write_version(source), timeout)
        except asyncio.TimeoutError as e:
            error = IngestionTimeoutError(f"Ingestion exceeded {timeout}s deadline", address)
            error.__cause__ = e
            return await self._record_failure(source, error)
        except Exception as e:
            return await self._record_failure(source, e)

        await self._apply_sidecar_best_effort(source)
        return IngestResult(
            address=address,
            outcome=IngestOutcome.INGESTED,
            etag=source.etag,
            chunk_count=inserted,
            stale_deleted=deleted,
        )

    async def _write_version(self, source: SourceObject) -> tuple[int, int]:
        chunks = await self._chunk_builder.build(source)
        inserted = await self._store.insert_chunks(chunks)
        # Only after the new version is in place
        deleted = await self._store.delete_chunks(source.address, keep_etag=source.etag)
        await self._store.put_inventory(InventoryEntry.success(source.address, source.etag))
        return inserted, deleted

    async def _record_failure(self, source: SourceObject, error: Exception) -> IngestResult:
        log_exception_with_context(
            logger,
            f"_ingest - Ingestion failed: {type(error).__name__}",
            error,
            address=source.address,
            etag=source.etag,
        )
        await self._store.put_inventory(InventoryEntry.failed(source.address, source.etag, describe_failure(error)))
        return IngestResult(
            address=source.address,
            outcome=IngestOutcome.FAILED,
            etag=source.etag,
            error=str(error),
        )

    async def _apply_sidecar_best_effort(self, source: SourceObject) -> None:
        try:
            await self._merge_sidecar(source.bucket, source.key)
        except Exception as e:
            logger.warning(
                "_apply_sidecar_best_effort - Metadata merge failed for %s: %s: %s",
                source.address,
                type(e).__name__,
                e,
            )
