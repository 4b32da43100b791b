"""
Models for the ingestion pipeline.

Exports: ObjectEvent, SourceObject, EventAction, ObjectKind, IngestResult, IngestOutcome
"""

from .ingest_result import IngestOutcome, IngestResult
from .s3_event import (
    METADATA_SUFFIX,
    EventAction,
    ObjectEvent,
    ObjectKind,
    SourceObject,
    build_address,
    classify_key,
    is_sidecar_key,
    sidecar_key_for,
    sidecar_target_key,
)

__all__ = [
    "IngestOutcome",
    "IngestResult",
    "METADATA_SUFFIX",
    "EventAction",
    "ObjectEvent",
    "ObjectKind",
    "SourceObject",
    "build_address",
    "classify_key",
    "is_sidecar_key",
    "sidecar_key_for",
    "sidecar_target_key",
]
