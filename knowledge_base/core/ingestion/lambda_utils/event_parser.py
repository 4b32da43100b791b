"""
S3 event parsing utilities for Lambda.

Accepts S3 notifications delivered directly to Lambda and S3 notifications
wrapped in SQS messages.
"""

import json
import logging
from typing import Any, Dict, List
from urllib.parse import unquote_plus

from knowledge_base.core.exceptions import EventParseError
from knowledge_base.core.ingestion.models import ObjectEvent

logger = logging.getLogger(__name__)

S3_TEST_EVENT = "s3:TestEvent"


def clean_s3_key(raw_key: str) -> str:
    """
    Decode an object key from an S3 notification.

    Keys arrive URL-encoded with ``+`` for spaces; non-ASCII characters are
    percent-encoded.
    """
    return unquote_plus(raw_key)


def parse_s3_event_record(s3_record: Dict[str, Any], record_id: str | None = None) -> ObjectEvent:
    """
    Parse one S3 event record.

    S3 sends event notifications with this structure:
    {
        "eventName": "ObjectCreated:Put",
        "s3": {
            "bucket": {"name": "bucket-name"},
            "object": {"key": "folder/file+name.pdf", "eTag": "0123abcd", "size": 1024}
        }
    }

    Raises:
        EventParseError: Missing event name, bucket or key
    """
    event_name = s3_record.get("eventName")
    if not event_name:
        raise EventParseError("Missing eventName", record_id)

    s3_info = s3_record.get("s3") or {}
    bucket = (s3_info.get("bucket") or {}).get("name")
    object_info = s3_info.get("object") or {}
    raw_key = object_info.get("key")

    if not bucket:
        raise EventParseError("Missing S3 bucket name", record_id)
    if not raw_key:
        raise EventParseError("Missing S3 object key", record_id)

    event = ObjectEvent(
        event_name=event_name,
        bucket=bucket,
        key=clean_s3_key(raw_key),
        etag=object_info.get("eTag") or object_info.get("etag"),
        record_id=record_id or object_info.get("sequencer"),
    )
    logger.info(
        "parse_s3_event_record - Parsed S3 event",
        extra={"record_id": event.record_id, "event_name": event_name, "s3_key": event.key},
    )
    return event


def parse_record(record: Dict[str, Any]) -> List[ObjectEvent]:
    """
    Parse one Lambda event record into object events.

    A direct S3 record yields one event. An SQS record yields the S3 records
    embedded in its body, or none for the ``s3:TestEvent`` sent when a
    notification is first configured.

    Raises:
        EventParseError: Invalid JSON body or unrecognized record shape
    """
    if "s3" in record:
        return [parse_s3_event_record(record)]

    message_id = record.get("messageId")
    body = record.get("body")
    if body is None:
        raise EventParseError("Record is neither an S3 event nor an SQS message", message_id)

    try:
        payload = json.loads(body) if isinstance(body, str) else body
    except json.JSONDecodeError as e:
        logger.error("parse_record - JSONDecodeError: %s", e)
        raise EventParseError(f"Invalid JSON in message body: {e}", message_id) from e

    if not isinstance(payload, dict):
        raise EventParseError("Message body is not a JSON object", message_id)

    if payload.get("Event") == S3_TEST_EVENT:
        logger.info("parse_record - Ignoring S3 test event", extra={"record_id": message_id})
        return []

    if "Records" in payload:
        return [parse_s3_event_record(item, message_id) for item in payload.get("Records") or []]
    if "s3" in payload:
        return [parse_s3_event_record(payload, message_id)]

    raise EventParseError("Message body does not contain an S3 event", message_id)
