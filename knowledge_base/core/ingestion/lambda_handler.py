"""
Lambda handler for S3-triggered knowledge base ingestion.

Receives S3 object notifications (directly or wrapped in SQS messages) and
applies each one to the chunk store through the ingestion pipeline. Records
are processed in delivery order, one at a time; a failing record does not
stop the batch.

Environment variables:
- MONGODB_CONN_STRING / MONGODB_CONN_SECRET_ARN: Atlas connection
- EMBEDDING_MODEL_ID, EMBEDDING_DIMENSIONS: Bedrock embedding model
- INGESTION_CHUNK_SIZE, INGESTION_TIMEOUT_SECONDS: Chunking and deadline
- LOG_LEVEL: Logging level

Dependencies: lambda_utils.event_parser, pipeline, boundary factories
System role: Lambda entry point for document ingestion
"""

import asyncio
import json
import logging
from functools import lru_cache
from typing import Any, Dict

import boto3

from knowledge_base.boundary.db import get_chunk_store
from knowledge_base.boundary.embeddings import get_embedding_client
from knowledge_base.configs import Settings, get_settings
from knowledge_base.core.exceptions import EventParseError
from knowledge_base.core.ingestion.chunk_builder import ChunkBuilder
from knowledge_base.core.ingestion.lambda_utils.event_parser import parse_record
from knowledge_base.core.ingestion.models import IngestOutcome
from knowledge_base.core.ingestion.pipeline import IngestionPipeline
from knowledge_base.core.ingestion.tasks import ChunkingTask, MetadataTask, S3DownloadTask
from knowledge_base.observability import configure_logging

logger = logging.getLogger(__name__)


@lru_cache
def get_pipeline() -> IngestionPipeline:
    """Build the ingestion pipeline once per container."""
    settings = get_settings()
    s3_client = boto3.client("s3", region_name=settings.aws_region)
    chunk_builder = ChunkBuilder(
        embedder=get_embedding_client(),
        download_task=S3DownloadTask(s3_client=s3_client),
        chunking_task=ChunkingTask(
            chunk_size=settings.ingestion.chunk_size,
            chunk_overlap=settings.ingestion.chunk_overlap,
        ),
    )
    return IngestionPipeline(
        store=get_chunk_store(),
        chunk_builder=chunk_builder,
        metadata_task=MetadataTask(s3_client=s3_client),
        settings=settings.ingestion,
    )


def record_deadline(context: Any, settings: Settings) -> float:
    """
    Seconds available for the next record.

    Uses the Lambda remaining time minus a safety margin (so a timeout can
    still be recorded), capped by the configured per-object timeout.
    """
    timeout = settings.ingestion.timeout_seconds
    if context is None or not hasattr(context, "get_remaining_time_in_millis"):
        return timeout
    remaining = context.get_remaining_time_in_millis() / 1000 - settings.ingestion.deadline_margin_seconds
    return max(0.0, min(timeout, remaining))


async def process_records(
    records: list[Dict[str, Any]],
    pipeline: IngestionPipeline,
    context: Any,
    settings: Settings,
) -> list[Dict[str, Any]]:
    """
    Run every record through the pipeline sequentially.

    Returns:
        list[dict]: One summary entry per event (or per unparseable record)
    """
    results: list[Dict[str, Any]] = []

    for record in records:
        record_id = record.get("messageId") or record.get("eventID")
        try:
            events = parse_record(record)
        except EventParseError as e:
            logger.warning("process_records - EventParseError: %s", e)
            results.append(
                {
                    "recordId": record_id,
                    "status": "failed",
                    "error": "Invalid event format",
                    "details": str(e),
                }
            )
            continue

        for event in events:
            try:
                result = await pipeline.handle_event(event, timeout=record_deadline(context, settings))
            except Exception as e:
                logger.error(
                    "process_records - %s: %s",
                    type(e).__name__,
                    e,
                    extra={"address": event.address},
                )
                results.append(
                    {
                        "recordId": record_id,
                        "address": event.address,
                        "status": "failed",
                        "error": "Unexpected error",
                        "details": str(e),
                    }
                )
                continue

            entry: Dict[str, Any] = {
                "recordId": record_id,
                "address": result.address,
                "status": "failed" if result.outcome is IngestOutcome.FAILED else "success",
                "outcome": result.outcome.value,
                "chunk_count": result.chunk_count,
                "processing_time_ms": result.processing_time_ms,
            }
            if result.error:
                entry["details"] = result.error
            results.append(entry)

    return results


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Process S3 notifications.

    Args:
        event: Lambda event with ``Records`` (S3 or SQS)
        context: Lambda context

    Returns:
        dict: ``statusCode`` 200 when every event succeeded, 206 otherwise,
        and a JSON ``body`` summarizing each event
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    records = event.get("Records", [])
    logger.info("handler - Received %d records", len(records))

    results = asyncio.run(process_records(records, get_pipeline(), context, settings))

    failed_count = sum(1 for result in results if result["status"] == "failed")
    status_code = 200 if failed_count == 0 else 206
    logger.info(
        "handler - Processing complete",
        extra={"success_count": len(results) - failed_count, "failed_count": failed_count},
    )

    return {
        "statusCode": status_code,
        "body": json.dumps(
            {
                "processed": len(results),
                "failed": failed_count,
                "results": results,
            }
        ),
    }
