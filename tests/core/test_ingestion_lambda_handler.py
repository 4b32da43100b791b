"""Tests for the S3-triggered ingestion Lambda."""

import asyncio
import json
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from knowledge_base.configs import Settings
from knowledge_base.configs.ingestion import IngestionSettings
from knowledge_base.core.exceptions import ObjectFetchError
from knowledge_base.core.ingestion.chunk_builder import ChunkBuilder
from knowledge_base.core.ingestion.lambda_handler import handler, process_records, record_deadline
from knowledge_base.core.ingestion.pipeline import IngestionPipeline
from knowledge_base.models import InventoryStatus


@pytest.fixture
def settings() -> Settings:
    return Settings(ingestion=IngestionSettings(timeout_seconds=600, deadline_margin_seconds=5))


class TestRecordDeadline:
    def test_without_context_uses_configured_timeout(self, settings) -> None:
        assert record_deadline(None, settings) == 600

    def test_remaining_time_minus_margin(self, settings) -> None:
        context = MagicMock()
        context.get_remaining_time_in_millis.return_value = 65_000

        assert record_deadline(context, settings) == pytest.approx(60.0)

    def test_capped_by_configured_timeout(self, settings, lambda_context) -> None:
        settings.ingestion.timeout_seconds = 30

        assert record_deadline(lambda_context, settings) == 30

    def test_never_negative(self, settings) -> None:
        context = MagicMock()
        context.get_remaining_time_in_millis.return_value = 1_000

        assert record_deadline(context, settings) == 0.0


class TestProcessRecords:
    """Per-record processing with error tolerance."""

    def test_direct_and_sqs_records(self, pipeline, store, s3_record, sqs_record, lambda_context, settings) -> None:
        records = [s3_record("docs/a+b.pdf", "etag-1"), sqs_record("docs/c.pdf", etag="etag-2")]

        results = asyncio.run(process_records(records, pipeline, lambda_context, settings))

        assert [result["status"] for result in results] == ["success", "success"]
        assert results[0]["address"] == "s3://kb-docs/docs/a b.pdf"
        assert results[1]["recordId"] == "msg-1"
        assert asyncio.run(store.get_inventory("s3://kb-docs/docs/a b.pdf")).status == InventoryStatus.SUCCESS

    def test_bad_record_does_not_stop_batch(self, pipeline, s3_record, lambda_context, settings) -> None:
        records = [{"messageId": "broken", "body": "not json"}, s3_record("docs/ok.pdf")]

        results = asyncio.run(process_records(records, pipeline, lambda_context, settings))

        assert results[0]["status"] == "failed"
        assert results[0]["error"] == "Invalid event format"
        assert results[1]["status"] == "success"

    def test_failed_ingestion_is_reported(self, pipeline, chunk_builder, s3_record, lambda_context, settings) -> None:
        chunk_builder.errors[("docs/bad.pdf", "etag-1")] = RuntimeError("boom")

        (result,) = asyncio.run(process_records([s3_record("docs/bad.pdf")], pipeline, lambda_context, settings))

        assert result["status"] == "failed"
        assert result["outcome"] == "failed"
        assert "boom" in result["details"]

    def test_test_event_is_ignored(self, pipeline, lambda_context, settings) -> None:
        record = {
            "messageId": "m-test",
            "body": json.dumps({"Service": "Amazon S3", "Event": "s3:TestEvent", "Bucket": "kb-docs"}),
        }

        assert asyncio.run(process_records([record], pipeline, lambda_context, settings)) == []


class TestHandler:
    def test_all_success_returns_200(self, pipeline, s3_record, lambda_context) -> None:
        event = {"Records": [s3_record("docs/a.pdf"), s3_record("docs/image.png")]}

        with patch("knowledge_base.core.ingestion.lambda_handler.get_pipeline", return_value=pipeline):
            response = handler(event, lambda_context)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["processed"] == 2
        assert body["failed"] == 0
        assert [result["outcome"] for result in body["results"]] == ["ingested", "skipped_unsupported"]

    def test_partial_failure_returns_206(self, pipeline, s3_record, lambda_context) -> None:
        event = {"Records": [s3_record("docs/a.pdf"), {"eventName": "ObjectCreated:Put"}]}

        with patch("knowledge_base.core.ingestion.lambda_handler.get_pipeline", return_value=pipeline):
            response = handler(event, lambda_context)

        assert response["statusCode"] == 206
        assert json.loads(response["body"])["failed"] == 1

    def test_returns_at_deadline_when_download_hangs(
        self, store, embedder, metadata_task, s3_record, lambda_context
    ) -> None:
        """A hung S3 download must not hold the response past the record deadline."""
        release = threading.Event()

        def hang(bucket: str, key: str) -> str:
            release.wait(5)
            raise ObjectFetchError("Download abandoned", f"s3://{bucket}/{key}")

        download_task = MagicMock()
        download_task.download.side_effect = hang
        pipeline = IngestionPipeline(
            store=store,
            chunk_builder=ChunkBuilder(embedder, download_task),
            metadata_task=metadata_task,
        )
        settings = Settings(ingestion=IngestionSettings(timeout_seconds=0.2))

        try:
            with patch("knowledge_base.core.ingestion.lambda_handler.get_pipeline", return_value=pipeline), patch(
                "knowledge_base.core.ingestion.lambda_handler.get_settings", return_value=settings
            ):
                start = time.perf_counter()
                response = handler({"Records": [s3_record("docs/a.pdf")]}, lambda_context)
                elapsed = time.perf_counter() - start
        finally:
            release.set()

        assert elapsed < 2.0
        assert response["statusCode"] == 206
        assert json.loads(response["body"])["results"][0]["outcome"] == "failed"
        entry = asyncio.run(store.get_inventory("s3://kb-docs/docs/a.pdf"))
        assert entry.status == InventoryStatus.FAIL
        assert "IngestionTimeoutError" in entry.error
