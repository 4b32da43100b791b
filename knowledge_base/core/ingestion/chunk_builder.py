"""
Chunk builder.

Coordinates S3 download, parsing, splitting and embedding for one source
version. Blocking stages run in a worker thread; the downloaded file is
removed whether or not the build succeeds.

Dependencies: All task modules
System role: Chunk creation (coordinates only, writes nothing)
"""

import logging
import os
import shutil
import time
from typing import TYPE_CHECKING

from knowledge_base.core.concurrency import run_blocking
from knowledge_base.core.exceptions import ParsingError
from knowledge_base.core.ingestion.models import SourceObject
from knowledge_base.core.ingestion.tasks import (
    ChunkingTask,
    EmbeddingTask,
    ParsingTask,
    S3DownloadTask,
)
from knowledge_base.models import Chunk
from knowledge_base.observability import log_with_context

if TYPE_CHECKING:
    from knowledge_base.boundary.embeddings import BedrockEmbeddingClient

logger = logging.getLogger(__name__)


class ChunkBuilder:
    """Turn one source version into embedded chunks: S3 download -> parse -> split -> embed."""

    def __init__(
        self,
        embedder: "BedrockEmbeddingClient",
        download_task: S3DownloadTask,
        parsing_task: ParsingTask | None = None,
        chunking_task: ChunkingTask | None = None,
    ) -> None:
        """
        Initialize builder with its tasks.

        Args:
            embedder: Embedding client used for every segment
            download_task: S3 download task
            parsing_task: Parsing task (default loaders if None)
            chunking_task: Splitter (2500 characters, no overlap if None)
        """
        self._download_task = download_task
        self._parsing_task = parsing_task or ParsingTask()
        self._chunking_task = chunking_task or ChunkingTask()
        self._embedding_task = EmbeddingTask(embedder)

    def segment(self, source: SourceObject) -> list[str]:
        """
        Download and split a source object into ordered text segments.

        Raises:
            ObjectFetchError: Object could not be downloaded
            UnsupportedObjectError: No loader for the object's format
            ParsingError: Parsing failed or produced no text
        """
        local_path = self._download_task.download(source.bucket, source.key)
        try:
            documents = self._parsing_task.parse(local_path, source.address)
            return self._chunking_task.chunk(documents)
        finally:
            shutil.rmtree(os.path.dirname(local_path), ignore_errors=True)

    async def build(self, source: SourceObject) -> list[Chunk]:
        """
        Build the full chunk batch for a source version.

        Returns:
            list[Chunk]: Embedded chunks in segment order

        Raises:
            ParsingError: Document produced no segments
            EmbeddingError: Any embedding call failed
        """
        start_time = time.perf_counter()
        segments = await run_blocking(self.segment, source)
        if not segments:
            raise ParsingError("Document produced no segments", source.address)

        chunks = await self._embedding_task.embed(source, segments)

        log_with_context(
            logger,
            logging.INFO,
            "build - Built chunks",
            address=source.address,
            etag=source.etag,
            chunk_count=len(chunks),
            elapsed_ms=round((time.perf_counter() - start_time) * 1000, 1),
        )
        return chunks
