"""Unit tests for chunk creation tasks: download, parsing, splitting, building."""

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from langchain_core.documents import Document

from knowledge_base.core.exceptions import ObjectFetchError, ParsingError, UnsupportedObjectError
from knowledge_base.core.ingestion.chunk_builder import ChunkBuilder
from knowledge_base.core.ingestion.models import SourceObject
from knowledge_base.core.ingestion.tasks import ChunkingTask, ParsingTask, S3DownloadTask


# ============================================================================
# S3 Download Tests
# ============================================================================


def test_download_writes_to_temp_dir():
    """Test the object is downloaded under a fresh temp directory."""
    client = MagicMock()

    path = S3DownloadTask(s3_client=client).download("kb-docs", "guides/handbook.pdf")

    try:
        assert Path(path).name == "handbook.pdf"
        client.download_file.assert_called_once_with(
            Bucket="kb-docs",
            Key="guides/handbook.pdf",
            Filename=path,
            ExtraArgs=None,
        )
    finally:
        os.rmdir(os.path.dirname(path))


@pytest.mark.parametrize("code", ["404", "NoSuchKey"])
def test_download_missing_object(code):
    """Test a vanished object raises ObjectFetchError."""
    client = MagicMock()
    client.download_file.side_effect = ClientError({"Error": {"Code": code, "Message": "x"}}, "HeadObject")

    with pytest.raises(ObjectFetchError, match="not found"):
        S3DownloadTask(s3_client=client).download("kb-docs", "gone.pdf")


def test_download_rejects_folder_key():
    """Test keys without a file name are rejected."""
    with pytest.raises(ObjectFetchError):
        S3DownloadTask(s3_client=MagicMock()).download("kb-docs", "")


# ============================================================================
# Parsing Tests
# ============================================================================


def test_parse_text_file(tmp_path):
    """Test plain-text documents load through TextLoader."""
    document = tmp_path / "notes.txt"
    document.write_text("Leave policy\n\nThirty days per year.", encoding="utf-8")

    documents = ParsingTask().parse(str(document))

    assert "Thirty days" in documents[0].page_content


def test_parse_unsupported_format(tmp_path):
    """Test formats without a loader are rejected."""
    document = tmp_path / "slides.pptx"
    document.write_bytes(b"PK")

    with pytest.raises(UnsupportedObjectError):
        ParsingTask().parse(str(document))


def test_parse_missing_file(tmp_path):
    """Test missing files raise ParsingError."""
    with pytest.raises(ParsingError):
        ParsingTask().parse(str(tmp_path / "absent.pdf"))


def test_parse_empty_document(tmp_path):
    """Test documents without text raise ParsingError."""
    document = tmp_path / "blank.txt"
    document.write_text("   \n\n ", encoding="utf-8")

    with pytest.raises(ParsingError, match="no extractable text"):
        ParsingTask().parse(str(document))


def test_parse_corrupt_pdf(tmp_path):
    """Test loader failures are wrapped in ParsingError."""
    document = tmp_path / "corrupt.pdf"
    document.write_bytes(b"this is not a pdf")

    with pytest.raises(ParsingError):
        ParsingTask().parse(str(document), "s3://kb-docs/corrupt.pdf")


# ============================================================================
# Chunking Tests
# ============================================================================


def test_chunking_respects_budget():
    """Test segments stay within the character budget."""
    text = " ".join(f"word{i}" for i in range(2000))

    segments = ChunkingTask(chunk_size=500, chunk_overlap=0).chunk([Document(page_content=text)])

    assert len(segments) > 1
    assert all(len(segment) <= 500 for segment in segments)
    assert segments[0].startswith("word0 ")


def test_chunking_keeps_document_order():
    """Test segments follow page order."""
    pages = [Document(page_content="first page"), Document(page_content="second page")]

    assert ChunkingTask().chunk(pages) == ["first page", "second page"]


def test_chunking_empty_input():
    """Test empty input raises ValueError."""
    with pytest.raises(ValueError):
        ChunkingTask().chunk([])


# ============================================================================
# Chunk Builder Tests
# ============================================================================


class _Embedder:
    async def embed_many(self, texts):
        return [[float(len(text)), 1.0] for text in texts]


@pytest.mark.asyncio
async def test_chunk_builder_builds_embedded_chunks(tmp_path):
    """Test download -> parse -> split -> embed and temp cleanup."""
    temp_dir = tmp_path / "download"
    temp_dir.mkdir()
    local_file = temp_dir / "handbook.txt"
    local_file.write_text("Leave policy. Thirty days per year.", encoding="utf-8")
    download_task = MagicMock()
    download_task.download.return_value = str(local_file)

    builder = ChunkBuilder(embedder=_Embedder(), download_task=download_task)
    source = SourceObject(bucket="kb-docs", key="handbook.txt", etag="etag-1")

    chunks = await builder.build(source)

    assert len(chunks) == 1
    assert chunks[0].source == "s3://kb-docs/handbook.txt"
    assert chunks[0].etag == "etag-1"
    assert chunks[0].embedding == [35.0, 1.0]
    download_task.download.assert_called_once_with("kb-docs", "handbook.txt")
    assert not temp_dir.exists()


@pytest.mark.asyncio
async def test_chunk_builder_cleans_up_on_failure(tmp_path):
    """Test the temp directory is removed when parsing fails."""
    temp_dir = tmp_path / "download"
    temp_dir.mkdir()
    local_file = temp_dir / "blank.txt"
    local_file.write_text("  ", encoding="utf-8")
    download_task = MagicMock()
    download_task.download.return_value = str(local_file)

    builder = ChunkBuilder(embedder=_Embedder(), download_task=download_task)

    with pytest.raises(ParsingError):
        await builder.build(SourceObject(bucket="kb-docs", key="blank.txt", etag="etag-1"))
    assert not temp_dir.exists()


@pytest.mark.asyncio
async def test_chunk_ids_are_deterministic(tmp_path):
    """Test rebuilding the same version yields the same chunk ids."""
    ids = []
    for attempt in range(2):
        temp_dir = tmp_path / f"download{attempt}"
        temp_dir.mkdir()
        local_file = temp_dir / "handbook.txt"
        local_file.write_text("Leave policy.", encoding="utf-8")
        download_task = MagicMock()
        download_task.download.return_value = str(local_file)
        builder = ChunkBuilder(embedder=_Embedder(), download_task=download_task)

        chunks = await builder.build(SourceObject(bucket="kb-docs", key="handbook.txt", etag="etag-1"))
        ids.append([chunk.id for chunk in chunks])

    assert ids[0] == ids[1]
