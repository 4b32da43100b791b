"""
Task modules for chunk creation.

Exports: S3DownloadTask, ParsingTask, ChunkingTask, EmbeddingTask, MetadataTask
"""

from .chunking_task import ChunkingTask
from .embedding_task import EmbeddingTask
from .metadata_task import MetadataTask, parse_sidecar
from .parsing_task import ParsingTask
from .s3_download_task import S3DownloadTask

__all__ = [
    "ChunkingTask",
    "EmbeddingTask",
    "MetadataTask",
    "parse_sidecar",
    "ParsingTask",
    "S3DownloadTask",
]
