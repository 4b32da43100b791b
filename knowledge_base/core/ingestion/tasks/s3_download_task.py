"""
S3 document download task.

Downloads documents from S3 to local temp directory for processing.
Lambda-compatible: uses /tmp directory.

Dependencies: boto3
System role: First stage of chunk creation (S3 source)
"""

import os
import tempfile
from pathlib import PurePosixPath
from typing import Any

import boto3
from botocore.exceptions import ClientError

from knowledge_base.core.exceptions import ObjectFetchError
from knowledge_base.core.ingestion.models import build_address

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class S3DownloadTask:
    """Download documents from S3 to local temp directory."""

    def __init__(self, region: str | None = None, s3_client: Any | None = None) -> None:
        """
        Initialize S3 download task.

        Args:
            region: AWS region for the S3 client
            s3_client: Preconfigured boto3 S3 client (shared with other tasks)
        """
        self._s3_client = s3_client or boto3.client("s3", region_name=region)

    def download(self, bucket: str, key: str, version_id: str | None = None) -> str:
        """
        Download object to a fresh temp directory.

        Args:
            bucket: Bucket name
            key: Object key (decoded)
            version_id: Optional S3 version to pin the download to

        Returns:
            str: Local file path; the caller removes its parent directory

        Raises:
            ObjectFetchError: When download fails or object no longer exists
        """
        address = build_address(bucket, key)
        filename = PurePosixPath(key).name
        if not filename:
            raise ObjectFetchError(f"Invalid S3 key: {key}", address)

        temp_dir = tempfile.mkdtemp(prefix="kb_ingest_")
        local_path = os.path.join(temp_dir, filename)
        extra_args = {"VersionId": version_id} if version_id else None

        try:
            self._s3_client.download_file(
                Bucket=bucket,
                Key=key,
                Filename=local_path,
                ExtraArgs=extra_args,
            )
            return local_path

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in NOT_FOUND_CODES:
                raise ObjectFetchError(f"File not found in S3: {address}", address) from e
            raise ObjectFetchError(f"Failed to download from S3: {e}", address) from e
        except Exception as e:
            raise ObjectFetchError(f"Unexpected error downloading from S3: {e}", address) from e
