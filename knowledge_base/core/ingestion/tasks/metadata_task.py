"""
Metadata sidecar loading task.

A sidecar is a JSON object stored next to a document as
``<key>.metadata.json``. Only its ``metadataAttributes`` map is used; a
missing or malformed sidecar means "no metadata", never an error.

See https://aws.amazon.com/blogs/machine-learning/amazon-bedrock-knowledge-bases-now-supports-metadata-filtering-to-improve-retrieval-accuracy/

Dependencies: boto3
System role: Best-effort metadata lookup for chunk filtering attributes
"""

import json
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from knowledge_base.core.ingestion.models import build_address, sidecar_key_for

logger = logging.getLogger(__name__)

ATTRIBUTES_FIELD = "metadataAttributes"
NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class MetadataTask:
    """Load sidecar attributes for a document."""

    def __init__(self, region: str | None = None, s3_client: Any | None = None) -> None:
        self._s3_client = s3_client or boto3.client("s3", region_name=region)

    def load(self, bucket: str, key: str) -> dict[str, Any] | None:
        """
        Load the attribute map for a document or sidecar key.

        Args:
            bucket: Bucket name
            key: Either ``file.pdf`` or ``file.pdf.metadata.json``

        Returns:
            dict | None: ``metadataAttributes`` map, or None when absent/malformed
        """
        sidecar_key = sidecar_key_for(key)
        address = build_address(bucket, sidecar_key)

        try:
            response = self._s3_client.get_object(Bucket=bucket, Key=sidecar_key)
            raw = response["Body"].read()
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in NOT_FOUND_CODES:
                logger.info("load - Metadata file not present", extra={"s3_key": sidecar_key})
            else:
                logger.warning(
                    "load - Unable to fetch metadata file",
                    extra={"s3_key": sidecar_key, "error_code": error_code},
                )
            return None
        except BotoCoreError as e:
            logger.warning("load - Unable to fetch metadata file %s: %s", address, e)
            return None

        return parse_sidecar(raw, address)


def parse_sidecar(raw: bytes | str, address: str = "") -> dict[str, Any] | None:
    """
    Extract ``metadataAttributes`` from sidecar JSON.

    Returns:
        dict | None: Attribute map, or None when the payload is not usable
    """
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("parse_sidecar - Malformed metadata file %s: %s", address, e)
        return None

    if not isinstance(payload, dict) or ATTRIBUTES_FIELD not in payload:
        logger.warning("parse_sidecar - Metadata file %s has no %s", address, ATTRIBUTES_FIELD)
        return None

    attributes = payload[ATTRIBUTES_FIELD]
    if not isinstance(attributes, dict):
        logger.warning("parse_sidecar - %s in %s is not an object", ATTRIBUTES_FIELD, address)
        return None
    return attributes
