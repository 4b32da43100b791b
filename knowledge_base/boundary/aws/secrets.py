"""
Secrets Manager access.

Dependencies: boto3
System role: Resolve the MongoDB connection string at cold start
"""

import logging

import boto3
from botocore.exceptions import ClientError

from knowledge_base.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class SecretRetriever:
    """Read a plain-text secret from AWS Secrets Manager."""

    def __init__(self, secret_id: str, region: str | None = None) -> None:
        """
        Initialize retriever.

        Args:
            secret_id: Secret name or ARN
            region: AWS region (defaults to the Lambda region)
        """
        if not secret_id:
            raise ValueError("secret_id cannot be empty")
        self._secret_id = secret_id
        self._client = boto3.client("secretsmanager", region_name=region)

    def get_secret(self) -> str:
        """
        Fetch the secret string.

        Returns:
            str: Secret value, surrounding whitespace stripped

        Raises:
            ConfigurationError: Secret missing, unreadable or not a string secret
        """
        try:
            response = self._client.get_secret_value(SecretId=self._secret_id)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error("get_secret - Failed to fetch secret: %s", error_code)
            raise ConfigurationError(
                f"Unable to retrieve secret {self._secret_id}",
                {"error_code": error_code},
            ) from e

        secret = (response or {}).get("SecretString")
        if not secret:
            raise ConfigurationError(f"Unable to retrieve value of secret named {self._secret_id}")
        return secret.strip()
