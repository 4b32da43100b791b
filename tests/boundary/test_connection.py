"""Tests for connection string resolution and Secrets Manager access."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from knowledge_base.boundary.aws.secrets import SecretRetriever
from knowledge_base.boundary.db.connection import resolve_connection_string
from knowledge_base.configs.mongodb import MongoDBSettings
from knowledge_base.core.exceptions import ConfigurationError


class TestSecretRetriever:
    @patch("knowledge_base.boundary.aws.secrets.boto3")
    def test_returns_stripped_secret(self, mock_boto3) -> None:
        mock_boto3.client.return_value.get_secret_value.return_value = {"SecretString": " mongodb+srv://x \n"}

        assert SecretRetriever("arn:secret", region="eu-west-1").get_secret() == "mongodb+srv://x"
        mock_boto3.client.assert_called_once_with("secretsmanager", region_name="eu-west-1")

    @patch("knowledge_base.boundary.aws.secrets.boto3")
    def test_client_error(self, mock_boto3) -> None:
        mock_boto3.client.return_value.get_secret_value.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, "GetSecretValue"
        )

        with pytest.raises(ConfigurationError) as exc_info:
            SecretRetriever("arn:secret").get_secret()
        assert exc_info.value.details["error_code"] == "AccessDeniedException"

    @patch("knowledge_base.boundary.aws.secrets.boto3")
    def test_binary_secret_is_rejected(self, mock_boto3) -> None:
        mock_boto3.client.return_value.get_secret_value.return_value = {"SecretBinary": b"..."}

        with pytest.raises(ConfigurationError):
            SecretRetriever("arn:secret").get_secret()


class TestResolveConnectionString:
    def test_prefers_secret(self) -> None:
        settings = MongoDBSettings(conn_secret_arn="arn:secret", conn_string="mongodb://plain")

        with patch("knowledge_base.boundary.db.connection.SecretRetriever") as retriever_cls:
            retriever_cls.return_value.get_secret.return_value = "mongodb+srv://secret"
            assert resolve_connection_string(settings, region="us-east-1") == "mongodb+srv://secret"
        retriever_cls.assert_called_once_with("arn:secret", region="us-east-1")

    def test_plain_connection_string(self) -> None:
        settings = MongoDBSettings(conn_secret_arn="", conn_string="mongodb://plain")

        assert resolve_connection_string(settings) == "mongodb://plain"

    def test_missing_configuration(self) -> None:
        settings = MongoDBSettings(conn_secret_arn="", conn_string="")

        with pytest.raises(ConfigurationError):
            resolve_connection_string(settings)
