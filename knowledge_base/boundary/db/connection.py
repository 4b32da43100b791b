"""
Process-wide MongoDB client.

The client is created on first use and reused by every invocation served by
the same Lambda container. pymongo clients pool connections and are safe to
share between threads, so nothing here assumes a fresh connection.

Dependencies: pymongo, knowledge_base.boundary.aws.secrets
System role: Cached MongoDB connection for both Lambda functions
"""

import logging
from functools import lru_cache

from pymongo import MongoClient
from pymongo.server_api import ServerApi

from knowledge_base.boundary.aws.secrets import SecretRetriever
from knowledge_base.configs import get_settings
from knowledge_base.configs.mongodb import MongoDBSettings
from knowledge_base.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def resolve_connection_string(settings: MongoDBSettings, region: str | None = None) -> str:
    """
    Resolve the connection string, preferring the Secrets Manager secret.

    Raises:
        ConfigurationError: Neither MONGODB_CONN_SECRET_ARN nor MONGODB_CONN_STRING is set
    """
    if settings.conn_secret_arn:
        return SecretRetriever(settings.conn_secret_arn, region=region).get_secret()
    if settings.conn_string:
        return settings.conn_string
    raise ConfigurationError(
        "Missing MONGODB_CONN_SECRET_ARN and MONGODB_CONN_STRING environment variables"
    )


@lru_cache
def get_mongo_client() -> MongoClient:
    """
    Get the process-wide MongoDB client.

    Returns:
        MongoClient: Connected (lazily) client using the Stable API v1
    """
    settings = get_settings()
    conn_string = resolve_connection_string(settings.mongodb, region=settings.aws_region)
    client: MongoClient = MongoClient(
        conn_string,
        server_api=ServerApi("1"),
        serverSelectionTimeoutMS=settings.mongodb.server_selection_timeout_ms,
        appname="knowledge-base",
    )
    logger.info("get_mongo_client - MongoDB client initialized")
    return client
