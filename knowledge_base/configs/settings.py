"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for both Lambda functions
"""

from functools import lru_cache

from dotenv import load_dotenv

from knowledge_base.configs.base import BaseSettings
from knowledge_base.configs.embedding import EmbeddingSettings
from knowledge_base.configs.ingestion import IngestionSettings
from knowledge_base.configs.mongodb import MongoDBSettings
from knowledge_base.configs.retrieval import RetrievalSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    mongodb: MongoDBSettings = MongoDBSettings()
    embedding: EmbeddingSettings = EmbeddingSettings()
    ingestion: IngestionSettings = IngestionSettings()
    retrieval: RetrievalSettings = RetrievalSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Environment variables (and a local .env, if present) are loaded once
    per process.

    Returns:
        Settings: Application settings instance
    """
    load_dotenv()
    return Settings(
        mongodb=MongoDBSettings(),
        embedding=EmbeddingSettings(),
        ingestion=IngestionSettings(),
        retrieval=RetrievalSettings(),
    )
