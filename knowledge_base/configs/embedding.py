"""
Embedding model configuration.

Dependencies: pydantic, pydantic_settings
System role: Bedrock embedding client configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingSettings(BaseSettings):
    """Bedrock Titan embedding settings."""

    model_config = SettingsConfigDict(
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
    )

    model_id: str = Field(
        default="amazon.titan-embed-text-v2:0",
        description="Bedrock embedding model ID",
    )
    dimensions: int = Field(
        default=1024,
        description="Output dimension, must match the vector index numDimensions",
    )
    region: str = Field(default="us-east-1", description="AWS region for Bedrock runtime")
    max_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum in-flight embedding calls per document",
    )
