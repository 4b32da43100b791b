"""
Ingestion pipeline configuration.

Dependencies: pydantic, pydantic_settings
System role: Segmenting and deadline settings for the ingestion Lambda
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IngestionSettings(BaseSettings):
    """Settings for document ingestion."""

    model_config = SettingsConfigDict(
        env_prefix="INGESTION_",
        case_sensitive=False,
        extra="ignore",
    )

    chunk_size: int = Field(default=2500, description="Maximum chunk size in characters")
    chunk_overlap: int = Field(default=0, description="Overlap between consecutive chunks")
    document_extensions: list[str] = Field(
        default=[".pdf"],
        description="Object key extensions ingested as documents",
    )
    timeout_seconds: float = Field(
        default=600.0,
        description="Upper bound for ingesting a single object",
    )
    deadline_margin_seconds: float = Field(
        default=5.0,
        description="Time kept back from the Lambda deadline to record a failure",
    )
