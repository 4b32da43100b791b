"""
Hybrid retrieval configuration.

Dependencies: pydantic, pydantic_settings
System role: Reciprocal rank fusion tuning
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrievalSettings(BaseSettings):
    """Settings for reciprocal-rank-fusion hybrid search."""

    model_config = SettingsConfigDict(
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        extra="ignore",
    )

    k: int = Field(default=10, ge=1, le=100, description="Number of results returned")
    overfetch_factor: int = Field(
        default=10,
        ge=1,
        description="ANN candidates considered per returned result (numCandidates = k * factor)",
    )
    vector_weight: float = Field(default=0.1, ge=0.0, description="Vector branch weight")
    fulltext_weight: float = Field(default=0.9, ge=0.0, description="Full-text branch weight")
    rank_constant: int = Field(default=60, ge=1, description="RRF smoothing constant")
    timeout_seconds: float = Field(default=20.0, description="Upper bound for one query")
