"""
Hybrid search request and result models.

Dependencies: pydantic
System role: Contract between the retrieval engine and chunk stores
"""

from typing import Any

from pydantic import BaseModel, Field


class HybridSearchRequest(BaseModel):
    """Parameters for one fused vector + full-text search."""

    text: str = Field(description="Full-text query")
    vector: list[float] = Field(description="Query embedding")
    k: int = Field(default=10, ge=1, description="Results per branch and after fusion")
    num_candidates: int = Field(default=100, ge=1, description="ANN candidates explored")
    vector_weight: float = Field(default=0.1, ge=0.0)
    fulltext_weight: float = Field(default=0.9, ge=0.0)
    rank_constant: int = Field(default=60, ge=1)
    filter: dict[str, Any] | None = Field(
        default=None,
        description="Compiled MQL predicate applied inside both branches",
    )


class QueryResult(BaseModel):
    """Chunk view returned by hybrid search (no embedding)."""

    id: str = Field(description="Chunk identifier")
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    vs_score: float = Field(default=0.0, description="Vector branch contribution")
    fts_score: float = Field(default=0.0, description="Full-text branch contribution")
    score: float = Field(default=0.0, description="vs_score + fts_score")

    @property
    def source(self) -> str | None:
        return self.metadata.get("source")

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "QueryResult":
        vs_score = float(document.get("vs_score") or 0.0)
        fts_score = float(document.get("fts_score") or 0.0)
        return cls(
            id=str(document["_id"]),
            text=document.get("text", ""),
            metadata=document.get("metadata", {}),
            vs_score=vs_score,
            fts_score=fts_score,
            score=float(document.get("score", vs_score + fts_score)),
        )

    def to_payload(self) -> dict[str, Any]:
        """Outbound shape handed to the agent."""
        return self.model_dump(mode="json", include={"text", "metadata", "vs_score", "fts_score", "score"})
