"""
Embedding model adapters.
"""

from knowledge_base.boundary.embeddings.bedrock_embeddings import (
    BedrockEmbeddingClient,
    get_embedding_client,
)

__all__ = ["BedrockEmbeddingClient", "get_embedding_client"]
