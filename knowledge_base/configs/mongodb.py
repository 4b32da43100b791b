"""
MongoDB Atlas configuration settings.

Connection string (or the Secrets Manager secret holding it), database and
collection names, and the Atlas Search index names used by hybrid search.

Dependencies: pydantic, pydantic_settings
System role: Chunk store configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoDBSettings(BaseSettings):
    """MongoDB Atlas connection and collection settings."""

    model_config = SettingsConfigDict(
        env_prefix="MONGODB_",
        case_sensitive=False,
        extra="ignore",
    )

    conn_string: str = Field(default="", description="MongoDB connection string")
    conn_secret_arn: str = Field(
        default="",
        description="Secrets Manager secret holding the connection string (takes precedence)",
    )
    database: str = Field(default="knowledgebase", description="Database name")
    chunks_collection: str = Field(default="kbChunks", description="Chunk collection name")
    inventory_collection: str = Field(
        default="kbInventory",
        description="Inventory collection name (one entry per source address)",
    )
    vector_index: str = Field(default="vector_index", description="Atlas Vector Search index name")
    text_index: str = Field(default="text_index", description="Atlas Search (full-text) index name")
    vector_filter_fields: list[str] = Field(
        default=[],
        description="Metadata keys declared as filter fields on the vector index",
    )
    server_selection_timeout_ms: int = Field(
        default=10000,
        description="pymongo server selection timeout",
    )
