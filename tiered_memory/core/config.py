"""
Configuration - environment-driven settings and backend factories.
Every setting has a default so a bare checkout runs against a local SQLite file.
"""

import os
from typing import List, Optional

# Storage backend: sqlite (brute-force search) | postgres (pgvector index)
DB_TYPE = os.getenv("DB_TYPE", "sqlite")

# SQLite file path / ":memory:", or a postgres:// connection URL
DATABASE_URL = os.getenv("DATABASE_URL", "./data/memory.db")

# Embedding configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "hash")  # hash|sentence_transformers|ollama
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "all-mpnet-base-v2")
EMBED_DIM = int(os.getenv("EMBED_DIM", "768"))
OLLAMA_HOST = os.getenv("OLLAMA_HOST")  # None uses the client default (localhost:11434)
OLLAMA_EMBED_MODEL = os.getenv("OLLAMA_EMBED_MODEL", "nomic-embed-text")

# Episodic memory policy
SIGNATURE_MAX_LEN = int(os.getenv("SIGNATURE_MAX_LEN", "50"))
MIN_RESPONSE_LENGTH = int(os.getenv("MIN_RESPONSE_LENGTH", "20"))
SEARCH_LIMIT = int(os.getenv("SEARCH_LIMIT", "10"))
TOOL_SEARCH_LIMIT = int(os.getenv("TOOL_SEARCH_LIMIT", "3"))

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

VERSION = "1.0.0"


def get_db_type() -> str:
    """Get the configured backend type, read at call time."""
    return os.getenv("DB_TYPE", DB_TYPE).lower()


def get_database_url() -> str:
    """Get the configured database path or URL, read at call time."""
    return os.getenv("DATABASE_URL", DATABASE_URL)


def get_embed_provider_name() -> str:
    """Get the configured embedding provider name (hash|sentence_transformers|ollama)."""
    return os.getenv("EMBED_PROVIDER", EMBED_PROVIDER).lower()


def get_embed_dim() -> int:
    """Get the embedding dimension used for hash vectors and the pgvector column."""
    return int(os.getenv("EMBED_DIM", str(EMBED_DIM)))


def get_signature_max_len() -> int:
    """Code points kept in each task signature."""
    return int(os.getenv("SIGNATURE_MAX_LEN", str(SIGNATURE_MAX_LEN)))


def get_min_response_length() -> int:
    """Characters a model response must exceed before it is ingested."""
    return int(os.getenv("MIN_RESPONSE_LENGTH", str(MIN_RESPONSE_LENGTH)))


def get_search_limit() -> int:
    return int(os.getenv("SEARCH_LIMIT", str(SEARCH_LIMIT)))


def get_tool_search_limit() -> int:
    return int(os.getenv("TOOL_SEARCH_LIMIT", str(TOOL_SEARCH_LIMIT)))


def debug_enabled() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_store(ctx=None, init_schema: bool = True):
    """
    Build the configured memory store.

    The strategy is fixed here, at construction; nothing downstream
    branches on the backend again.

    Raises:
        StoreConnectionError: the backend cannot be reached
        ValueError: DB_TYPE names no known backend
    """
    db_type = get_db_type()

    if db_type == "sqlite":
        from .sqlite_store import SQLiteStore
        store = SQLiteStore(get_database_url(), signature_length=get_signature_max_len(), ctx=ctx)
    elif db_type == "postgres":
        from .postgres_store import PostgresStore
        store = PostgresStore(get_database_url(), dimension=get_embed_dim(),
                              signature_length=get_signature_max_len(), ctx=ctx)
    else:
        raise ValueError(f"Unsupported DB_TYPE: {db_type}")

    if init_schema:
        try:
            store.init_schema(ctx)
        except Exception:
            store.close()
            raise
    return store


def get_embedding_provider():
    """Get configured embedding provider implementation."""
    provider = get_embed_provider_name()

    if provider == "hash":
        from ..vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(dimension=get_embed_dim())
    elif provider == "sentence_transformers":
        from ..vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(os.getenv("EMBED_MODEL_NAME", EMBED_MODEL_NAME))
    elif provider == "ollama":
        from ..vector.embeddings import OllamaEmbedding
        return OllamaEmbedding(
            model_name=os.getenv("OLLAMA_EMBED_MODEL", OLLAMA_EMBED_MODEL),
            host=os.getenv("OLLAMA_HOST", OLLAMA_HOST),
            dimension=get_embed_dim()
        )
    else:
        raise ValueError(f"Unsupported EMBED_PROVIDER: {provider}")


def get_memory_service(ctx=None, embedder=None, search_limit: Optional[int] = None):
    """
    Build a MemoryService over the configured store and embedding provider.

    SEARCH_LIMIT and MIN_RESPONSE_LENGTH are read here, so env changes made
    after import still apply.
    """
    from .service import MemoryService

    if embedder is None:
        embedder = get_embedding_provider()
    return MemoryService(
        get_store(ctx=ctx),
        embedder,
        search_limit=search_limit if search_limit is not None else get_search_limit(),
        min_response_length=get_min_response_length()
    )


def validate_config() -> List[str]:
    """Validate configuration and return any issues."""
    issues = []

    db_type = get_db_type()
    if db_type not in ["sqlite", "postgres"]:
        issues.append(f"Invalid DB_TYPE: {db_type}")

    url = get_database_url()
    if db_type == "postgres" and not url.startswith(("postgres://", "postgresql://")):
        issues.append("DB_TYPE=postgres requires a postgres:// DATABASE_URL")

    if get_embed_provider_name() not in ["hash", "sentence_transformers", "ollama"]:
        issues.append(f"Invalid EMBED_PROVIDER: {get_embed_provider_name()}")

    if get_embed_dim() < 1:
        issues.append("EMBED_DIM must be >= 1")

    if get_signature_max_len() < 1:
        issues.append("SIGNATURE_MAX_LEN must be >= 1")

    if get_min_response_length() < 0:
        issues.append("MIN_RESPONSE_LENGTH must be >= 0")

    if get_search_limit() < 1 or get_tool_search_limit() < 1:
        issues.append("SEARCH_LIMIT and TOOL_SEARCH_LIMIT must be >= 1")

    return issues


def describe_config(url: Optional[str] = None) -> str:
    """One-line summary of the active backend, with credentials hidden."""
    url = url if url is not None else get_database_url()
    if "@" in url:
        scheme, _, rest = url.partition("://")
        url = f"{scheme}://***@{rest.split('@', 1)[1]}"
    return f"backend={get_db_type()} url={url} embedder={get_embed_provider_name()}"
