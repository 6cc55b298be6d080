"""
Shared fixtures: a throwaway SQLite store and deterministic embedders.
"""

import pytest

from tiered_memory.core.sqlite_store import SQLiteStore
from tiered_memory.vector.embeddings import DeterministicHashEmbedding, IEmbeddingProvider


class FixedEmbedding(IEmbeddingProvider):
    """Returns preset vectors by text, a fallback vector otherwise; records every call."""

    def __init__(self, vectors=None, default=None, dimension=3):
        self.vectors = dict(vectors or {})
        self.default = default if default is not None else [1.0] + [0.0] * (dimension - 1)
        self.dimension = dimension
        self.calls = []

    def embed_text(self, text, ctx=None):
        self.calls.append(text)
        return list(self.vectors.get(text, self.default))

    def get_dimension(self):
        return self.dimension


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "memory.db")


@pytest.fixture
def store(db_path):
    """Initialized SQLite store backed by a temporary file."""
    sqlite_store = SQLiteStore(db_path)
    sqlite_store.init_schema()
    yield sqlite_store
    sqlite_store.close()


@pytest.fixture
def hash_embedder():
    return DeterministicHashEmbedding(dimension=32)


@pytest.fixture
def fixed_embedder():
    return FixedEmbedding()


@pytest.fixture
def make_embedder():
    """Factory for FixedEmbedding with preset vectors."""
    return FixedEmbedding
