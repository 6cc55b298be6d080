"""
Embedding providers - the "embed text -> vector" capability the store consumes.
Local sentence-transformers, an Ollama server, or a deterministic hash for tests.
"""

from abc import ABC, abstractmethod
import hashlib
from typing import Optional

import numpy as np

from ..core.context import OperationContext, ensure_context
from ..core.errors import EmbeddingError
from ..util.logging import logger


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str, ctx: Optional[OperationContext] = None) -> list[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for testing purposes.

    This implementation uses a consistent hashing approach to generate
    reproducible embeddings from text, which is useful for testing
    without requiring external model dependencies.
    """

    def __init__(self, dimension: int = 768):
        self.dimension = dimension

    def embed_text(self, text: str, ctx: Optional[OperationContext] = None) -> list[float]:
        """Generate deterministic embedding vector using hash function."""
        ensure_context(ctx).check()

        vector = []
        counter = 0
        # Chain sha256 blocks until every dimension is filled
        while len(vector) < self.dimension:
            digest = hashlib.sha256(f"{counter}:{text}".encode("utf-8")).digest()
            for i in range(0, len(digest), 4):
                if len(vector) >= self.dimension:
                    break
                value = int.from_bytes(digest[i:i + 4], "little")
                # Map to [-1, 1] for cosine similarity
                vector.append((value / 2**32) * 2 - 1)
            counter += 1

        return vector

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    Uses the all-mpnet-base-v2 model (768 dimensions) by default.
    """

    def __init__(self, model_name: str = "all-mpnet-base-v2"):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_text(self, text: str, ctx: Optional[OperationContext] = None) -> list[float]:
        """Generate embedding vector using sentence transformers."""
        ensure_context(ctx).check()
        try:
            embedding = self.model.encode(text, convert_to_tensor=False)
        except Exception as e:
            logger.log_embedding("sentence_transformers", text, status="failed", error=str(e))
            raise EmbeddingError(f"sentence-transformers failed to embed text: {e}") from e

        vector = np.asarray(embedding, dtype=np.float32).tolist()
        logger.log_embedding("sentence_transformers", text, dimension=len(vector))
        return vector

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            self._dimension = self.model.get_sentence_embedding_dimension()
        return self._dimension


class OllamaEmbedding(IEmbeddingProvider):
    """Embedding provider backed by a local Ollama server.

    The default nomic-embed-text model produces 768-dimension vectors. The
    request timeout follows the operation context's remaining deadline.
    """

    def __init__(self, model_name: str = "nomic-embed-text", host: Optional[str] = None,
                 dimension: int = 768, timeout: float = 30.0):
        self.model_name = model_name
        self.host = host
        self.dimension = dimension
        self.timeout = timeout

    def _client(self, timeout: float):
        import ollama
        return ollama.Client(host=self.host, timeout=timeout)

    def embed_text(self, text: str, ctx: Optional[OperationContext] = None) -> list[float]:
        """Generate embedding vector through the Ollama embeddings API."""
        ctx = ensure_context(ctx)
        ctx.check()

        remaining = ctx.remaining()
        timeout = self.timeout if remaining is None else min(self.timeout, remaining)

        try:
            response = self._client(timeout).embeddings(model=self.model_name, prompt=text)
        except Exception as e:
            logger.log_embedding("ollama", text, status="failed", error=str(e))
            raise EmbeddingError(f"Ollama failed to embed text with {self.model_name}: {e}") from e

        ctx.check()

        vector = list(response["embedding"])
        if not vector:
            raise EmbeddingError(f"Ollama returned an empty embedding for model {self.model_name}")

        logger.log_embedding("ollama", text, dimension=len(vector))
        return vector

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension
