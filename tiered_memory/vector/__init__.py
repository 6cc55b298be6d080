"""
Vector layer - codec, similarity ranking and embedding providers.
"""

# Package initialization for vector module
from .codec import encode_vector, decode_vector
from .similarity import cosine_similarity, rank
from .types import Candidate, RankedCandidate
from .embeddings import IEmbeddingProvider, DeterministicHashEmbedding, SentenceTransformerEmbedding, OllamaEmbedding

__all__ = [
    'encode_vector',
    'decode_vector',
    'cosine_similarity',
    'rank',
    'Candidate',
    'RankedCandidate',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbedding',
    'OllamaEmbedding'
]
