"""
Similarity engine - brute-force cosine ranking over in-memory candidates.

Ranking is a full scan plus a comparison sort, O(n log n) per query. That is
fine for the low thousands of records an assistant accumulates; beyond that
a real vector index is needed.
"""

from typing import Iterable, List, Optional, Tuple, TypeVar, Union

import numpy as np

from .types import Candidate, RankedCandidate

T = TypeVar("T")


def _as_vector(vector) -> Optional[np.ndarray]:
    if vector is None:
        return None
    return np.asarray(vector, dtype=np.float64).reshape(-1)


def cosine_similarity(a, b) -> float:
    """
    Cosine similarity dot(a, b) / (|a| * |b|), in [-1, 1].

    Returns 0.0 when the vectors differ in length, are empty, or either has
    zero magnitude.
    """
    va = _as_vector(a)
    vb = _as_vector(b)
    if va is None or vb is None or va.size == 0 or va.size != vb.size:
        return 0.0

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(va, vb) / (norm_a * norm_b))
    # Clamp float error so identical vectors never report 1.0000000002
    return max(-1.0, min(1.0, similarity))


def rank(query, candidates: Iterable[Union[Candidate[T], Tuple[T, object]]],
         k: int) -> List[RankedCandidate[T]]:
    """
    Rank candidates by cosine similarity to `query` and return the top k.

    Candidates without a vector, or whose vector length differs from the
    query's, are skipped rather than ranked at 0. Sorting is stable, so ties
    keep scan order.
    """
    if k <= 0:
        return []

    query_vector = _as_vector(query)
    if query_vector is None or query_vector.size == 0:
        return []

    scored: List[RankedCandidate[T]] = []
    for candidate in candidates:
        if isinstance(candidate, Candidate):
            item, vector = candidate.item, candidate.vector
        else:
            item, vector = candidate

        stored = _as_vector(vector)
        if stored is None or stored.size != query_vector.size:
            continue

        scored.append(RankedCandidate(item=item, score=cosine_similarity(query_vector, stored)))

    scored.sort(key=lambda hit: hit.score, reverse=True)
    return scored[:k]


def count_comparable(query, vectors: Iterable[object]) -> int:
    """Number of vectors with the same non-zero length as the query."""
    query_vector = _as_vector(query)
    if query_vector is None or query_vector.size == 0:
        return 0
    return sum(1 for v in vectors if v is not None and _as_vector(v).size == query_vector.size)
