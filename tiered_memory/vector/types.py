"""
Similarity engine result types.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

import numpy as np

T = TypeVar("T")


@dataclass
class Candidate(Generic[T]):
    """An item offered for ranking together with its vector."""

    item: T
    """The record being ranked"""

    vector: Optional[np.ndarray]
    """Its embedding, None when the record has no embedding"""


@dataclass
class RankedCandidate(Generic[T]):
    """A ranked search hit."""

    item: T
    """The matching record"""

    score: float
    """Cosine similarity to the query, range [-1, 1]"""
