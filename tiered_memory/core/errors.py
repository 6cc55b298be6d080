"""
Error taxonomy for the memory store.
Callers receive these; driver exceptions are chained as __cause__.
"""


class MemoryStoreError(Exception):
    """Base class for every error raised by the memory core."""


class StoreConnectionError(MemoryStoreError):
    """The backend could not be reached while constructing a store."""


class StoreQueryError(MemoryStoreError):
    """A single read or write against the backend failed."""


class EmbeddingError(MemoryStoreError):
    """The embedding provider failed to produce a vector."""


class InvalidExperienceError(MemoryStoreError, ValueError):
    """An experience with no pattern, cause or solution was submitted."""


class VectorDecodeError(ValueError):
    """A stored embedding blob is not a whole number of float32 values."""


class OperationCancelled(MemoryStoreError):
    """The operation context was cancelled before the call completed."""


class DeadlineExceeded(OperationCancelled):
    """The operation context's deadline passed before the call completed."""
