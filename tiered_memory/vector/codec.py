"""
Vector codec - float32 vectors to and from flat byte buffers.
Each element is 4 bytes little-endian, concatenated with no header or padding.
"""

from typing import Optional, Sequence, Union

import numpy as np

from ..core.errors import VectorDecodeError

# Explicit byte order so blobs are portable across hosts
FLOAT32_LE = np.dtype("<f4")
BYTES_PER_ELEMENT = FLOAT32_LE.itemsize

VectorLike = Union[Sequence[float], np.ndarray]


def encode_vector(vector: Optional[VectorLike]) -> Optional[bytes]:
    """
    Encode a vector for storage.

    None encodes to None (stored as NULL). Values are reinterpreted as
    float32 bit patterns, not quantized, so negatives and subnormals survive
    a round trip exactly.
    """
    if vector is None:
        return None
    return np.asarray(vector, dtype=FLOAT32_LE).reshape(-1).tobytes()


def decode_vector(blob: Optional[bytes]) -> Optional[np.ndarray]:
    """
    Decode a stored blob back into a float32 vector.

    None decodes to None and an empty buffer to an empty vector. A buffer
    whose length is not a multiple of 4 is corrupt and raises
    VectorDecodeError instead of being silently truncated.
    """
    if blob is None:
        return None
    if len(blob) % BYTES_PER_ELEMENT != 0:
        raise VectorDecodeError(
            f"embedding blob of {len(blob)} bytes is not a multiple of {BYTES_PER_ELEMENT}"
        )
    # frombuffer returns a read-only view over the blob, copy into native order
    return np.frombuffer(bytes(blob), dtype=FLOAT32_LE).astype(np.float32)


def encoded_size(dimension: int) -> int:
    """Byte length of an encoded vector with `dimension` elements."""
    return dimension * BYTES_PER_ELEMENT
