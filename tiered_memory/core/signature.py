"""
Signature generator - bounded-length display prefix of an error description.
"""

from typing import Union

DEFAULT_SIGNATURE_LENGTH = 50


def make_signature(text: Union[str, bytes], max_len: int = DEFAULT_SIGNATURE_LENGTH) -> str:
    """
    Return at most `max_len` code points from the start of `text`.

    Python str indexes by code point, so a slice never splits a multi-byte
    character. Bytes input is decoded as UTF-8 first (strictly: invalid
    input raises UnicodeDecodeError rather than producing mangled text).
    """
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8")
    if not text:
        return ""
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    return text[:max_len]
