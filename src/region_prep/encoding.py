# region_prep/encoding.py
"""Row key encoding between external representations and raw bytes."""
from __future__ import annotations

from typing import Iterable, Iterator, Union

KeyLike = Union[str, bytes, bytearray, memoryview]

__all__ = ["KeyLike", "to_key", "to_keys", "display_key"]


def to_key(value: KeyLike) -> bytes:
    """
    Map an external row key to the byte form used for ordering.

    Strings are encoded as UTF-8; bytes-like values are copied verbatim.
    Comparison of the result is plain lexicographic byte order.

    Raises
    ------
    TypeError
        If value is not a string or bytes-like object.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"row key must be str or bytes-like, got {type(value).__name__}")


def to_keys(values: Iterable[KeyLike]) -> Iterator[bytes]:
    """Lazily apply to_key over an iterable."""
    for value in values:
        yield to_key(value)


def display_key(key: bytes, *, hex_output: bool = False) -> str:
    """Render a key for logs and summaries (UTF-8 when possible, else hex)."""
    if hex_output:
        return key.hex()
    try:
        return key.decode("utf-8")
    except UnicodeDecodeError:
        return key.hex()
