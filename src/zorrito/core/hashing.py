"""
Content hashing helpers.

Provides the SHA-256 content address used by the bundled backends. This module is
zero-IO and uses only the Python standard library.

Notes:
    - The address is derived from payload bytes only; record metadata is attached
      alongside the hash and never contributes to it.
    - Two records with identical payloads share an address but keep distinct record ids.
"""

from __future__ import annotations

import hashlib

from .typing import ContentHash

__all__ = [
    "content_hash",
    "is_content_hash",
]

_HEX_DIGITS = frozenset("0123456789abcdef")


def content_hash(payload: bytes) -> ContentHash:
    """
    Compute the content address of a payload.

    Args:
        payload (bytes): Raw payload bytes.

    Returns:
        ContentHash: SHA-256 hex digest of the payload.

    Examples:
        >>> content_hash(b"abc")[:8]
        'ba7816bf'
    """
    return ContentHash(hashlib.sha256(payload).hexdigest())


def is_content_hash(value: str) -> bool:
    """Return True if value looks like a lower-case SHA-256 hex digest."""
    return len(value) == 64 and set(value) <= _HEX_DIGITS
