from __future__ import annotations

import hashlib

from zorrito.core.hashing import content_hash, is_content_hash


def test_content_hash_is_sha256_hex() -> None:
    payload = b"\x89PNG" + bytes(200)
    assert content_hash(payload) == hashlib.sha256(payload).hexdigest()


def test_content_hash_identifies_payload() -> None:
    assert content_hash(b"a" * 127) == content_hash(bytearray(b"a" * 127))
    assert content_hash(b"a" * 127) != content_hash(b"a" * 128)


def test_is_content_hash() -> None:
    assert is_content_hash(content_hash(b"x"))
    assert not is_content_hash("abc")
    assert not is_content_hash(content_hash(b"x").upper())
