"""
Path and layout helpers for the local backend.

Overview (file protocol baseline)
- <root>/containers/<container_id>/manifest.json
- <root>/blobs/<hash[:2]>/<hash>

Source of truth
- Container ids are zero-padded decimal sequence numbers ("000001"), assigned in creation
  order. Ids widen past 999999, so listings order them numerically, not lexicographically.
- Content hashes come from zorrito.core.hashing.content_hash (SHA-256 hex).

Import DAG discipline
- stdlib + zorrito.core only. No imports from higher-level packages.
"""

from __future__ import annotations

import os
import re
from typing import Final

from zorrito.core.hashing import is_content_hash

from .errors import BackendError

_MANIFEST_NAME: Final[str] = "manifest.json"
_CONTAINER_ID_RE: Final[re.Pattern[str]] = re.compile(r"^\d{6,}$")


def format_container_id(seq: int) -> str:
    """
    Format a container sequence number as a zero-padded id.

    Raises:
        ValueError: If seq < 1.

    Examples:
        >>> format_container_id(12)
        '000012'
    """
    if seq < 1:
        raise ValueError("container sequence must be >= 1")
    return f"{seq:06d}"


def is_container_id(name: str) -> bool:
    """
    True if name has the shape of a container id.

    Examples:
        >>> is_container_id("000012"), is_container_id("1000000"), is_container_id("1")
        (True, True, False)
    """
    return bool(_CONTAINER_ID_RE.match(name))


def validate_container_id(container_id: str) -> str:
    """
    Validate that a container id is safe for filesystem paths.

    Raises:
        BackendError: If container_id is not a zero-padded decimal id.
    """
    if not isinstance(container_id, str) or not is_container_id(container_id):
        raise BackendError(f"unknown container {container_id!r}")
    return container_id


def containers_root(root: str) -> str:
    """Path "<root>/containers"."""
    return os.path.join(root, "containers")


def container_dir(root: str, container_id: str) -> str:
    """Path "<root>/containers/<container_id>"."""
    return os.path.join(containers_root(root), validate_container_id(container_id))


def manifest_path(root: str, container_id: str) -> str:
    """Path "<root>/containers/<container_id>/manifest.json"."""
    return os.path.join(container_dir(root, container_id), _MANIFEST_NAME)


def blob_path(root: str, content_hash: str) -> str:
    """
    Path of a payload blob, sharded by the first two hex digits of its hash.

    Raises:
        BackendError: If content_hash is not a SHA-256 hex digest.
    """
    if not is_content_hash(content_hash):
        raise BackendError(f"malformed content hash {content_hash!r}")
    return os.path.join(root, "blobs", content_hash[:2], content_hash)
