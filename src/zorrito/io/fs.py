"""
Atomic file writes and small read helpers for the local backend and report output.

Write path
- Bytes go to a unique sibling ``<path>.<hex>.tmp``, are flushed and fsynced, then moved
  over the destination with os.replace. Readers see the old file or the new one, never a
  partial write.
- os.replace is atomic only within one filesystem, which the sibling tmp name guarantees.

Import DAG discipline
- stdlib-only.
"""

from __future__ import annotations

import os
import uuid


def write_atomic(path: str, data: bytes) -> None:
    """
    Write bytes to path atomically, creating parent directories.

    Args:
        path (str): Final destination path.
        data (bytes): Content to persist.

    Notes:
        On failure the tmp file is removed and the original exception propagates.
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp_path = f"{path}.{uuid.uuid4().hex}.tmp"
    try:
        with open(tmp_path, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def read_bytes(path: str) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


def listdir(path: str) -> list[str]:
    """Entry names of a directory, sorted; [] if the directory does not exist."""
    try:
        return sorted(os.listdir(path))
    except FileNotFoundError:
        return []
