"""
Per-container manifest data structures and helpers for the local backend.

Manifest layout (JSON at <container_dir>/manifest.json):
{
  "container_id": "000001",
  "version": 1,
  "created_at": "ISO-8601",
  "updated_at": "ISO-8601",
  "metadata": {"applicationId": "...", "season": "2025-11", ...},
  "records": [
    {
      "record_id": 1,
      "content_hash": "<sha256 hex>",
      "size": 4567,
      "metadata": {"type": "fox_profile", "foxId": "...", ...},
      "created_at": "ISO-8601"
    }
  ]
}

Notes:
- Records are kept in append order; record_id is assigned as len(records) + 1.
- Payload blobs live outside the container directory and are shared by content hash.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from typing import Any

from zorrito.core.season import utc_now_iso

from .fs import write_atomic
from .paths import manifest_path


@dataclass(slots=True)
class RecordMeta:
    """
    Per-record entry recorded in the container manifest.

    Attributes:
        record_id (int): Sequence id assigned on append (1-based, per container).
        content_hash (str): Content address of the payload blob.
        size (int): Payload size in bytes.
        metadata (dict[str, str]): Flat record metadata map.
        created_at (str): ISO-8601 timestamp of the append.
    """

    record_id: int
    content_hash: str
    size: int
    metadata: dict[str, str]
    created_at: str


@dataclass(slots=True)
class ContainerManifest:
    """
    Manifest model persisted at <container_dir>/manifest.json.

    Attributes:
        container_id (str): Zero-padded container id.
        version (int): Manifest schema version.
        created_at (str): ISO-8601 creation timestamp.
        updated_at (str): ISO-8601 timestamp of the last append.
        metadata (dict[str, str]): Container metadata map (immutable after creation).
        records (list[RecordMeta]): Records in append order.
    """

    container_id: str
    version: int
    created_at: str
    updated_at: str
    metadata: dict[str, str]
    records: list[RecordMeta] = field(default_factory=list)

    def to_json_obj(self) -> dict[str, Any]:
        return {
            "container_id": self.container_id,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "metadata": dict(self.metadata),
            "records": [asdict(r) for r in self.records],
        }

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> ContainerManifest:
        records = [
            RecordMeta(
                record_id=int(r["record_id"]),
                content_hash=str(r["content_hash"]),
                size=int(r.get("size", 0)),
                metadata={str(k): str(v) for k, v in (r.get("metadata") or {}).items()},
                created_at=r.get("created_at") or "",
            )
            for r in (obj.get("records") or [])
        ]
        now = utc_now_iso()
        return cls(
            container_id=str(obj["container_id"]),
            version=int(obj.get("version", 1)),
            created_at=obj.get("created_at") or now,
            updated_at=obj.get("updated_at") or now,
            metadata={str(k): str(v) for k, v in (obj.get("metadata") or {}).items()},
            records=records,
        )

    def append(self, content_hash: str, size: int, metadata: dict[str, str]) -> RecordMeta:
        """Append a record entry, assigning the next sequence id."""
        now = utc_now_iso()
        entry = RecordMeta(
            record_id=len(self.records) + 1,
            content_hash=content_hash,
            size=size,
            metadata=dict(metadata),
            created_at=now,
        )
        self.records.append(entry)
        self.updated_at = now
        return entry

    def find(self, record_id: int) -> RecordMeta | None:
        if 1 <= record_id <= len(self.records):
            return self.records[record_id - 1]
        return None


def new_manifest(container_id: str, metadata: dict[str, str], version: int = 1) -> ContainerManifest:
    """Create a fresh ContainerManifest with no records."""
    now = utc_now_iso()
    return ContainerManifest(
        container_id=container_id,
        version=version,
        created_at=now,
        updated_at=now,
        metadata=dict(metadata),
    )


def load_manifest(root: str, container_id: str) -> ContainerManifest | None:
    """
    Load a container's manifest.json if present.

    Returns:
        ContainerManifest | None: Parsed manifest model, or None if not found.
    """
    mpath = manifest_path(root, container_id)
    if not os.path.exists(mpath):
        return None
    with open(mpath, encoding="utf-8") as fh:
        data = json.load(fh)
    return ContainerManifest.from_json_obj(data)


def write_manifest(root: str, manifest: ContainerManifest) -> None:
    """
    Persist manifest.json atomically (tmp write → fsync → os.replace).

    Raises:
        OSError: If filesystem operations fail (the backend wraps it in BackendError).
    """
    payload = json.dumps(manifest.to_json_obj(), indent=2, sort_keys=False).encode("utf-8")
    write_atomic(manifest_path(root, manifest.container_id), payload)
