"""
Storage backend boundary and the in-memory reference backend.

Overview
- StorageBackend is the only interface through which zorrito reaches content-addressed
  storage. Metadata crosses it as flat ``dict[str, str]`` maps.
- MemoryBackend is a thread-safe, process-local implementation used by tests, demos, and the
  "memory" backend setting.

Boundary operations
- put(container_id, payload, metadata) -> PutResult{content_hash, container_id}
- list_containers(metadata_filter) -> containers whose metadata contains every filter pair,
  in creation order
- create_container(metadata) -> container_id
- enumerate_records(container_id) -> RecordEntry{record_id, content_hash} in append order
- get_record_metadata(container_id, record_id) -> dict[str, str]
- get(content_hash) -> payload bytes

Notes
- Unknown containers, records, or hashes raise zorrito.io.errors.BackendError.
- Record ids are assigned by the backend, monotonically increasing within a container.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from zorrito.core.hashing import content_hash as _content_hash
from zorrito.core.typing import ContainerId, ContentHash, Metadata

from .errors import BackendError

__all__ = [
    "PutResult",
    "ContainerInfo",
    "RecordEntry",
    "StorageBackend",
    "metadata_matches",
    "MemoryBackend",
]


@dataclass(slots=True, frozen=True)
class PutResult:
    """Outcome of a successful put: the payload's address and the container it landed in."""

    content_hash: ContentHash
    container_id: ContainerId


@dataclass(slots=True, frozen=True)
class ContainerInfo:
    """A container as listed by the backend."""

    container_id: ContainerId
    metadata: Metadata


@dataclass(slots=True, frozen=True)
class RecordEntry:
    """A record as enumerated by the backend (metadata is fetched separately)."""

    record_id: int
    content_hash: ContentHash


@runtime_checkable
class StorageBackend(Protocol):
    """Content-addressed storage with per-container record enumeration."""

    def put(self, container_id: str, payload: bytes, metadata: Mapping[str, str]) -> PutResult: ...

    def list_containers(self, metadata_filter: Mapping[str, str]) -> Iterable[ContainerInfo]: ...

    def create_container(self, metadata: Mapping[str, str]) -> ContainerId: ...

    def enumerate_records(self, container_id: str) -> Iterable[RecordEntry]: ...

    def get_record_metadata(self, container_id: str, record_id: int) -> Metadata: ...

    def get(self, content_hash: str) -> bytes: ...


def metadata_matches(metadata: Mapping[str, str], metadata_filter: Mapping[str, str]) -> bool:
    """
    Return True if every filter pair is present in metadata with an equal value.

    Examples:
        >>> metadata_matches({"season": "2025-11", "env": "dev"}, {"season": "2025-11"})
        True
        >>> metadata_matches({"season": "2025-11"}, {"season": "2025-12"})
        False
    """
    return all(metadata.get(k) == v for k, v in metadata_filter.items())


@dataclass(slots=True)
class _MemContainer:
    metadata: Metadata
    records: list[tuple[RecordEntry, Metadata]] = field(default_factory=list)


class MemoryBackend:
    """
    Thread-safe in-memory StorageBackend.

    Notes:
        - Container ids are decimal strings assigned in creation order ("1", "2", ...).
        - Payloads are stored once per content hash; records referencing the same payload
          keep their own ids and metadata.
        - Enumeration returns a snapshot, so appends during a scan are not observed by it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._containers: dict[str, _MemContainer] = {}
        self._blobs: dict[str, bytes] = {}

    def _container(self, container_id: str) -> _MemContainer:
        try:
            return self._containers[container_id]
        except KeyError:
            raise BackendError(f"unknown container {container_id!r}") from None

    def put(self, container_id: str, payload: bytes, metadata: Mapping[str, str]) -> PutResult:
        digest = _content_hash(bytes(payload))
        with self._lock:
            container = self._container(container_id)
            self._blobs.setdefault(digest, bytes(payload))
            entry = RecordEntry(record_id=len(container.records) + 1, content_hash=digest)
            container.records.append((entry, dict(metadata)))
        return PutResult(content_hash=digest, container_id=ContainerId(container_id))

    def list_containers(self, metadata_filter: Mapping[str, str]) -> list[ContainerInfo]:
        with self._lock:
            return [
                ContainerInfo(container_id=ContainerId(cid), metadata=dict(c.metadata))
                for cid, c in self._containers.items()
                if metadata_matches(c.metadata, metadata_filter)
            ]

    def create_container(self, metadata: Mapping[str, str]) -> ContainerId:
        with self._lock:
            cid = str(len(self._containers) + 1)
            self._containers[cid] = _MemContainer(metadata=dict(metadata))
        return ContainerId(cid)

    def enumerate_records(self, container_id: str) -> list[RecordEntry]:
        with self._lock:
            return [entry for entry, _ in self._container(container_id).records]

    def get_record_metadata(self, container_id: str, record_id: int) -> Metadata:
        with self._lock:
            records = self._container(container_id).records
            if not 1 <= record_id <= len(records):
                raise BackendError(f"unknown record {record_id} in container {container_id!r}")
            return dict(records[record_id - 1][1])

    def get(self, content_hash: str) -> bytes:
        with self._lock:
            try:
                return self._blobs[content_hash]
            except KeyError:
                raise BackendError(f"no payload stored under {content_hash!r}") from None
