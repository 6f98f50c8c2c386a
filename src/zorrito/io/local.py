"""
File-based content-addressed backend.

Overview
- Stores payload blobs once per content hash under <root>/blobs/.
- Keeps one JSON manifest per container listing its metadata and records in append order.
- Writes are atomic per file (tmp → fsync → os.replace); the manifest is rewritten on
  every append.
- Parsed manifests are cached per container and reused while the file's mtime and size
  are unchanged, so a scan parses each manifest once rather than once per record.
- Container ids are listed in numeric order and entries that are not container ids are
  ignored.

Notes
- Single-process semantics: a lock serializes mutations within this process; there is no
  inter-process locking.
- OS-level failures are wrapped in zorrito.io.errors.BackendError so that callers see the
  same error type as with any other backend.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping

from zorrito.core.hashing import content_hash as _content_hash
from zorrito.core.typing import ContainerId, ContentHash, Metadata

from .backend import ContainerInfo, PutResult, RecordEntry, metadata_matches
from .errors import BackendError
from .fs import listdir, read_bytes, write_atomic
from .manifest import ContainerManifest, load_manifest, new_manifest, write_manifest
from .paths import blob_path, containers_root, format_container_id, is_container_id, manifest_path

logger = logging.getLogger(__name__)


class LocalBackend:
    """
    StorageBackend persisted under a root directory.

    Args:
        root (str): Root directory; created on first write.

    Examples:
        >>> backend = LocalBackend("out/zorrito")  # doctest: +SKIP
        >>> cid = backend.create_container({"season": "2025-11"})  # doctest: +SKIP
    """

    def __init__(self, root: str) -> None:
        self.root = root
        self._lock = threading.RLock()
        self._manifests: dict[str, tuple[tuple[int, int], ContainerManifest]] = {}

    def _stamp(self, container_id: str) -> tuple[int, int] | None:
        try:
            st = os.stat(manifest_path(self.root, container_id))
        except FileNotFoundError:
            return None
        return st.st_mtime_ns, st.st_size

    def _load(self, container_id: str) -> ContainerManifest:
        with self._lock:
            try:
                stamp = self._stamp(container_id)
                cached = self._manifests.get(container_id)
                if stamp is not None and cached is not None and cached[0] == stamp:
                    return cached[1]
                manifest = load_manifest(self.root, container_id) if stamp is not None else None
            except (OSError, ValueError) as exc:
                raise BackendError(f"failed to load container {container_id!r}: {exc}") from exc
            if manifest is None or stamp is None:
                self._manifests.pop(container_id, None)
                raise BackendError(f"unknown container {container_id!r}")
            self._manifests[container_id] = (stamp, manifest)
            return manifest

    def _store(self, manifest: ContainerManifest) -> None:
        cid = manifest.container_id
        try:
            write_manifest(self.root, manifest)
        except OSError:
            self._manifests.pop(cid, None)
            raise
        stamp = self._stamp(cid)
        if stamp is None:
            self._manifests.pop(cid, None)
        else:
            self._manifests[cid] = (stamp, manifest)

    def _container_ids(self) -> list[str]:
        return sorted((n for n in listdir(containers_root(self.root)) if is_container_id(n)), key=int)

    def put(self, container_id: str, payload: bytes, metadata: Mapping[str, str]) -> PutResult:
        data = bytes(payload)
        digest = _content_hash(data)
        with self._lock:
            manifest = self._load(container_id)
            try:
                bpath = blob_path(self.root, digest)
                if not os.path.exists(bpath):
                    write_atomic(bpath, data)
                manifest.append(digest, len(data), {str(k): str(v) for k, v in metadata.items()})
                self._store(manifest)
            except OSError as exc:
                raise BackendError(f"failed to append to container {container_id!r}: {exc}") from exc
        return PutResult(content_hash=digest, container_id=ContainerId(container_id))

    def list_containers(self, metadata_filter: Mapping[str, str]) -> list[ContainerInfo]:
        out: list[ContainerInfo] = []
        for cid in self._container_ids():
            manifest = self._load(cid)
            if metadata_matches(manifest.metadata, metadata_filter):
                out.append(ContainerInfo(container_id=ContainerId(cid), metadata=dict(manifest.metadata)))
        return out

    def create_container(self, metadata: Mapping[str, str]) -> ContainerId:
        with self._lock:
            ids = self._container_ids()
            seq = (int(ids[-1]) if ids else 0) + 1
            cid = format_container_id(seq)
            try:
                self._store(new_manifest(cid, {str(k): str(v) for k, v in metadata.items()}))
            except OSError as exc:
                raise BackendError(f"failed to create container: {exc}") from exc
        logger.info("created container %s with metadata %s", cid, dict(metadata))
        return ContainerId(cid)

    def enumerate_records(self, container_id: str) -> list[RecordEntry]:
        with self._lock:
            records = list(self._load(container_id).records)
        return [RecordEntry(record_id=r.record_id, content_hash=ContentHash(r.content_hash)) for r in records]

    def get_record_metadata(self, container_id: str, record_id: int) -> Metadata:
        with self._lock:
            entry = self._load(container_id).find(record_id)
            if entry is None:
                raise BackendError(f"unknown record {record_id} in container {container_id!r}")
            return dict(entry.metadata)

    def get(self, content_hash: str) -> bytes:
        bpath = blob_path(self.root, content_hash)
        try:
            return read_bytes(bpath)
        except FileNotFoundError:
            raise BackendError(f"no payload stored under {content_hash!r}") from None
        except OSError as exc:
            raise BackendError(f"failed to read payload {content_hash!r}: {exc}") from exc
