from __future__ import annotations

import json
from pathlib import Path

import pytest

from zorrito.core.hashing import content_hash
from zorrito.io.backend import MemoryBackend, StorageBackend
from zorrito.io.errors import BackendError
from zorrito.io.local import LocalBackend


def _backends(tmp_path: Path) -> list[StorageBackend]:
    return [MemoryBackend(), LocalBackend(str(tmp_path / "store"))]


@pytest.fixture(params=["memory", "local"])
def backend(request, tmp_path: Path) -> StorageBackend:
    if request.param == "memory":
        return MemoryBackend()
    return LocalBackend(str(tmp_path / "store"))


def test_backends_satisfy_protocol(tmp_path: Path) -> None:
    for b in _backends(tmp_path):
        assert isinstance(b, StorageBackend)


def test_put_enumerate_and_metadata(backend: StorageBackend) -> None:
    cid = backend.create_container({"applicationId": "app", "season": "2025-11"})
    payload = b"p" * 130
    r1 = backend.put(cid, payload, {"k": "v1"})
    r2 = backend.put(cid, b"\x01", {"k": "v2"})

    assert r1.container_id == cid
    assert r1.content_hash == content_hash(payload)
    entries = list(backend.enumerate_records(cid))
    assert [e.record_id for e in entries] == [1, 2]
    assert [e.content_hash for e in entries] == [r1.content_hash, r2.content_hash]
    assert backend.get_record_metadata(cid, 2) == {"k": "v2"}
    assert backend.get(r1.content_hash) == payload


def test_identical_payloads_keep_distinct_records(backend: StorageBackend) -> None:
    cid = backend.create_container({"season": "2025-11"})
    a = backend.put(cid, b"\x01", {"n": "1"})
    b = backend.put(cid, b"\x01", {"n": "2"})
    assert a.content_hash == b.content_hash
    assert [backend.get_record_metadata(cid, e.record_id)["n"] for e in backend.enumerate_records(cid)] == ["1", "2"]


def test_list_containers_filters_and_keeps_creation_order(backend: StorageBackend) -> None:
    c1 = backend.create_container({"applicationId": "app", "season": "2025-11"})
    backend.create_container({"applicationId": "app", "season": "2025-12"})
    c3 = backend.create_container({"applicationId": "app", "season": "2025-11", "extra": "x"})
    backend.create_container({"applicationId": "other", "season": "2025-11"})

    found = list(backend.list_containers({"applicationId": "app", "season": "2025-11"}))

    assert [c.container_id for c in found] == [c1, c3]
    assert found[1].metadata["extra"] == "x"


def test_unknown_items_raise_backend_error(backend: StorageBackend) -> None:
    cid = backend.create_container({"season": "2025-11"})
    with pytest.raises(BackendError):
        backend.get_record_metadata(cid, 1)
    with pytest.raises(BackendError):
        list(backend.enumerate_records("999999"))
    with pytest.raises(BackendError):
        backend.put("999999", b"x", {})
    with pytest.raises(BackendError):
        backend.get(content_hash(b"never stored"))


def test_local_backend_persists_across_instances(tmp_path: Path) -> None:
    root = str(tmp_path / "store")
    first = LocalBackend(root)
    cid = first.create_container({"applicationId": "app", "season": "2025-11"})
    ref = first.put(cid, b"i" * 127, {"type": "fox_profile"})

    second = LocalBackend(root)
    assert [c.container_id for c in second.list_containers({"season": "2025-11"})] == [cid]
    assert [e.content_hash for e in second.enumerate_records(cid)] == [ref.content_hash]
    assert second.get(ref.content_hash) == b"i" * 127


def test_local_backend_layout_and_manifest(tmp_path: Path) -> None:
    root = tmp_path / "store"
    backend = LocalBackend(str(root))
    cid = backend.create_container({"season": "2025-11"})
    ref = backend.put(cid, b"z" * 200, {"a": "b"})

    assert cid == "000001"
    manifest = json.loads((root / "containers" / cid / "manifest.json").read_text())
    assert manifest["metadata"] == {"season": "2025-11"}
    assert manifest["records"][0]["record_id"] == 1
    assert manifest["records"][0]["size"] == 200
    assert (root / "blobs" / ref.content_hash[:2] / ref.content_hash).read_bytes() == b"z" * 200
    assert not list(root.rglob("*.tmp"))


def test_local_backend_sees_appends_from_another_instance(tmp_path: Path) -> None:
    root = str(tmp_path / "store")
    writer = LocalBackend(root)
    reader = LocalBackend(root)
    cid = writer.create_container({"season": "2025-11"})
    writer.put(cid, b"a", {"n": "1"})
    assert [e.record_id for e in reader.enumerate_records(cid)] == [1]

    writer.put(cid, b"b", {"n": "2"})

    assert [e.record_id for e in reader.enumerate_records(cid)] == [1, 2]
    assert reader.get_record_metadata(cid, 2) == {"n": "2"}


def test_local_backend_ignores_entries_that_are_not_container_ids(tmp_path: Path) -> None:
    root = tmp_path / "store"
    backend = LocalBackend(str(root))
    cid = backend.create_container({"season": "2025-11"})
    (root / "containers" / "1").mkdir()
    (root / "containers" / "notes").mkdir()

    assert [c.container_id for c in backend.list_containers({"season": "2025-11"})] == [cid]
    assert backend.create_container({"season": "2025-12"}) == "000002"


def test_local_backend_orders_container_ids_numerically(tmp_path: Path) -> None:
    root = tmp_path / "store"
    seeded = root / "containers" / "999999"
    seeded.mkdir(parents=True)
    (seeded / "manifest.json").write_text(
        json.dumps({"container_id": "999999", "metadata": {"season": "2025-11"}, "records": []})
    )
    backend = LocalBackend(str(root))

    cid = backend.create_container({"season": "2025-11"})

    assert cid == "1000000"
    found = backend.list_containers({"season": "2025-11"})
    assert [c.container_id for c in found] == ["999999", "1000000"]
    assert backend.create_container({"season": "2025-11"}) == "1000001"
