from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from zorrito.io.backend import MemoryBackend
from zorrito.io.client import BackendHandle, build_backend
from zorrito.io.config import StorageSettings
from zorrito.io.local import LocalBackend


def test_build_backend_follows_settings(tmp_path: Path) -> None:
    assert isinstance(build_backend(StorageSettings()), MemoryBackend)
    local = build_backend(StorageSettings(backend="local", root_dir=str(tmp_path)))
    assert isinstance(local, LocalBackend)
    assert local.root == str(tmp_path)


def test_concurrent_first_callers_share_one_construction() -> None:
    calls = 0
    lock = threading.Lock()

    def factory() -> MemoryBackend:
        nonlocal calls
        with lock:
            calls += 1
        time.sleep(0.05)
        return MemoryBackend()

    handle = BackendHandle(factory)
    with ThreadPoolExecutor(max_workers=8) as pool:
        instances = list(pool.map(lambda _: handle.get(), range(8)))

    assert calls == 1
    assert all(i is instances[0] for i in instances)


def test_failed_construction_is_evicted_and_retried() -> None:
    attempts = []

    def factory() -> MemoryBackend:
        attempts.append(1)
        if len(attempts) == 1:
            raise ConnectionError("rpc unavailable")
        return MemoryBackend()

    handle = BackendHandle(factory)
    with pytest.raises(ConnectionError):
        handle.get()

    backend = handle.get()
    assert isinstance(backend, MemoryBackend)
    assert handle.get() is backend
    assert len(attempts) == 2


def test_waiters_see_the_failure_of_the_attempt_they_joined() -> None:
    started = threading.Event()
    release = threading.Event()

    def factory() -> MemoryBackend:
        started.set()
        release.wait(timeout=2)
        raise ConnectionError("boom")

    handle = BackendHandle(factory)
    with ThreadPoolExecutor(max_workers=2) as pool:
        leader = pool.submit(handle.get)
        started.wait(timeout=2)
        waiter = pool.submit(handle.get)
        time.sleep(0.05)
        release.set()
        with pytest.raises(ConnectionError):
            leader.result(timeout=2)
        with pytest.raises(ConnectionError):
            waiter.result(timeout=2)


def test_reset_drops_the_cached_instance() -> None:
    handle = BackendHandle(MemoryBackend)
    first = handle.get()
    handle.reset()
    assert handle.get() is not first


def test_of_wraps_an_existing_backend() -> None:
    backend = MemoryBackend()
    assert BackendHandle.of(backend).get() is backend
