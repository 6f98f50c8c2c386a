"""
Shared storage backend handle.

Overview
- build_backend(settings) constructs the backend selected by StorageSettings.backend.
- BackendHandle memoizes one backend per handle, constructed lazily on first use.

Single-flight contract
- Concurrent first callers share one in-flight construction, not one each.
- A failed construction is evicted: its exception is raised to the caller that ran it and
  to every caller waiting on that attempt, and the next get() retries the factory.
- A successful instance is reused for the lifetime of the handle (or until reset()).
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future

from .backend import MemoryBackend, StorageBackend
from .config import StorageSettings
from .errors import StorageConfigError
from .local import LocalBackend

__all__ = [
    "build_backend",
    "BackendHandle",
]


def build_backend(settings: StorageSettings) -> StorageBackend:
    """
    Construct the backend selected by settings.

    Raises:
        StorageConfigError: If settings.backend is not a known backend kind.
    """
    if settings.backend == "memory":
        return MemoryBackend()
    if settings.backend == "local":
        return LocalBackend(settings.root_dir)
    raise StorageConfigError(f"unsupported backend {settings.backend!r}")


class BackendHandle:
    """
    Lazily constructed, memoized backend with single-flight initialization.

    Args:
        factory (Callable[[], StorageBackend]): Zero-argument constructor.

    Examples:
        >>> handle = BackendHandle(MemoryBackend)
        >>> handle.get() is handle.get()
        True
    """

    def __init__(self, factory: Callable[[], StorageBackend]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._instance: StorageBackend | None = None
        self._inflight: Future[StorageBackend] | None = None

    @classmethod
    def of(cls, backend: StorageBackend) -> BackendHandle:
        """Wrap an already constructed backend."""
        handle = cls(lambda: backend)
        handle._instance = backend
        return handle

    @classmethod
    def from_settings(cls, settings: StorageSettings) -> BackendHandle:
        return cls(lambda: build_backend(settings))

    def get(self) -> StorageBackend:
        """
        Return the backend, constructing it on first use.

        Raises:
            Exception: Whatever the factory raised for the attempt this call joined.
        """
        with self._lock:
            if self._instance is not None:
                return self._instance
            fut = self._inflight
            leader = fut is None
            if fut is None:
                fut = self._inflight = Future()

        if not leader:
            return fut.result()

        try:
            instance = self._factory()
        except BaseException as exc:
            with self._lock:
                self._inflight = None
            fut.set_exception(exc)
            raise
        with self._lock:
            self._instance = instance
            self._inflight = None
        fut.set_result(instance)
        return instance

    def reset(self) -> None:
        """Drop the memoized backend; the next get() constructs a new one."""
        with self._lock:
            self._instance = None
