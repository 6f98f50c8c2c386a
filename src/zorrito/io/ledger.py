"""
SeasonLedger facade for zorrito.io.

Binds one StorageSettings and one shared backend handle to the container directory, the
record writer, the record scanner, and the fox reducer, so that callers operate on seasons
without wiring those pieces themselves.

Source of truth
- Record schemas and projections: zorrito.core.schema
- Season tokens and timestamps: zorrito.core.season
- Reduction: zorrito.state.reduce

Import DAG discipline:
- Depends on zorrito.core.*, zorrito.io.* and zorrito.state.reduce.
- Must not import the probe or the CLI.
"""

from __future__ import annotations

from collections.abc import Iterator

import polars as pl

from zorrito.core.schema import FoxSummary, FoxView, Record, RecordRef
from zorrito.core.typing import ContainerId
from zorrito.state.reduce import FoxReducer

from .backend import StorageBackend
from .client import BackendHandle
from .config import StorageSettings
from .directory import ContainerDirectory
from .scanner import RecordScanner
from .writer import Clock, RecordWriter


class SeasonLedger:
    """
    Facade over the season record ledger.

    Notes:
        - With no backend argument the handle is built lazily from settings
          (StorageSettings.backend), so construction performs no IO.
        - A StorageBackend instance is wrapped as-is; a BackendHandle is shared, which
          lets several ledgers use one lazily built backend.
        - Fox views are recomputed on every call; nothing is cached between writes.
    """

    def __init__(
        self,
        settings: StorageSettings | None = None,
        backend: StorageBackend | BackendHandle | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize a ledger.

        Args:
            settings (StorageSettings | None): Defaults to StorageSettings.load().
            backend (StorageBackend | BackendHandle | None): Storage to use; defaults to
                the backend selected by settings.
            clock (Callable[[], datetime] | None): Timestamp source for writes.
        """
        self.settings = settings or StorageSettings.load()
        if backend is None:
            self.handle = BackendHandle.from_settings(self.settings)
        elif isinstance(backend, BackendHandle):
            self.handle = backend
        else:
            self.handle = BackendHandle.of(backend)
        self.directory = ContainerDirectory(self.settings, self.handle)
        self.writer = RecordWriter(self.handle, self.directory, clock=clock)
        self.scanner = RecordScanner(self.settings, self.handle, self.directory)
        self.reducer = FoxReducer(self.scanner, retrieval_url=self.settings.retrieval_url)

    # ------------------------------------------------------------------ containers

    def resolve_container(self, season: str) -> ContainerId:
        """Return the season's active container, creating it if absent."""
        return self.directory.resolve(season)

    def find_container(self, season: str) -> ContainerId | None:
        """Return the season's active container without creating one."""
        return self.directory.find(season)

    # ------------------------------------------------------------------ writes

    def write_profile(
        self, fox_id: str, name: str, owner: str, season: str, image_bytes: bytes
    ) -> RecordRef:
        return self.writer.write_profile(fox_id, name, owner, season, image_bytes)

    def write_event(self, fox_id: str, owner: str, season: str, credits_delta: int) -> RecordRef:
        return self.writer.write_event(fox_id, owner, season, credits_delta)

    # ------------------------------------------------------------------ reads

    def list_records(self, season: str) -> Iterator[Record]:
        return self.scanner.list_records(season)

    def records_for_fox(self, fox_id: str, season: str) -> Iterator[Record]:
        return self.scanner.records_for_fox(fox_id, season)

    def records_frame(self, season: str) -> pl.DataFrame:
        return self.scanner.records_frame(season)

    def get_fox(self, fox_id: str, season: str) -> FoxView | None:
        """Current view of a fox, or None if it has no profile record in the season."""
        return self.reducer.reduce(fox_id, season)

    def require_fox(self, fox_id: str, season: str) -> FoxView:
        """Like get_fox(), raising NotFoundError for an unknown fox."""
        return self.reducer.require(fox_id, season)

    def list_foxes(self, season: str) -> list[FoxSummary]:
        return self.reducer.list_foxes(season)

    def fetch_payload(self, content_hash: str) -> bytes:
        """
        Download a record payload (the fox image for profile records).

        Raises:
            BackendError: If no payload is stored under content_hash.
        """
        return self.handle.get().get(content_hash)
