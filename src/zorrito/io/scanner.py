"""
Read utilities for season records.

Overview
- list_records(): lazy, finite, one-shot iterator over every record of the season's active
  container (see ContainerDirectory.find). Reads never create containers; a season without
  a container yields nothing.
- records_for_fox(): linear filter of list_records() by fox id. There is no index, so every
  call re-scans the whole container.
- records_frame(): a Polars DataFrame view of the decoded records. credits_delta is an
  Int64 column, so deltas outside the signed 64-bit range cannot be framed.

Decoding
- Each record's metadata map is decoded with zorrito.core.schema.decode_record.
- With StorageSettings.strict_records (default) a record that fails decoding aborts the
  scan with RecordDecodeError; otherwise it is skipped and a warning is logged.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import polars as pl

from zorrito.core.errors import RecordDecodeError, ValidationError
from zorrito.core.schema import EventRecord, ProfileRecord, Record, decode_record
from zorrito.core.season import validate_season

from .client import BackendHandle
from .config import StorageSettings
from .directory import ContainerDirectory

logger = logging.getLogger(__name__)

FRAME_SCHEMA: dict[str, pl.DataType] = {
    "record_id": pl.Int64(),
    "content_hash": pl.Utf8(),
    "type": pl.Utf8(),
    "fox_id": pl.Utf8(),
    "owner": pl.Utf8(),
    "season": pl.Utf8(),
    "name": pl.Utf8(),
    "created_at": pl.Utf8(),
    "occurred_at": pl.Utf8(),
    "credits_delta": pl.Int64(),
}


def _frame_row(record: Record) -> dict[str, object]:
    meta = record.metadata
    return {
        "record_id": record.record_id,
        "content_hash": record.content_hash,
        "type": meta.type,
        "fox_id": meta.fox_id,
        "owner": meta.owner,
        "season": meta.season,
        "name": meta.name if isinstance(meta, ProfileRecord) else None,
        "created_at": meta.created_at if isinstance(meta, ProfileRecord) else None,
        "occurred_at": meta.occurred_at if isinstance(meta, EventRecord) else None,
        "credits_delta": meta.credits_delta if isinstance(meta, EventRecord) else None,
    }


class RecordScanner:
    """
    Enumerates decoded records of a season's active container.

    Args:
        settings (StorageSettings): Provides strict_records.
        handle (BackendHandle): Shared backend handle.
        directory (ContainerDirectory): Locates the season's active container.
    """

    def __init__(
        self,
        settings: StorageSettings,
        handle: BackendHandle,
        directory: ContainerDirectory,
    ) -> None:
        self.settings = settings
        self._handle = handle
        self._directory = directory

    def list_records(self, season: str) -> Iterator[Record]:
        """
        Iterate over every record in the season's active container, in enumeration order.

        Args:
            season (str): Season token ``YYYY-MM``; validated eagerly.

        Returns:
            Iterator[Record]: One-shot iterator; backend calls happen as it is consumed.

        Raises:
            ValidationError: If season is malformed (raised immediately).
            RecordDecodeError: While iterating, for undecodable metadata in strict mode.
            BackendError: While iterating, propagated from the backend.
        """
        return self._iter_records(validate_season(season))

    def _iter_records(self, season: str) -> Iterator[Record]:
        container_id = self._directory.find(season)
        if container_id is None:
            return
        backend = self._handle.get()
        for entry in backend.enumerate_records(container_id):
            raw = backend.get_record_metadata(container_id, entry.record_id)
            try:
                metadata = decode_record(raw)
            except RecordDecodeError:
                if self.settings.strict_records:
                    raise
                logger.warning(
                    "skipping record %s in container %s: undecodable metadata %r",
                    entry.record_id,
                    container_id,
                    raw,
                )
                continue
            yield Record(
                record_id=entry.record_id,
                content_hash=entry.content_hash,
                container_id=container_id,
                metadata=metadata,
            )

    def records_for_fox(self, fox_id: str, season: str) -> Iterator[Record]:
        """
        Iterate over the records of one fox (linear scan of the whole container).

        Raises:
            ValidationError: If fox_id is empty or season is malformed.
        """
        if not isinstance(fox_id, str) or not fox_id:
            raise ValidationError("fox_id must be a non-empty string")
        return (r for r in self.list_records(season) if r.fox_id == fox_id)

    def records_frame(self, season: str) -> pl.DataFrame:
        """
        Materialize the season's records as a DataFrame (one row per decoded record).

        Returns:
            pl.DataFrame: Columns per FRAME_SCHEMA; empty (with schema) when the season
            has no container or no records.
        """
        rows = [_frame_row(r) for r in self.list_records(season)]
        return pl.DataFrame(rows, schema=FRAME_SCHEMA)
