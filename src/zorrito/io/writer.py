"""
Append-only writer for fox profile and event records.

Overview
- Validates caller input before any backend call (payload size, season, identifiers,
  integer credits).
- Resolves the season's container through ContainerDirectory, then appends one record
  with put(). There is no update-in-place and no deletion.
- Timestamps use the fixed UTC millisecond format from zorrito.core.season so that
  lexicographic order matches chronological order.

Notes
- Backend errors propagate unmodified; no local retry or backoff. A caller that retries
  after an ambiguous failure may create a duplicate record with identical metadata.
- credits_delta is not bounds-checked; totals are a presentation concern.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from zorrito.core.constants import EVENT_PAYLOAD, MIN_PAYLOAD_BYTES
from zorrito.core.errors import ValidationError
from zorrito.core.schema import (
    EventRecord,
    ProfileRecord,
    RecordRef,
    build_record,
    encode_record,
)
from zorrito.core.season import format_timestamp, validate_season

from .client import BackendHandle
from .directory import ContainerDirectory

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RecordWriter:
    """
    Writes typed records to the active container of a season.

    Args:
        handle (BackendHandle): Shared backend handle.
        directory (ContainerDirectory): Resolves (or creates) season containers.
        clock (Callable[[], datetime] | None): Source of timestamps (aware datetimes).
            Defaults to the current UTC time.
    """

    def __init__(
        self,
        handle: BackendHandle,
        directory: ContainerDirectory,
        clock: Clock | None = None,
    ) -> None:
        self._handle = handle
        self._directory = directory
        self._clock = clock or _utc_now

    def write_profile(
        self,
        fox_id: str,
        name: str,
        owner: str,
        season: str,
        image_bytes: bytes,
    ) -> RecordRef:
        """
        Append a fox profile record whose payload is the fox image.

        Args:
            fox_id (str): Fox identifier.
            name (str): Display name.
            owner (str): Owner address.
            season (str): Season token ``YYYY-MM``.
            image_bytes (bytes): Image payload; at least MIN_PAYLOAD_BYTES (127) long.

        Returns:
            RecordRef: Container id, content hash, and the typed record written.

        Raises:
            ValidationError: Payload below the minimum size or malformed fields.
            BackendError: Propagated from the backend.
        """
        season = validate_season(season)
        if not isinstance(image_bytes, (bytes, bytearray, memoryview)):
            raise ValidationError("image_bytes must be bytes")
        payload = bytes(image_bytes)
        if len(payload) < MIN_PAYLOAD_BYTES:
            raise ValidationError(
                f"image is too small ({len(payload)} bytes); minimum size is {MIN_PAYLOAD_BYTES} bytes"
            )
        record = build_record(
            ProfileRecord,
            fox_id=fox_id,
            name=name,
            owner=owner,
            created_at=format_timestamp(self._clock()),
            season=season,
        )
        return self._append(season, payload, record)

    def write_event(
        self,
        fox_id: str,
        owner: str,
        season: str,
        credits_delta: int,
    ) -> RecordRef:
        """
        Append an event record; the event is carried entirely in metadata.

        Args:
            fox_id (str): Fox identifier.
            owner (str): Owner address.
            season (str): Season token ``YYYY-MM``.
            credits_delta (int): Any integer, including negative and zero.

        Returns:
            RecordRef: Container id, content hash, and the typed record written.

        Raises:
            ValidationError: Non-integer credits_delta or malformed fields.
            BackendError: Propagated from the backend.
        """
        season = validate_season(season)
        if isinstance(credits_delta, bool) or not isinstance(credits_delta, int):
            raise ValidationError(f"credits_delta must be an integer, got {credits_delta!r}")
        record = build_record(
            EventRecord,
            fox_id=fox_id,
            owner=owner,
            season=season,
            occurred_at=format_timestamp(self._clock()),
            credits_delta=credits_delta,
        )
        return self._append(season, EVENT_PAYLOAD, record)

    def _append(self, season: str, payload: bytes, record: ProfileRecord | EventRecord) -> RecordRef:
        container_id = self._directory.resolve(season)
        result = self._handle.get().put(container_id, payload, encode_record(record))
        return RecordRef(
            container_id=result.container_id,
            content_hash=result.content_hash,
            record=record,
        )
