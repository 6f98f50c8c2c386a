"""
Event-sourced reduction of fox records into current-state projections.

Algorithm (reduce_records)
1. Keep the records of the requested fox.
2. Partition them into profile and event records by tag.
3. No profile record → None. Several → the last one in scan order wins (a warning is
   logged); timestamps are not consulted for this choice.
4. Sort events ascending by ``occurred_at`` using plain string comparison (stable). This is
   chronological only when every timestamp shares one textual format, which the writer
   guarantees for records it produces.
5. Fold stats: event_count, last_event_at (last sorted event or None), and
   total_credits_delta (unbounded integer sum).

Purity
- reduce_records and list_foxes are deterministic functions of their input sequence and
  perform no IO. FoxReducer adds the scan and is the only part that touches the backend.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from zorrito.core.constants import RETRIEVAL_URL
from zorrito.core.errors import NotFoundError
from zorrito.core.schema import (
    EventRecord,
    FoxStats,
    FoxSummary,
    FoxView,
    ProfileRecord,
    Record,
    image_url_for,
)

if TYPE_CHECKING:
    from zorrito.io.scanner import RecordScanner

logger = logging.getLogger(__name__)

__all__ = [
    "fold_stats",
    "reduce_records",
    "list_foxes",
    "FoxReducer",
]


def fold_stats(events: Iterable[EventRecord]) -> tuple[tuple[EventRecord, ...], FoxStats]:
    """
    Sort events by timestamp and fold them into FoxStats.

    Returns:
        tuple: (events in ascending ``occurred_at`` order, stats)

    Examples:
        >>> e1 = EventRecord(fox_id="f", owner="o", season="2025-11",
        ...                  occurred_at="2025-11-02T00:00:00.000Z", credits_delta=-1)
        >>> e2 = e1.model_copy(update={"occurred_at": "2025-11-01T00:00:00.000Z"})
        >>> ordered, stats = fold_stats([e1, e2])
        >>> stats.last_event_at, stats.total_credits_delta
        ('2025-11-02T00:00:00.000Z', -2)
    """
    ordered = tuple(sorted(events, key=lambda e: e.occurred_at))
    stats = FoxStats(
        event_count=len(ordered),
        last_event_at=ordered[-1].occurred_at if ordered else None,
        total_credits_delta=sum(e.credits_delta for e in ordered),
    )
    return ordered, stats


def reduce_records(
    fox_id: str,
    season: str,
    records: Iterable[Record],
    *,
    retrieval_url: str = RETRIEVAL_URL,
) -> FoxView | None:
    """
    Fold one fox's records into its current view.

    Args:
        fox_id (str): Fox to project; records of other foxes are ignored.
        season (str): Season the records were scanned from.
        records (Iterable[Record]): Records in scan order.
        retrieval_url (str): Base URL for the profile image URL.

    Returns:
        FoxView | None: The projection, or None when no profile record exists.
    """
    profiles: list[tuple[Record, ProfileRecord]] = []
    events: list[EventRecord] = []
    for record in records:
        if record.fox_id != fox_id:
            continue
        meta = record.metadata
        if isinstance(meta, ProfileRecord):
            profiles.append((record, meta))
        else:
            events.append(meta)

    if not profiles:
        return None
    if len(profiles) > 1:
        logger.warning(
            "fox %s has %d profile records in season %s; using the last scanned (record %s)",
            fox_id,
            len(profiles),
            season,
            profiles[-1][0].record_id,
        )
    profile_record, profile = profiles[-1]

    ordered, stats = fold_stats(events)
    return FoxView(
        fox_id=profile.fox_id,
        name=profile.name,
        owner=profile.owner,
        created_at=profile.created_at,
        season=season,
        container_id=profile_record.container_id,
        profile_record_ref=profile_record.content_hash,
        image_url=image_url_for(profile_record.content_hash, retrieval_url),
        stats=stats,
        events=ordered,
    )


def list_foxes(
    season: str,
    records: Iterable[Record],
    *,
    retrieval_url: str = RETRIEVAL_URL,
) -> list[FoxSummary]:
    """
    List the foxes that exist in a record set.

    Notes:
        One entry per fox id, ordered by first appearance; when a fox has several profile
        records the last scanned one supplies the fields, matching reduce_records.
    """
    latest: dict[str, tuple[Record, ProfileRecord]] = {}
    for record in records:
        meta = record.metadata
        if isinstance(meta, ProfileRecord):
            latest[record.fox_id] = (record, meta)  # insertion order keeps first appearance
    out: list[FoxSummary] = []
    for record, profile in latest.values():
        out.append(
            FoxSummary(
                fox_id=profile.fox_id,
                name=profile.name,
                owner=profile.owner,
                created_at=profile.created_at,
                season=season,
                container_id=record.container_id,
                profile_record_ref=record.content_hash,
                image_url=image_url_for(record.content_hash, retrieval_url),
            )
        )
    return out


class FoxReducer:
    """
    Scans a season and reduces fox records on demand.

    Views are recomputed on every call and never cached, so a write is visible to the
    next reduce() immediately.
    """

    def __init__(self, scanner: RecordScanner, retrieval_url: str = RETRIEVAL_URL) -> None:
        self._scanner = scanner
        self.retrieval_url = retrieval_url

    def reduce(self, fox_id: str, season: str) -> FoxView | None:
        """
        Current view of a fox, or None if it has no profile record in the season.

        Raises:
            ValidationError: If fox_id is empty or season is malformed.
            BackendError: Propagated from the backend.
        """
        records = self._scanner.records_for_fox(fox_id, season)
        return reduce_records(fox_id, season, records, retrieval_url=self.retrieval_url)

    def require(self, fox_id: str, season: str) -> FoxView:
        """
        Like reduce(), but raise NotFoundError when the fox does not exist.

        Raises:
            NotFoundError: No profile record for fox_id in the season.
        """
        view = self.reduce(fox_id, season)
        if view is None:
            raise NotFoundError(f"fox {fox_id!r} not found in season {season}")
        return view

    def list_foxes(self, season: str) -> list[FoxSummary]:
        """Foxes with a profile record in the season's active container."""
        return list_foxes(season, self._scanner.list_records(season), retrieval_url=self.retrieval_url)
