"""
Season tokens, timestamps, and fox id helpers.

A season is a calendar-month partition key formatted ``YYYY-MM``. Records carry
ISO-8601 timestamps in one fixed textual format (UTC, millisecond precision, ``Z``
suffix) so that plain string comparison orders them chronologically.

Examples:
    >>> validate_season("2025-11")
    '2025-11'
    >>> format_timestamp(datetime(2025, 11, 3, 8, 30, tzinfo=UTC))
    '2025-11-03T08:30:00.000Z'
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Final

from .errors import ValidationError
from .typing import FoxId, Season

__all__ = [
    "validate_season",
    "current_season",
    "format_timestamp",
    "utc_now_iso",
    "make_fox_id",
]

_SEASON_RE: Final[re.Pattern[str]] = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def validate_season(season: str) -> Season:
    """
    Validate a season token.

    Args:
        season (str): Candidate token.

    Returns:
        Season: Same value if valid.

    Raises:
        ValidationError: If season is not ``YYYY-MM`` with a month in 01..12.
    """
    if not isinstance(season, str) or not _SEASON_RE.match(season):
        raise ValidationError(f"season must be formatted YYYY-MM, got {season!r}")
    return Season(season)


def current_season(now: datetime | None = None) -> Season:
    """Return the season token for ``now`` (default: current UTC time)."""
    now = now or datetime.now(UTC)
    return Season(f"{now.year:04d}-{now.month:02d}")


def format_timestamp(moment: datetime) -> str:
    """Format an aware datetime as UTC ISO-8601 with milliseconds and a ``Z`` suffix."""
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def utc_now_iso() -> str:
    return format_timestamp(datetime.now(UTC))


def make_fox_id(owner: str, now: datetime | None = None) -> FoxId:
    """
    Mint a fox id from an owner address and the creation time.

    The id is ``fox-<owner[2:8]>-<epoch millis in hex>``; for ``0x``-prefixed
    addresses the middle part is the first six hex digits of the address.

    Raises:
        ValidationError: If owner is empty.

    Examples:
        >>> make_fox_id("0xabc123ff", datetime(2025, 1, 1, tzinfo=UTC))
        'fox-abc123-1941f297c00'
    """
    if not owner:
        raise ValidationError("owner is required to mint a fox id")
    now = now or datetime.now(UTC)
    millis = int(now.timestamp() * 1000)
    return FoxId(f"fox-{owner[2:8]}-{millis:x}")
