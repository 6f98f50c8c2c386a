from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from zorrito.core.errors import ValidationError
from zorrito.core.season import current_season, format_timestamp, make_fox_id, validate_season


@pytest.mark.parametrize("token", ["2025-01", "2025-11", "1999-12"])
def test_valid_seasons(token: str) -> None:
    assert validate_season(token) == token


@pytest.mark.parametrize("token", ["", "2025-1", "2025-00", "2025-13", "25-11", "2025/11", "2025-11-01"])
def test_invalid_seasons_raise(token: str) -> None:
    with pytest.raises(ValidationError):
        validate_season(token)


def test_current_season_uses_calendar_month() -> None:
    assert current_season(datetime(2025, 11, 30, 23, 59, tzinfo=UTC)) == "2025-11"
    assert current_season(datetime(2026, 1, 1, tzinfo=UTC)) == "2026-01"


def test_timestamps_are_utc_millis_with_z_suffix() -> None:
    local = timezone(timedelta(hours=-5))
    ts = format_timestamp(datetime(2025, 11, 1, 19, 0, 0, 123456, tzinfo=local))
    assert ts == "2025-11-02T00:00:00.123Z"


def test_fixed_timestamp_format_sorts_chronologically() -> None:
    base = datetime(2025, 11, 1, tzinfo=UTC)
    moments = [base + timedelta(milliseconds=ms) for ms in (999, 5, 1000, 60_000, 0)]
    assert sorted(format_timestamp(m) for m in moments) == [format_timestamp(m) for m in sorted(moments)]


def test_make_fox_id_embeds_owner_prefix_and_hex_millis() -> None:
    fid = make_fox_id("0xabc123ff", datetime(2025, 1, 1, tzinfo=UTC))
    assert fid == "fox-abc123-1941f297c00"
    with pytest.raises(ValidationError):
        make_fox_id("")
