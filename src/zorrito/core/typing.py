"""
Lightweight typing aliases used across core schemas and the storage layer.

Provides minimal NewTypes and aliases to improve readability and static checks.
This module contains no runtime logic and is zero-IO.

Examples:
    >>> from zorrito.core.typing import Season, FoxId
    >>> def label(season: Season, fox: FoxId) -> str:
    ...     return f"{season}/{fox}"
    >>> label(Season("2025-11"), FoxId("fox-abc123"))
    '2025-11/fox-abc123'
"""

from __future__ import annotations

from typing import NewType

__all__ = [
    "Season",
    "FoxId",
    "ContainerId",
    "ContentHash",
    "Metadata",
]

Season = NewType("Season", str)
FoxId = NewType("FoxId", str)
ContainerId = NewType("ContainerId", str)
ContentHash = NewType("ContentHash", str)

# Backend metadata is always a flat string map.
Metadata = dict[str, str]
