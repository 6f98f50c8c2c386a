"""
zorrito.state: current-state projections folded from season records.

Reductions are pure functions of a record sequence; FoxReducer pairs them with a scanner.
"""

from __future__ import annotations

from .reduce import FoxReducer, fold_stats, list_foxes, reduce_records

__all__ = [
    "FoxReducer",
    "fold_stats",
    "list_foxes",
    "reduce_records",
]
