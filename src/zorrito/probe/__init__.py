"""
zorrito.probe: concurrent health probe for storage provider endpoints.

Independent of the ledger; uses httpx and asyncio only.
"""

from __future__ import annotations

from .health import HealthResult, ProbeSummary, Provider, check_all, check_provider, write_report

__all__ = [
    "Provider",
    "HealthResult",
    "ProbeSummary",
    "check_provider",
    "check_all",
    "write_report",
]
