"""
Concurrent liveness probe for storage providers.

Overview
- check_provider() issues one GET (``Accept: application/json``) to a provider's endpoint,
  bounded by a per-provider timeout, and classifies the outcome as ok, error, or timeout.
- check_all() fans out one task per provider with asyncio.gather and fans in a ProbeSummary.
  A failing or slow provider never cancels its siblings and never fails the scan; results
  keep input order.
- write_report() persists a summary as the ``provider-status.json`` report.

Classification
- 2xx response → ok.
- Any other status → error, with ``HTTP <code>: <reason>``.
- The timeout bound elapsed → timeout (the in-flight request is cancelled).
- Transport failure (DNS, refused connection, TLS, ...) or any other exception raised while
  sending → error with the exception text. No single provider can fail check_all().
- Missing or unusable endpoint URL → error with ``elapsed_ms=None`` (no request was sent).
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Iterable
from typing import Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field

from zorrito.core.constants import PROBE_TIMEOUT_S
from zorrito.core.season import utc_now_iso
from zorrito.io.fs import write_atomic

logger = logging.getLogger(__name__)

__all__ = [
    "Provider",
    "HealthResult",
    "ProbeSummary",
    "check_provider",
    "check_all",
    "report_payload",
    "write_report",
]

ProbeStatus = Literal["ok", "error", "timeout"]

_HEADERS = {"Accept": "application/json"}


class Provider(BaseModel):
    """A storage provider to probe."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    address: str
    endpoint_url: str = Field(default="", alias="pdpUrl")


class HealthResult(BaseModel):
    """
    Outcome of probing one provider.

    Attributes:
        index (int): 1-based position of the provider in the probed list.
        address (str): Provider address.
        endpoint_url (str): URL that was probed.
        status (Literal["ok","error","timeout"]): Classification.
        error (str | None): Failure description; None when ok.
        elapsed_ms (float | None): Wall time of the attempt; None when no request was sent.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    index: int
    address: str
    endpoint_url: str
    status: ProbeStatus
    error: str | None = None
    elapsed_ms: float | None = None


class ProbeSummary(BaseModel):
    """Aggregate of one probe run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    total: int
    healthy: int
    errored: int
    timed_out: int
    results: list[HealthResult]
    checked_at: str

    @classmethod
    def from_results(cls, results: list[HealthResult], checked_at: str | None = None) -> ProbeSummary:
        return cls(
            total=len(results),
            healthy=sum(1 for r in results if r.status == "ok"),
            errored=sum(1 for r in results if r.status == "error"),
            timed_out=sum(1 for r in results if r.status == "timeout"),
            results=results,
            checked_at=checked_at or utc_now_iso(),
        )


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


async def check_provider(
    client: httpx.AsyncClient,
    provider: Provider,
    index: int,
    timeout_s: float = PROBE_TIMEOUT_S,
) -> HealthResult:
    """
    Probe one provider.

    Args:
        client (httpx.AsyncClient): Shared client.
        provider (Provider): Provider to probe.
        index (int): 1-based position reported in the result.
        timeout_s (float): Upper bound for the whole request, in seconds.

    Returns:
        HealthResult: Never raises for network outcomes.
    """

    def result(status: ProbeStatus, error: str | None = None, elapsed: float | None = None) -> HealthResult:
        return HealthResult(
            index=index,
            address=provider.address,
            endpoint_url=provider.endpoint_url,
            status=status,
            error=error,
            elapsed_ms=elapsed,
        )

    if not provider.endpoint_url.strip():
        return result("error", "missing endpoint url")
    try:
        request = client.build_request("GET", provider.endpoint_url, headers=_HEADERS)
    except httpx.InvalidURL as exc:
        return result("error", f"invalid endpoint url: {exc}")
    if request.url.scheme not in ("http", "https") or not request.url.host:
        return result("error", f"invalid endpoint url: {provider.endpoint_url!r}")

    start = time.perf_counter()
    try:
        response = await asyncio.wait_for(client.send(request), timeout=timeout_s)
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.debug("provider %s timed out after %.1fs", provider.address, timeout_s)
        return result("timeout", f"timed out after {timeout_s:g}s", _elapsed_ms(start))
    except httpx.HTTPError as exc:
        return result("error", str(exc) or type(exc).__name__, _elapsed_ms(start))
    except Exception as exc:
        logger.warning("provider %s check failed unexpectedly: %r", provider.address, exc)
        return result("error", str(exc) or type(exc).__name__, _elapsed_ms(start))

    elapsed = _elapsed_ms(start)
    await response.aclose()
    if response.is_success:
        return result("ok", None, elapsed)
    return result("error", f"HTTP {response.status_code}: {response.reason_phrase}", elapsed)


async def check_all(
    providers: Iterable[Provider],
    *,
    timeout_s: float = PROBE_TIMEOUT_S,
    client: httpx.AsyncClient | None = None,
) -> ProbeSummary:
    """
    Probe every provider concurrently.

    Args:
        providers (Iterable[Provider]): Providers in report order.
        timeout_s (float): Per-provider bound, in seconds.
        client (httpx.AsyncClient | None): Client to use; a temporary one is opened
            and closed when omitted.

    Returns:
        ProbeSummary: Counts plus per-provider results in input order.
    """
    items = list(providers)
    if client is None:
        async with httpx.AsyncClient() as owned:
            return await check_all(items, timeout_s=timeout_s, client=owned)

    results = await asyncio.gather(
        *(check_provider(client, p, i, timeout_s) for i, p in enumerate(items, start=1))
    )
    summary = ProbeSummary.from_results(list(results))
    logger.info(
        "probed %d providers: %d ok, %d error, %d timeout",
        summary.total,
        summary.healthy,
        summary.errored,
        summary.timed_out,
    )
    return summary


def report_payload(summary: ProbeSummary, network: str | None = None) -> dict[str, object]:
    """JSON-ready ``provider-status.json`` document for summary."""
    return {
        "timestamp": summary.checked_at,
        "network": network,
        "totalProviders": summary.total,
        "healthy": summary.healthy,
        "errors": summary.errored,
        "timeouts": summary.timed_out,
        "providers": [
            {
                "index": r.index,
                "address": r.address,
                "pdpUrl": r.endpoint_url,
                "status": r.status,
                "error": r.error,
                "responseTime": r.elapsed_ms,
            }
            for r in summary.results
        ],
    }


def write_report(summary: ProbeSummary, path: str, network: str | None = None) -> None:
    """Write the status report atomically (tmp file, fsync, replace)."""
    data = json.dumps(report_payload(summary, network), indent=2).encode("utf-8")
    write_atomic(path, data)
