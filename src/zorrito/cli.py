from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

import polars as pl
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from zorrito.core.errors import NotFoundError, ValidationError
from zorrito.core.season import current_season, make_fox_id
from zorrito.io.config import StorageSettings
from zorrito.io.errors import StorageError
from zorrito.io.ledger import SeasonLedger
from zorrito.probe.health import Provider, check_all, write_report

_PROVIDERS = TypeAdapter(list[Provider])


def _storage_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--season", type=str, default="", help="Season YYYY-MM (default: current).")
    p.add_argument(
        "--backend",
        type=str,
        default="",
        help="Storage backend override (memory|local); defaults to configuration.",
    )
    p.add_argument("--root-dir", type=str, default="", help="Root directory of the local backend.")


def _ledger(args: argparse.Namespace, writes: bool = False) -> tuple[SeasonLedger, str]:
    """
    Build a ledger from configuration plus command line overrides.

    Raises:
        ValidationError: If writes is set and the backend does not outlive the process.
    """
    settings = StorageSettings.load()
    if args.backend:
        settings = replace(settings, backend=args.backend)
    if args.root_dir:
        settings = replace(settings, root_dir=args.root_dir)
    if writes and settings.backend == "memory":
        raise ValidationError(
            "the memory backend keeps records only for this process; "
            "use --backend local or set ZORRITO_BACKEND=local"
        )
    return SeasonLedger(settings), args.season or current_season()


def _print_json(obj: object) -> None:
    print(json.dumps(obj, indent=2))


def _cmd_fox(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="fox", description="Show the current state of one fox.")
    p.add_argument("fox_id", type=str, help="Fox identifier.")
    _storage_args(p)
    args = p.parse_args(argv)

    ledger, season = _ledger(args)
    try:
        view = ledger.require_fox(args.fox_id, season)
    except NotFoundError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    _print_json(view.model_dump(mode="json"))
    return 0


def _cmd_foxes(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="foxes", description="List the foxes of a season.")
    _storage_args(p)
    args = p.parse_args(argv)

    ledger, season = _ledger(args)
    _print_json([s.model_dump(mode="json") for s in ledger.list_foxes(season)])
    return 0


def _cmd_records(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="records", description="Print the records of a season.")
    p.add_argument(
        "--format", choices=("csv", "table"), default="csv", help="Output format (default: csv)."
    )
    _storage_args(p)
    args = p.parse_args(argv)

    ledger, season = _ledger(args)
    frame = ledger.records_frame(season)
    if args.format == "csv":
        print(frame.write_csv(), end="")
        return 0
    with pl.Config(tbl_cols=-1, tbl_rows=-1, tbl_width_chars=4096, fmt_str_lengths=256):
        print(frame)
    return 0


def _cmd_create(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="create", description="Create a fox from an image file.")
    p.add_argument("--name", type=str, required=True, help="Display name.")
    p.add_argument("--owner", type=str, required=True, help="Owner address (0x...).")
    p.add_argument("--image", type=str, required=True, help="Path to the fox image.")
    _storage_args(p)
    args = p.parse_args(argv)

    ledger, season = _ledger(args, writes=True)
    fox_id = make_fox_id(args.owner)
    ref = ledger.write_profile(fox_id, args.name, args.owner, season, Path(args.image).read_bytes())
    _print_json(ref.model_dump(mode="json", by_alias=True))
    return 0


def _cmd_feed(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="feed", description="Record a feed event for a fox.")
    p.add_argument("fox_id", type=str, help="Fox identifier.")
    p.add_argument("--owner", type=str, required=True, help="Owner address (0x...).")
    p.add_argument("--delta", type=int, default=-1, help="Credits delta (default: -1).")
    _storage_args(p)
    args = p.parse_args(argv)

    ledger, season = _ledger(args, writes=True)
    ref = ledger.write_event(args.fox_id, args.owner, season, args.delta)
    _print_json(ref.model_dump(mode="json", by_alias=True))
    return 0


def _cmd_probe(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="probe", description="Probe storage provider endpoints.")
    p.add_argument(
        "--providers",
        type=str,
        required=True,
        help="JSON file with a list of {address, endpoint_url} objects.",
    )
    p.add_argument("--timeout", type=float, default=0.0, help="Per-provider timeout in seconds.")
    p.add_argument(
        "--out", type=str, default="provider-status.json", help="Report path ('' to skip)."
    )
    args = p.parse_args(argv)

    settings = StorageSettings.load()
    timeout_s = args.timeout if args.timeout > 0 else settings.probe_timeout_s
    providers = _PROVIDERS.validate_json(Path(args.providers).read_bytes())

    summary = asyncio.run(check_all(providers, timeout_s=timeout_s))
    for r in summary.results:
        detail = f" ({r.error})" if r.error else ""
        print(f"[{r.status.upper():7}] {r.index:>3} {r.address} {r.endpoint_url}{detail}")
    print(
        f"[INFO] total={summary.total} healthy={summary.healthy} "
        f"errors={summary.errored} timeouts={summary.timed_out}"
    )
    if args.out:
        write_report(summary, args.out, network=settings.network)
        print(f"[INFO] Wrote report to {args.out}")
    return 0


_COMMANDS = {
    "fox": _cmd_fox,
    "foxes": _cmd_foxes,
    "records": _cmd_records,
    "create": _cmd_create,
    "feed": _cmd_feed,
    "probe": _cmd_probe,
}


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="zorrito", description="Zorrito season ledger utilities.")
    sub = p.add_subparsers(dest="cmd", required=True)
    for name in _COMMANDS:
        sub.add_parser(name)
    return p


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        build_argparser().print_help()
        return
    cmd, rest = argv[0], argv[1:]
    handler = _COMMANDS.get(cmd)
    if handler is None:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        raise SystemExit(2)
    try:
        code = handler(rest)
    except (ValidationError, PydanticValidationError, StorageError, OSError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        code = 1
    raise SystemExit(code)


if __name__ == "__main__":
    main()
