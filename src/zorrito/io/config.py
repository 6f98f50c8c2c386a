"""
Configuration for the zorrito.io module.

Defines StorageSettings, a frozen dataclass carrying runtime configuration for the storage
layer and the provider health probe. Defaults are sourced from zorrito.core.constants (the
single source of truth).

Source of truth
- zorrito.core.constants.APP_ID, APP_URL, NETWORK, ENVIRONMENT, GAME_VERSION
- zorrito.core.constants.PROBE_TIMEOUT_S, RETRIEVAL_URL

Import DAG discipline
- Depends only on stdlib, zorrito.core.constants, and zorrito.io.errors.
- Does not import higher layers (state, probe, cli).

Notes
- Precedence for loaders: env > TOML > defaults.
- ``backend`` selects the storage backend built by zorrito.io.client.build_backend:
  "memory" (process-local, for tests and demos) or "local" (files under root_dir).
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from zorrito.core.constants import APP_ID, APP_URL, ENVIRONMENT, GAME_VERSION, NETWORK
from zorrito.core.constants import PROBE_TIMEOUT_S as CORE_PROBE_TIMEOUT_S
from zorrito.core.constants import RETRIEVAL_URL as CORE_RETRIEVAL_URL

from .errors import StorageConfigError

BackendKind = Literal["memory", "local"]

_BACKENDS: frozenset[str] = frozenset({"memory", "local"})


def _bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
    return False


@dataclass(frozen=True)
class StorageSettings:
    """
    Runtime settings for the zorrito.io layer.

    Attributes:
        application_id (str): Application id stamped on containers and used to find them.
        application_url (str): Public application URL stamped on containers.
        environment (str): Deployment environment label (e.g., "dev", "prod").
        network (str): Storage network label.
        game_version (str): Version stamped on newly created containers.
        backend (Literal["memory","local"]): Backend built by build_backend().
        root_dir (str): Root directory of the "local" backend.
        strict_records (bool): If True, records whose metadata cannot be decoded abort the
            scan with RecordDecodeError; if False they are skipped with a warning.
        serialize_container_creation (bool): If True, container resolution is serialized
            per season within this process (at most one container created per season by
            concurrent callers). If False, concurrent first writers may each create one.
        probe_timeout_s (float): Per-provider bound of the health probe, in seconds.
        retrieval_url (str): Base URL used to build payload (image) URLs.

    Raises:
        StorageConfigError: If backend is unknown or probe_timeout_s is not positive.

    Examples:
        >>> StorageSettings(backend="local", root_dir="out")  # doctest: +ELLIPSIS
        StorageSettings(...)
    """

    application_id: str = APP_ID
    application_url: str = APP_URL
    environment: str = ENVIRONMENT
    network: str = NETWORK
    game_version: str = GAME_VERSION
    backend: BackendKind = "memory"
    root_dir: str = "out"
    strict_records: bool = True
    serialize_container_creation: bool = False
    probe_timeout_s: float = CORE_PROBE_TIMEOUT_S
    retrieval_url: str = CORE_RETRIEVAL_URL

    def __post_init__(self) -> None:
        if self.backend not in _BACKENDS:
            raise StorageConfigError(
                f"unsupported backend {self.backend!r}; expected one of {sorted(_BACKENDS)}"
            )
        if self.probe_timeout_s <= 0:
            raise StorageConfigError(f"probe_timeout_s must be > 0, got {self.probe_timeout_s}")

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: StorageSettings, cfg: dict[str, Any] | None) -> StorageSettings:
        """Apply a loose config mapping onto StorageSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        for key in (
            "application_id",
            "application_url",
            "environment",
            "network",
            "game_version",
            "root_dir",
            "retrieval_url",
        ):
            if key in cfg and isinstance(cfg[key], str):
                s = replace(s, **{key: cfg[key]})

        if "backend" in cfg and isinstance(cfg["backend"], str):
            s = replace(s, backend=cfg["backend"].strip().lower())  # type: ignore[arg-type]

        for key in ("strict_records", "serialize_container_creation"):
            if key in cfg:
                s = replace(s, **{key: _bool(cfg[key])})

        if "probe_timeout_s" in cfg:
            try:
                timeout = float(cfg["probe_timeout_s"])
            except (TypeError, ValueError):
                timeout = s.probe_timeout_s
            s = replace(s, probe_timeout_s=timeout)

        return s

    @classmethod
    def from_env(
        cls, base: StorageSettings | None = None, prefix: str = "ZORRITO_"
    ) -> StorageSettings:
        """
        Build StorageSettings from environment variables. Precedence is env > base > defaults.

        Recognized variables:
            - ZORRITO_APPLICATION_ID
            - ZORRITO_APPLICATION_URL
            - ZORRITO_ENVIRONMENT
            - ZORRITO_NETWORK
            - ZORRITO_GAME_VERSION
            - ZORRITO_BACKEND ("memory" | "local")
            - ZORRITO_ROOT_DIR
            - ZORRITO_STRICT_RECORDS (1/0/true/false/yes/no/on/off)
            - ZORRITO_SERIALIZE_CONTAINER_CREATION
            - ZORRITO_PROBE_TIMEOUT_S
            - ZORRITO_RETRIEVAL_URL
        """
        s = base or cls()
        mapping: dict[str, Any] = {}
        for key in (
            "application_id",
            "application_url",
            "environment",
            "network",
            "game_version",
            "backend",
            "root_dir",
            "strict_records",
            "serialize_container_creation",
            "probe_timeout_s",
            "retrieval_url",
        ):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v
        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> StorageSettings:
        """
        Build StorageSettings from a TOML file.

        Search order when `path` is None:
            1) ./zorrito.toml (with either a top-level [storage] table or direct keys)
            2) ./pyproject.toml under [tool.zorrito.storage]

        Returns defaults if no file is present.
        """
        s = cls()

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "zorrito.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            with p.open("rb") as fh:
                data = tomllib.load(fh)
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                section = tool.get("zorrito", {}).get("storage") if isinstance(tool, dict) else None
                cfg = section if isinstance(section, dict) else None
            elif isinstance(data.get("storage"), dict):
                cfg = data["storage"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> StorageSettings:
        """
        Load StorageSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (zorrito.toml,
                pyproject.toml).

        Returns:
            StorageSettings

        Raises:
            StorageConfigError: If the merged configuration is invalid.
            tomllib.TOMLDecodeError: If a TOML file exists but cannot be parsed.
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
