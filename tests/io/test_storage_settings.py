from __future__ import annotations

from pathlib import Path

import pytest

from zorrito.io.config import StorageSettings
from zorrito.io.errors import StorageConfigError

_ENV_KEYS = [
    "ZORRITO_BACKEND",
    "ZORRITO_ROOT_DIR",
    "ZORRITO_STRICT_RECORDS",
    "ZORRITO_PROBE_TIMEOUT_S",
    "ZORRITO_ENVIRONMENT",
    "ZORRITO_SERIALIZE_CONTAINER_CREATION",
]


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write_zorrito_toml(tmp: Path, content: str) -> Path:
    p = tmp / "zorrito.toml"
    p.write_text(content)
    return p


def test_defaults_without_files_or_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = StorageSettings.load()

    assert s.backend == "memory"
    assert s.strict_records is True
    assert s.serialize_container_creation is False
    assert s.probe_timeout_s == 5.0
    assert s.application_id == "zorrito.finance"


def test_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    _write_zorrito_toml(
        tmp_path,
        """
        [storage]
        backend = "local"
        root_dir = "toml_out"
        strict_records = false
        probe_timeout_s = 2.5
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("ZORRITO_ROOT_DIR", "env_out")
    monkeypatch.setenv("ZORRITO_PROBE_TIMEOUT_S", "1.5")

    s = StorageSettings.load()

    assert s.backend == "local"  # TOML
    assert s.strict_records is False  # TOML
    assert s.root_dir == "env_out"  # env override
    assert s.probe_timeout_s == 1.5  # env override


def test_pyproject_tool_section(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
        [tool.zorrito.storage]
        environment = "prod"
        serialize_container_creation = true
        """.strip()
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = StorageSettings.load()

    assert s.environment == "prod"
    assert s.serialize_container_creation is True


def test_invalid_values_raise_config_error(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    with pytest.raises(StorageConfigError):
        StorageSettings(backend="s3")  # type: ignore[arg-type]
    with pytest.raises(StorageConfigError):
        StorageSettings(probe_timeout_s=0)
    monkeypatch.setenv("ZORRITO_BACKEND", "nope")
    with pytest.raises(StorageConfigError):
        StorageSettings.load()
