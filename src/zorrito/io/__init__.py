"""
zorrito.io: storage layer for the per-season fox record ledger.

## Responsibilities
- Reach content-addressed storage only through the StorageBackend protocol (backend.py).
- Locate or lazily create the per-season container (directory.py).
- Append typed profile and event records (writer.py) and scan them back (scanner.py).
- Share one lazily constructed backend per handle with single-flight initialization
  (client.py).

## Public API
- StorageSettings: configuration (env > TOML > defaults).
- SeasonLedger: facade bound to settings and a backend exposing write/scan/reduce operations.

## Backends
- MemoryBackend: process-local, for tests and demos.
- LocalBackend: files under ``root_dir`` with atomic tmp → fsync → rename writes, one JSON
  manifest per container and blobs addressed by SHA-256.

## Import DAG discipline
- Depends on stdlib, polars, zorrito.core.* and zorrito.state.reduce (pure reduction).
- Must not import zorrito.probe or zorrito.cli.

## Examples
```python
from zorrito.io import SeasonLedger, StorageSettings
ledger = SeasonLedger(StorageSettings(backend="local", root_dir="out"))  # doctest: +SKIP
ref = ledger.write_profile("fox-abc123-1", "Rojo", "0xabc123", "2025-11", image)  # doctest: +SKIP
ledger.get_fox("fox-abc123-1", "2025-11")  # doctest: +SKIP
```
"""

from __future__ import annotations

from .config import StorageSettings
from .ledger import SeasonLedger

__all__ = [
    "StorageSettings",
    "SeasonLedger",
]
