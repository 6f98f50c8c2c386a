"""
Zorrito core defaults.

Defines application identity, record payload limits, and probe defaults consumed by the
storage and probe layers. This module is zero-IO and uses only the Python standard library.

Notes:
    - Storage settings (env/TOML loaders in zorrito.io.config) default to these values.
    - MIN_PAYLOAD_BYTES is the smallest payload the content-addressed backend accepts.
    - EVENT_PAYLOAD is the fixed placeholder body of event records; events live in metadata.
"""

from __future__ import annotations

__all__ = [
    "APP_ID",
    "APP_URL",
    "NETWORK",
    "ENVIRONMENT",
    "GAME_VERSION",
    "MIN_PAYLOAD_BYTES",
    "EVENT_PAYLOAD",
    "PROBE_TIMEOUT_S",
    "RETRIEVAL_URL",
    "PROFILE_TYPE",
    "EVENT_TYPE",
]

# Container metadata identity.
APP_ID: str = "zorrito.finance"
APP_URL: str = "https://zorrito.vercel.app"
NETWORK: str = "filecoin-calibration"
ENVIRONMENT: str = "dev"
GAME_VERSION: str = "1.0.0"

# Payloads shorter than this are rejected before reaching the backend.
MIN_PAYLOAD_BYTES: int = 127

EVENT_PAYLOAD: bytes = b"\x01"

# Per-provider bound for a single health probe request, in seconds.
PROBE_TIMEOUT_S: float = 5.0

# Base URL under which payloads are retrievable by content hash.
RETRIEVAL_URL: str = "https://calib.ezpdpz.net/piece"

# Record tags (wire values of the ``type`` metadata key).
PROFILE_TYPE: str = "fox_profile"
EVENT_TYPE: str = "feed_event"
