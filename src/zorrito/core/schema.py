"""
Pydantic v2 models for container metadata, typed record metadata, scanned records, and
derived fox views. Validators enforce non-empty identifiers, season tokens, and strict
integer credits; the marshal helpers convert typed records to and from the flat string
maps the storage backend speaks.

Responsibilities
- Define ContainerMetadata and its wire form {applicationId, applicationUrl, environment,
  network, season, version}.
- Define the record tagged union (ProfileRecord | EventRecord) keyed by the ``type`` field.
- Marshal records to flat ``dict[str, str]`` maps and decode them back with strict
  validate-or-reject semantics (no silent coercion of missing fields).
- Define the derived, never-persisted projections FoxView and FoxSummary.

Style
- Zero-IO (stdlib + pydantic only).
- Python field names are lower_snake; wire keys are the camelCase aliases.

References
- errors: src/zorrito/core/errors.py (ValidationError, RecordDecodeError)
- season: src/zorrito/core/season.py (season token validation)
- tests: tests/core/*
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from .constants import EVENT_TYPE, PROFILE_TYPE, RETRIEVAL_URL
from .errors import RecordDecodeError, ValidationError
from .season import validate_season
from .typing import Metadata

__all__ = [
    # Container
    "ContainerMetadata",
    # Records
    "ProfileRecord",
    "EventRecord",
    "RecordMetadata",
    "encode_record",
    "decode_record",
    "build_record",
    "Record",
    "RecordRef",
    # Projections
    "FoxStats",
    "FoxView",
    "FoxSummary",
    "image_url_for",
]

_INT_RE = re.compile(r"^-?\d+$")


def _wire_config() -> ConfigDict:
    return ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


def _require_text(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        raise ValueError("must be a non-empty string")
    return value


def _stringify(dumped: Mapping[str, Any]) -> Metadata:
    return {k: str(v) for k, v in dumped.items()}


def _first_error(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
    return f"{loc}: {err.get('msg')}"


# ============================================================================
# Container
# ============================================================================


class ContainerMetadata(BaseModel):
    """
    Metadata attached to a per-season storage container.

    Attributes:
        application_id (str): Application identifier (wire key ``applicationId``).
        application_url (str): Public application URL (``applicationUrl``).
        environment (str): Deployment environment, e.g. "dev" or "prod".
        network (str): Storage network label.
        season (str): Season token ``YYYY-MM``.
        version (str): Game version that created the container.

    Examples:
        >>> meta = ContainerMetadata(
        ...     application_id="zorrito.finance", application_url="https://x",
        ...     environment="dev", network="local", season="2025-11", version="1.0.0",
        ... )
        >>> meta.to_metadata()["applicationId"]
        'zorrito.finance'
    """

    model_config = _wire_config()

    application_id: str = Field(alias="applicationId")
    application_url: str = Field(alias="applicationUrl")
    environment: str
    network: str
    season: str
    version: str

    @field_validator("season")
    @classmethod
    def _season(cls, v: str) -> str:
        return validate_season(v)

    def to_metadata(self) -> Metadata:
        """Return the flat wire map."""
        return _stringify(self.model_dump(by_alias=True))

    @classmethod
    def from_metadata(cls, raw: Mapping[str, str]) -> ContainerMetadata:
        """
        Decode a container's wire map.

        Raises:
            RecordDecodeError: If required keys are missing or malformed. Unknown keys
                are ignored since backends may annotate containers with their own keys.
        """
        known = {k: v for k, v in raw.items() if k in _CONTAINER_KEYS}
        try:
            return cls.model_validate(known)
        except PydanticValidationError as exc:
            raise RecordDecodeError(f"invalid container metadata: {_first_error(exc)}") from exc


_CONTAINER_KEYS = frozenset(
    {"applicationId", "applicationUrl", "environment", "network", "season", "version"}
)


# ============================================================================
# Records (tagged union on ``type``)
# ============================================================================


class ProfileRecord(BaseModel):
    """
    Fox profile: the record that makes a fox exist within a season.

    Attributes:
        type (Literal["fox_profile"]): Discriminant.
        fox_id (str): Fox identifier (``foxId``).
        name (str): Display name.
        owner (str): Owner address.
        created_at (str): ISO-8601 creation timestamp (``createdAt``).
        season (str): Season token.

    Notes:
        The payload of a profile record is the fox image; it is addressed by content hash
        and is not part of this metadata.
    """

    model_config = _wire_config()

    type: Literal["fox_profile"] = PROFILE_TYPE  # type: ignore[assignment]
    fox_id: str = Field(alias="foxId")
    name: str
    owner: str
    created_at: str = Field(alias="createdAt")
    season: str

    @field_validator("fox_id", "name", "owner", "created_at", mode="before")
    @classmethod
    def _non_empty(cls, v: Any) -> Any:
        return _require_text(v)

    @field_validator("season")
    @classmethod
    def _season(cls, v: str) -> str:
        return validate_season(v)


class EventRecord(BaseModel):
    """
    Time-stamped event applied to a fox (a feed, in game terms).

    Attributes:
        type (Literal["feed_event"]): Discriminant.
        fox_id (str): Fox identifier (``foxId``).
        owner (str): Owner address that triggered the event.
        season (str): Season token.
        occurred_at (str): ISO-8601 timestamp (``occurredAt``).
        credits_delta (int): Signed credit change (``creditsDelta``). Unbounded.

    Raises:
        pydantic.ValidationError: If credits_delta is not an integer (bools and
            fractional strings included).
    """

    model_config = _wire_config()

    type: Literal["feed_event"] = EVENT_TYPE  # type: ignore[assignment]
    fox_id: str = Field(alias="foxId")
    owner: str
    season: str
    occurred_at: str = Field(alias="occurredAt")
    credits_delta: int = Field(alias="creditsDelta")

    @field_validator("fox_id", "owner", "occurred_at", mode="before")
    @classmethod
    def _non_empty(cls, v: Any) -> Any:
        return _require_text(v)

    @field_validator("season")
    @classmethod
    def _season(cls, v: str) -> str:
        return validate_season(v)

    @field_validator("credits_delta", mode="before")
    @classmethod
    def _strict_int(cls, v: Any) -> int:
        if isinstance(v, bool):
            raise ValueError("credits_delta must be an integer, not a bool")
        if isinstance(v, int):
            return v
        if isinstance(v, str) and _INT_RE.match(v.strip()):
            return int(v.strip())
        raise ValueError(f"credits_delta must be an integer, got {v!r}")


RecordMetadata = Annotated[ProfileRecord | EventRecord, Field(discriminator="type")]

_RECORD_ADAPTER: TypeAdapter[ProfileRecord | EventRecord] = TypeAdapter(RecordMetadata)


def encode_record(record: ProfileRecord | EventRecord) -> Metadata:
    """
    Marshal a typed record to the backend's flat string map.

    Examples:
        >>> ev = EventRecord(fox_id="f1", owner="0x1", season="2025-11",
        ...                  occurred_at="2025-11-01T00:00:00.000Z", credits_delta=-1)
        >>> encode_record(ev)["creditsDelta"]
        '-1'
    """
    return _stringify(record.model_dump(by_alias=True))


def decode_record(raw: Mapping[str, str]) -> ProfileRecord | EventRecord:
    """
    Decode a backend metadata map into a typed record.

    Args:
        raw (Mapping[str, str]): Flat metadata map as returned by the backend.

    Returns:
        ProfileRecord | EventRecord: Variant selected by the ``type`` key.

    Raises:
        RecordDecodeError: Missing ``type`` or unknown tag, missing or extra fields,
            or a non-integer ``creditsDelta``.
    """
    try:
        return _RECORD_ADAPTER.validate_python(dict(raw))
    except PydanticValidationError as exc:
        raise RecordDecodeError(f"invalid record metadata: {_first_error(exc)}") from exc


def build_record(
    cls: type[ProfileRecord] | type[EventRecord], **fields: Any
) -> ProfileRecord | EventRecord:
    """
    Construct a record from caller input, reporting failures as ValidationError.

    Used by the writer so that callers see the core error taxonomy rather than
    pydantic's exception type.
    """
    try:
        return cls(**fields)
    except PydanticValidationError as exc:
        raise ValidationError(_first_error(exc)) from exc


class Record(BaseModel):
    """
    One scanned record: backend coordinates plus decoded metadata.

    Attributes:
        record_id (int): Backend-assigned, monotonically increasing id.
        content_hash (str): Content address of the payload.
        container_id (str): Container the record was enumerated from.
        metadata (ProfileRecord | EventRecord): Decoded typed metadata.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    record_id: int
    content_hash: str
    container_id: str
    metadata: RecordMetadata

    @property
    def fox_id(self) -> str:
        return self.metadata.fox_id


class RecordRef(BaseModel):
    """Reference returned by the writer for a freshly appended record."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    container_id: str
    content_hash: str
    record: RecordMetadata


# ============================================================================
# Projections (derived, never persisted)
# ============================================================================


def image_url_for(content_hash: str, base_url: str = RETRIEVAL_URL) -> str:
    """Retrieval URL for a payload given its content hash."""
    return f"{base_url.rstrip('/')}/{content_hash}"


class FoxStats(BaseModel):
    """
    Aggregates folded from a fox's events.

    Attributes:
        event_count (int): Number of event records.
        last_event_at (str | None): Timestamp of the last event in sorted order.
        total_credits_delta (int): Arithmetic sum of credits deltas (no saturation).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    event_count: int
    last_event_at: str | None
    total_credits_delta: int


class FoxSummary(BaseModel):
    """Listing entry for a fox profile within a season's active container."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    fox_id: str
    name: str
    owner: str
    created_at: str
    season: str
    container_id: str
    profile_record_ref: str
    image_url: str


class FoxView(BaseModel):
    """
    Current-state projection of one fox.

    Notes:
        Computed on demand from the record set and invalidated by any new write;
        callers must not cache it across writes.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    fox_id: str
    name: str
    owner: str
    created_at: str
    season: str
    container_id: str
    profile_record_ref: str
    image_url: str
    stats: FoxStats
    events: tuple[EventRecord, ...] = ()
