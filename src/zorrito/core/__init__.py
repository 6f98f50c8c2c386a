"""
Core package aggregator for zorrito contracts (constants, errors, typing, hashing, seasons, schemas).

## Contracts (single source of truth)
- Constants: application identity, payload minimum, probe timeout, record tags.
- Errors: ValidationError, RecordDecodeError, NotFoundError.
- Seasons: ``YYYY-MM`` tokens, fixed-format UTC timestamps, fox id minting.
- Schemas: pydantic models for container metadata, the ProfileRecord/EventRecord
  tagged union, scanned records, and derived fox projections.
- Hashing: SHA-256 content addresses.

## Notes
- Zero-IO policy: stdlib + pydantic only; no file/network IO.
- Wire keys are camelCase aliases; Python field names are lower_snake.

## Downstream usage
- zorrito.io — marshals records through ``encode_record``/``decode_record`` at the backend
  boundary and tags containers with ``ContainerMetadata``.
- zorrito.state — folds scanned ``Record`` sets into ``FoxView``/``FoxSummary``.

## Examples
```python
from zorrito.core.schema import EventRecord, decode_record, encode_record
ev = EventRecord(fox_id="fox-abc123", owner="0x1", season="2025-11",
                 occurred_at="2025-11-01T10:00:00.000Z", credits_delta=-1)
decode_record(encode_record(ev)) == ev  # True
```
"""
