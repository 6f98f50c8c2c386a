"""
Core exception types raised by input validation, record decoding, and lookups.

Provides typed exceptions for core-domain failures:
- ValidationError for malformed caller input (payload size, season tokens, identifiers).
- RecordDecodeError for backend metadata maps that cannot be decoded into a typed record.
- NotFoundError for explicit lookups of foxes that have no profile record.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Backend failures are IO-layer concerns and live in zorrito.io.errors.
    - The regular read API reports a missing fox as ``None``; NotFoundError is raised only
      by the ``require`` helpers.

Examples:
    Catch a validation failure.

    >>> from zorrito.core.errors import ValidationError
    >>> def check(n: int) -> None:
    ...     if n < 127:
    ...         raise ValidationError("payload too small")
    >>> try:
    ...     check(3)
    ... except ValidationError as e:
    ...     msg = str(e)
    >>> "too small" in msg
    True
"""

from __future__ import annotations

__all__ = [
    "ValidationError",
    "RecordDecodeError",
    "NotFoundError",
]


class ValidationError(ValueError):
    """Malformed input to the core (payload below minimum size, malformed identifiers)."""


class RecordDecodeError(ValidationError):
    """Backend metadata map is missing fields, carries an unknown tag, or fails coercion."""


class NotFoundError(LookupError):
    """Requested fox has no profile record in the season's active container."""
