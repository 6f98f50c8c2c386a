"""
Custom exceptions for the zorrito.io module.

Purpose
- Provide storage-layer error types that map cleanly to responsibilities in zorrito.io.
- Keep zorrito.core as the source of truth for input validation and record decoding errors
  (see zorrito.core.errors).

Source of truth and boundaries
- zorrito.core.errors.ValidationError / RecordDecodeError are raised by core validators.
- zorrito.io raises Storage* errors for backend/config concerns:
  - StorageConfigError: invalid or unsupported configuration.
  - BackendError: the storage backend call failed (unknown container or record, IO failure,
    connectivity/auth in remote backends).

Notes
- BackendError is propagated verbatim by the directory, writer, and scanner; there is no
  retry or backoff in this package.
- These exceptions do not perform any IO and are stdlib-only.
"""

from __future__ import annotations


class StorageError(Exception):
    """
    Base class for storage-related errors in zorrito.io.

    Notes:
        Use this as a catch-all for storage-layer failures, distinct from zorrito.core errors.
    """


class StorageConfigError(StorageError):
    """
    Raised when storage configuration is invalid or unsupported.

    Examples:
        - Unknown backend kind
        - Non-positive probe timeout
    """


class BackendError(StorageError):
    """
    Raised when a storage backend call fails.

    Notes:
        Fatal to the single operation that triggered it; callers decide whether to retry.
    """
