"""
Custom exceptions for the semaphore protocol.

Validation, conflict and signature errors signal misuse and are raised
straight to the caller. Backend failures are classified once, at the
boundary, by ``storage_errors`` and ``crypto_errors``.
"""

import json
import sqlite3
from contextlib import contextmanager
from typing import Iterator

import cbor2
from nacl import exceptions as nacl_exceptions


class SemaphoreError(Exception):
    """Base exception for semaphore protocol errors."""

    pass


class ValidationError(SemaphoreError):
    """Missing, empty or malformed required input."""

    pass


class NotFoundError(SemaphoreError):
    """Read of a nonexistent group or identity."""

    pass


class ConflictError(SemaphoreError):
    """Create on an already existing guid."""

    pass


class SignatureError(SemaphoreError):
    """Invalid owner or identity signature."""

    pass


class ProofError(SemaphoreError):
    """Invalid or mismatched zero-knowledge proof."""

    pass


class StorageError(SemaphoreError):
    """Storage backend I/O failure."""

    pass


class CryptoError(SemaphoreError):
    """Cryptographic operation error (malformed keys, ciphertexts)."""

    pass


class ConfigurationError(SemaphoreError, ValueError):
    """Invalid backend selection or configuration value."""

    pass


_STORAGE_CAUSES = (
    OSError,
    sqlite3.Error,
    cbor2.CBORError,
    json.JSONDecodeError,
)

_CRYPTO_CAUSES = (
    nacl_exceptions.CryptoError,
    ValueError,
    TypeError,
)


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise backend I/O failures as ``StorageError`` with the cause chained."""
    try:
        yield
    except SemaphoreError:
        raise
    except _STORAGE_CAUSES as exc:
        raise StorageError(f"{operation} failed: {exc}") from exc


@contextmanager
def crypto_errors(operation: str) -> Iterator[None]:
    """Re-raise key, signature and cipher decoding failures as ``CryptoError``."""
    try:
        yield
    except SemaphoreError:
        raise
    except _CRYPTO_CAUSES as exc:
        raise CryptoError(f"{operation} failed: {type(exc).__name__}") from exc
