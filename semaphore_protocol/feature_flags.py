"""
Feature flags for selecting the membership store and proof system backends.

WARNING: Backend selection affects durability and security assumptions. The
mock proof system is for testing only.
"""

from __future__ import annotations

import os
from typing import Final

from .exceptions import ConfigurationError

STORE_BACKENDS: Final[tuple[str, ...]] = ("mem", "sqlite")
PROOF_BACKENDS: Final[tuple[str, ...]] = ("mock",)

_DEFAULT_STORE: Final[str] = "mem"
_DEFAULT_PROOF_BACKEND: Final[str] = "mock"

STORE_ENV_VAR: Final[str] = "SEMAPHORE_STORE_BACKEND"
STORE_PATH_ENV_VAR: Final[str] = "SEMAPHORE_STORE_PATH"
PROOF_ENV_VAR: Final[str] = "SEMAPHORE_PROOF_BACKEND"

_store_override: str | None = None
_proof_override: str | None = None


def _normalize(value: str | None, valid: tuple[str, ...], kind: str) -> str | None:
    if value is None:
        return None

    if not isinstance(value, str) or (value and value not in valid):
        raise ConfigurationError(
            f"Invalid {kind} type: {value!r}. Valid options: {', '.join(valid)}"
        )

    return value or None


def get_store_type(prefer: str | None = None) -> str:
    """
    Resolve the membership store backend in precedence order.

    prefer > set_store_type() override > $SEMAPHORE_STORE_BACKEND > "mem"

    Raises:
        ConfigurationError: If a provided backend value is invalid.
    """
    preferred = _normalize(prefer, STORE_BACKENDS, "store")
    if preferred is not None:
        return preferred

    if _store_override is not None:
        return _store_override

    env_store = _normalize(os.getenv(STORE_ENV_VAR), STORE_BACKENDS, "store")
    if env_store is not None:
        return env_store

    return _DEFAULT_STORE


def set_store_type(value: str | None) -> None:
    """Set in-memory store override (testing only). None clears it."""
    global _store_override
    _store_override = _normalize(value, STORE_BACKENDS, "store")


def get_store_path() -> str | None:
    return os.getenv(STORE_PATH_ENV_VAR) or None


def get_proof_backend(prefer: str | None = None) -> str:
    """
    Resolve the proof system backend in precedence order.

    Raises:
        ConfigurationError: If a provided backend value is invalid.
    """
    preferred = _normalize(prefer, PROOF_BACKENDS, "proof backend")
    if preferred is not None:
        return preferred

    if _proof_override is not None:
        return _proof_override

    env_backend = _normalize(os.getenv(PROOF_ENV_VAR), PROOF_BACKENDS, "proof backend")
    if env_backend is not None:
        return env_backend

    return _DEFAULT_PROOF_BACKEND


def set_proof_backend(value: str | None) -> None:
    """Set in-memory proof backend override (testing only). None clears it."""
    global _proof_override
    _proof_override = _normalize(value, PROOF_BACKENDS, "proof backend")
