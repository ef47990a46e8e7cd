"""
Backend factory for membership stores and proof systems.

Both registries are closed: a backend name outside them is a configuration
error, never a dynamic lookup.

WARNING: The mock proof system is for testing only and must not be used in
production. This factory does not validate cryptographic correctness.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Final

from .exceptions import ConfigurationError, StorageError
from .feature_flags import get_proof_backend, get_store_path, get_store_type
from .interfaces import MembershipStore, ProofSystem

logger = logging.getLogger(__name__)

STORE_REGISTRY: Final[dict[str, str]] = {
    "mem": "semaphore_protocol.adapters.memory_store.InMemoryStore",
    "sqlite": "semaphore_protocol.adapters.sqlite_store.PersistentStore",
}

PROOF_REGISTRY: Final[dict[str, str]] = {
    "mock": "semaphore_protocol.adapters.mock_adapter.MockProofSystem",
}


def _load_class(registry: dict[str, str], name: str, base: type) -> type:
    import_path = registry[name]
    module_path, _, class_name = import_path.rpartition(".")
    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as exc:
        raise ImportError(
            f"Unable to import backend module {module_path!r} for {name!r}"
        ) from exc

    try:
        backend_cls = getattr(module, class_name)
    except AttributeError as exc:
        raise ImportError(
            f"Backend class {class_name!r} not found in module {module_path!r}"
        ) from exc

    if not isinstance(backend_cls, type) or not issubclass(backend_cls, base):
        raise TypeError(
            f"Backend reference {import_path!r} does not implement {base.__name__}"
        )

    return backend_cls


def _check_registered(registry: dict[str, str], name: str, kind: str) -> None:
    if name not in registry:
        raise ConfigurationError(
            f"Invalid {kind} name: {name!r}. "
            f"Valid options: {', '.join(sorted(registry))}"
        )


def open_store(
    prefer: str | None = None, path: str | Path | None = None
) -> MembershipStore:
    """
    Open a membership store based on feature flags.

    Args:
        prefer: Optional backend name ("mem" or "sqlite").
        path: Database path for the sqlite backend. Falls back to
            ``$SEMAPHORE_STORE_PATH``.

    Returns:
        MembershipStore: New store instance.

    Raises:
        ConfigurationError: If the backend name is invalid.
        StorageError: If a persistent store has no path or cannot be opened.
    """
    name = get_store_type(prefer)
    _check_registered(STORE_REGISTRY, name, "store backend")
    store_cls = _load_class(STORE_REGISTRY, name, MembershipStore)

    if name == "mem":
        return store_cls()

    db_path = path or get_store_path()
    if not db_path:
        raise StorageError(f"store backend {name!r} requires a path")
    return store_cls(db_path)


def get_proof_system(prefer: str | None = None) -> ProofSystem:
    """
    Return a proof system instance based on feature flags.

    Raises:
        ConfigurationError: If the backend name is invalid.
        ImportError: If the backend class cannot be imported.
        TypeError: If the backend class does not implement ProofSystem.
    """
    name = get_proof_backend(prefer)
    _check_registered(PROOF_REGISTRY, name, "proof backend")
    backend = _load_class(PROOF_REGISTRY, name, ProofSystem)()
    logger.debug("Using proof backend %s", backend.backend_name)
    return backend
