"""
Unit tests for backend factory selection.
"""

from __future__ import annotations

import pytest

from .. import factory
from ..adapters.memory_store import InMemoryStore
from ..adapters.mock_adapter import MockProofSystem
from ..adapters.sqlite_store import PersistentStore
from ..exceptions import ConfigurationError, StorageError
from ..feature_flags import set_proof_backend, set_store_type
from ..interfaces import MembershipStore, ProofSystem


@pytest.fixture(autouse=True)
def reset_factory_state(monkeypatch: pytest.MonkeyPatch) -> None:
    set_store_type(None)
    set_proof_backend(None)
    monkeypatch.delenv("SEMAPHORE_STORE_BACKEND", raising=False)
    monkeypatch.delenv("SEMAPHORE_STORE_PATH", raising=False)
    monkeypatch.delenv("SEMAPHORE_PROOF_BACKEND", raising=False)
    yield
    set_store_type(None)
    set_proof_backend(None)


def test_default_store_is_memory() -> None:
    store = factory.open_store()
    assert isinstance(store, InMemoryStore)
    assert isinstance(store, MembershipStore)
    assert store.backend_name == "mem"


def test_memory_stores_are_independent() -> None:
    a = factory.open_store()
    b = factory.open_store()
    a.put("g", {"guid": "g"})
    assert b.get("g") is None


def test_sqlite_store_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("SEMAPHORE_STORE_BACKEND", "sqlite")
    monkeypatch.setenv("SEMAPHORE_STORE_PATH", str(tmp_path / "kvs.db"))
    store = factory.open_store()
    try:
        assert isinstance(store, PersistentStore)
        assert store.backend_name == "sqlite"
    finally:
        store.close()


def test_sqlite_store_requires_path() -> None:
    with pytest.raises(StorageError):
        factory.open_store(prefer="sqlite")


def test_prefer_path_argument(tmp_path) -> None:
    store = factory.open_store(prefer="sqlite", path=tmp_path / "x.db")
    try:
        assert store.path == str(tmp_path / "x.db")
    finally:
        store.close()


def test_unknown_store_rejected() -> None:
    with pytest.raises(ConfigurationError):
        factory.open_store(prefer="lmdb")


def test_registry_is_closed() -> None:
    with pytest.raises(ConfigurationError):
        factory._check_registered(factory.STORE_REGISTRY, "extra", "store backend")


def test_default_proof_system_is_mock() -> None:
    system = factory.get_proof_system()
    assert isinstance(system, MockProofSystem)
    assert isinstance(system, ProofSystem)
    assert system.backend_name == "mock"


def test_load_class_rejects_wrong_base() -> None:
    with pytest.raises(TypeError):
        factory._load_class(factory.PROOF_REGISTRY, "mock", MembershipStore)
