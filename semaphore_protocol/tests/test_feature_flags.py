"""
Unit tests for feature flag backend selection.
"""

import pytest

from .. import feature_flags
from ..exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def reset_feature_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    feature_flags.set_store_type(None)
    feature_flags.set_proof_backend(None)
    monkeypatch.delenv(feature_flags.STORE_ENV_VAR, raising=False)
    monkeypatch.delenv(feature_flags.PROOF_ENV_VAR, raising=False)
    monkeypatch.delenv(feature_flags.STORE_PATH_ENV_VAR, raising=False)
    yield
    feature_flags.set_store_type(None)
    feature_flags.set_proof_backend(None)


def test_defaults() -> None:
    assert feature_flags.get_store_type() == "mem"
    assert feature_flags.get_proof_backend() == "mock"
    assert feature_flags.get_store_path() is None


def test_env_var_controls_store(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_STORE_BACKEND", "sqlite")
    assert feature_flags.get_store_type() == "sqlite"


def test_prefer_overrides_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_STORE_BACKEND", "sqlite")
    assert feature_flags.get_store_type(prefer="mem") == "mem"


def test_set_store_type_overrides_and_clears(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_STORE_BACKEND", "sqlite")
    feature_flags.set_store_type("mem")
    assert feature_flags.get_store_type() == "mem"
    feature_flags.set_store_type(None)
    assert feature_flags.get_store_type() == "sqlite"


def test_set_store_type_empty_string_clears(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_STORE_BACKEND", "sqlite")
    feature_flags.set_store_type("mem")
    feature_flags.set_store_type("")
    assert feature_flags.get_store_type() == "sqlite"


def test_store_path_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_STORE_PATH", "/tmp/groups.db")
    assert feature_flags.get_store_path() == "/tmp/groups.db"


def test_invalid_values_raise() -> None:
    with pytest.raises(ConfigurationError, match="Invalid store type"):
        feature_flags.get_store_type(prefer="lmdb")
    with pytest.raises(ValueError, match="Invalid proof backend type"):
        feature_flags.set_proof_backend("groth16")


def test_invalid_env_var_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEMAPHORE_PROOF_BACKEND", "nope")
    with pytest.raises(ConfigurationError):
        feature_flags.get_proof_backend()
