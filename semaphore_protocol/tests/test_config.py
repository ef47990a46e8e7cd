from pathlib import Path

import pytest

from .. import config


def test_validate_config() -> None:
    assert config.validate_config() is True


def test_domain_separators_are_prefixed() -> None:
    for separator in config.DOMAIN_SEPARATORS.values():
        assert separator.startswith(config.DOMAIN_SEPARATOR_PREFIX)


def test_default_private_dir(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.delenv(config.PRIVATE_DIR_ENV_VAR, raising=False)
    assert config.default_private_dir() == Path.home() / ".private"

    monkeypatch.setenv(config.PRIVATE_DIR_ENV_VAR, str(tmp_path))
    assert config.default_private_dir() == tmp_path
