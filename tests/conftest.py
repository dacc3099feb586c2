"""Pytest configuration and fixtures for all tests."""

import pytest

from ripdiff.core import config as config_module


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the global config manager at a temp file for every test."""
    monkeypatch.delenv(config_module.THEME_ENV_VAR, raising=False)
    monkeypatch.setattr(config_module.config_manager, "config_path", tmp_path / ".ripdiff.json")
    monkeypatch.setattr(config_module.config_manager, "_config", None)
    yield
