"""Test configuration management."""

import json

import pytest
from pydantic import ValidationError

from ripdiff.core.config import (
    THEME_ENV_VAR,
    ConfigManager,
    ViewerConfig,
    get_viewer_config,
    save_viewer_config,
)


def test_viewer_config_defaults():
    config = ViewerConfig()

    assert config.theme == "dark"
    assert config.layout_mode == "unified"
    assert not config.hard_wrap
    assert config.intraline_max_cells == 250_000
    assert config.split_ratio == 0.5


def test_split_ratio_is_clamped():
    assert ViewerConfig(split_ratio=1.5).split_ratio == 1.0
    assert ViewerConfig(split_ratio=-0.2).split_ratio == 0.0


def test_hyphenated_layout_is_accepted():
    assert ViewerConfig(layout_mode="side-by-side").layout_mode == "side_by_side"


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        ViewerConfig(tab_width=0)
    with pytest.raises(ValidationError):
        ViewerConfig(intraline_style="blink")


def test_render_options_follow_config():
    options = ViewerConfig(tab_width=8, intraline_enabled=False).render_options()

    assert options.tab_width == 8
    assert not options.intraline_enabled


def test_missing_file_uses_defaults(tmp_path):
    manager = ConfigManager(tmp_path / "missing.json")
    assert manager.get_viewer_config() == ViewerConfig()


def test_invalid_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    assert ConfigManager(path).get_viewer_config() == ViewerConfig()

    path.write_text(json.dumps({"tab_width": 99}))
    assert ConfigManager(path).get_viewer_config() == ViewerConfig()


def test_save_and_reload(tmp_path):
    path = tmp_path / "config.json"
    ConfigManager(path).save_viewer_config(ViewerConfig(theme="nord", hard_wrap=True))

    loaded = ConfigManager(path).get_viewer_config()
    assert loaded.theme == "nord"
    assert loaded.hard_wrap
    assert json.loads(path.read_text())["theme"] == "nord"


def test_theme_environment_override(monkeypatch):
    save_viewer_config(ViewerConfig(theme="light"))
    assert get_viewer_config().theme == "light"

    monkeypatch.setenv(THEME_ENV_VAR, "dracula")
    assert get_viewer_config().theme == "dracula"
