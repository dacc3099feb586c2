"""Configuration management for ripdiff.

Viewer preferences live in ``~/.ripdiff.json``. A missing or broken file
falls back to defaults; ``RIPDIFF_THEME`` overrides the theme for one run.
"""

import json
import os
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ripdiff.core.intraline import DEFAULT_MAX_CELLS
from ripdiff.core.render_model import RenderOptions
from ripdiff.utils.log import get_logger

logger = get_logger()

THEME_ENV_VAR = "RIPDIFF_THEME"


class ViewerConfig(BaseModel):
    """Viewer configuration stored in ~/.ripdiff.json"""

    theme: str = "dark"
    layout_mode: Literal["unified", "side_by_side"] = "unified"
    hard_wrap: bool = False
    hide_change_signs: bool = False

    intraline_enabled: bool = True
    intraline_style: Literal["background", "underline"] = "background"
    intraline_max_cells: int = Field(default=DEFAULT_MAX_CELLS, ge=1)

    tab_width: int = Field(default=4, ge=1, le=16)
    split_ratio: float = 0.5

    @field_validator("split_ratio")
    @classmethod
    def _clamp_split_ratio(cls, value: float) -> float:
        return min(1.0, max(0.0, value))

    @model_validator(mode="before")
    @classmethod
    def _accept_hyphenated_layout(cls, data: Any) -> Any:
        """Accept ``side-by-side`` as written by hand."""
        if isinstance(data, dict) and data.get("layout_mode") == "side-by-side":
            data = dict(data)
            data["layout_mode"] = "side_by_side"
        return data

    def render_options(self) -> RenderOptions:
        return RenderOptions(
            tab_width=self.tab_width,
            intraline_enabled=self.intraline_enabled,
            intraline_max_cells=self.intraline_max_cells,
        )


class ConfigManager:
    """Loads and saves the viewer configuration."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path or Path.home() / ".ripdiff.json"
        self._config: Optional[ViewerConfig] = None

    def get_viewer_config(self) -> ViewerConfig:
        """Load and return the viewer configuration."""
        if self._config is None:
            if self.config_path.exists():
                try:
                    data = json.loads(self.config_path.read_text())
                    self._config = ViewerConfig(**data)
                    logger.debug(
                        "[config] Loaded viewer configuration",
                        extra={"path": str(self.config_path)},
                    )
                except (
                    json.JSONDecodeError,
                    OSError,
                    UnicodeDecodeError,
                    ValueError,
                    TypeError,
                ) as e:
                    logger.warning(
                        "[config] Error loading viewer config: %s: %s",
                        type(e).__name__,
                        e,
                        extra={"error": str(e)},
                    )
                    self._config = ViewerConfig()
            else:
                self._config = ViewerConfig()
                logger.debug(
                    "[config] Viewer config not found; using defaults",
                    extra={"path": str(self.config_path)},
                )
        return self._config

    def effective_config(self) -> ViewerConfig:
        """Stored configuration with environment overrides applied."""
        config = self.get_viewer_config()
        theme = os.getenv(THEME_ENV_VAR, "").strip()
        if theme:
            return config.model_copy(update={"theme": theme})
        return config

    def save_viewer_config(self, config: ViewerConfig) -> None:
        self._config = config
        self.config_path.write_text(config.model_dump_json(indent=2))
        logger.debug(
            "[config] Saved viewer configuration",
            extra={"path": str(self.config_path), "theme": config.theme},
        )


# Global instance
config_manager = ConfigManager()


def get_viewer_config() -> ViewerConfig:
    """Get the viewer configuration, with environment overrides."""
    return config_manager.effective_config()


def save_viewer_config(config: ViewerConfig) -> None:
    config_manager.save_viewer_config(config)
