"""Configuration loading from environment variables and homestore.toml."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .utils import (CANVAS_H, CANVAS_W, DEFAULT_FURNITURE_COLOR, DEFAULT_ROOM_COLOR,
                    GRID_STEP, MIN_ROOM_SIZE, ColorPolicy)

_DEFAULT_DB_PATH = Path.home() / ".homestore" / "homestore.db"
_CONFIG_FILENAME = "homestore.toml"

_TRUE = {"1", "true", "yes", "on"}


@dataclass
class EditorConfig:
    """Canvas and drawing settings."""

    min_room_size: float = MIN_ROOM_SIZE
    grid_step: float = GRID_STEP
    canvas_width: float = CANVAS_W
    canvas_height: float = CANVAS_H
    default_room_color: str = DEFAULT_ROOM_COLOR
    default_furniture_color: str = DEFAULT_FURNITURE_COLOR


@dataclass
class AppConfig:
    """Top-level application configuration."""

    editor: EditorConfig = field(default_factory=EditorConfig)
    database_path: Path = _DEFAULT_DB_PATH
    seed_demo_data: bool = True
    color_policy: ColorPolicy = ColorPolicy.ACCEPT
    log_level: str = "INFO"


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from environment variables and optional homestore.toml.

    Priority: environment variables > homestore.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    else:
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".homestore" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text(encoding="utf-8"))
                break

    editor_data = file_data.get("editor", {})
    defaults = EditorConfig()

    return AppConfig(
        editor=EditorConfig(
            min_room_size=float(editor_data.get("min_room_size", defaults.min_room_size)),
            grid_step=float(editor_data.get("grid_step", defaults.grid_step)),
            canvas_width=float(editor_data.get("canvas_width", defaults.canvas_width)),
            canvas_height=float(editor_data.get("canvas_height", defaults.canvas_height)),
            default_room_color=editor_data.get("default_room_color", defaults.default_room_color),
            default_furniture_color=editor_data.get(
                "default_furniture_color", defaults.default_furniture_color
            ),
        ),
        database_path=Path(
            os.getenv("HOMESTORE_DB", file_data.get("database_path", str(_DEFAULT_DB_PATH)))
        ).expanduser(),
        seed_demo_data=_as_bool(os.getenv("HOMESTORE_SEED", file_data.get("seed_demo_data", True))),
        color_policy=ColorPolicy(
            os.getenv("HOMESTORE_COLOR_POLICY", file_data.get("color_policy", "accept")).lower()
        ),
        log_level=os.getenv("HOMESTORE_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
