"""Configuration management with YAML loading and Pydantic validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class BoardConfig(BaseModel):
    show_all: bool = False
    open_color: str = "green"
    closed_color: str = "red"


class TickerConfig(BaseModel):
    refresh_seconds: int = Field(default=60, gt=0)
    align_to_minute: bool = True


class AppConfig(BaseModel):
    """Master application configuration."""

    # Base
    timezone: str = "UTC"
    exchanges_file: str = "./configs/exchanges.yaml"
    strict_schedules: bool = False
    log_level: str = "INFO"
    log_dir: str = "./logs"

    # Sub-configs
    board: BoardConfig = Field(default_factory=BoardConfig)
    ticker: TickerConfig = Field(default_factory=TickerConfig)


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML file and return as dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load config from YAML, supporting 'inherits' for base config merging.

    A missing path yields the defaults so the CLI works without a config file.
    """
    if config_path is None or not Path(config_path).exists():
        return AppConfig()

    path = Path(config_path)
    raw = load_yaml(path)

    # Handle inheritance
    if "inherits" in raw:
        base_path = path.parent / raw.pop("inherits")
        base = load_yaml(base_path)
        # Deep merge: raw overrides base
        merged = _deep_merge(base, raw)
    else:
        merged = raw

    return AppConfig(**merged)


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
