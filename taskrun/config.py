"""Configuration loading and the process-wide configuration object."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    duckdb_path: str = Field(
        default="data/runs.duckdb", description="Path to the DuckDB run store"
    )


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AppConfig(BaseModel):
    verbosity: int = Field(
        default=1, ge=0, description="0 silences executor progress, >0 reports it"
    )
    seed_prefix: str = Field(
        default="openml", description="Name prefix for seed parameter settings"
    )
    logging: LoggingConfig = LoggingConfig()
    storage: StorageConfig = StorageConfig()

    @staticmethod
    def from_yaml(path: str | Path) -> "AppConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return AppConfig(**data)


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "base.yaml"

_active_config: Optional[AppConfig] = None


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load application config from YAML.

    Args:
        path: Optional path to YAML config. If None, defaults to config/base.yaml.
    """
    resolved = Path(path) if path else DEFAULT_CONFIG_PATH
    return AppConfig.from_yaml(resolved)


def get_config() -> AppConfig:
    """Return the process-wide configuration, loading defaults on first use."""
    global _active_config
    if _active_config is None:
        if DEFAULT_CONFIG_PATH.exists():
            _active_config = load_app_config(DEFAULT_CONFIG_PATH)
        else:
            _active_config = AppConfig()
    return _active_config


def set_config(config: Optional[AppConfig]) -> None:
    """Replace the process-wide configuration. ``None`` resets to defaults."""
    global _active_config
    _active_config = config


def configure_logging(config: AppConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
    )


__all__ = [
    "AppConfig",
    "LoggingConfig",
    "StorageConfig",
    "configure_logging",
    "get_config",
    "load_app_config",
    "set_config",
]
