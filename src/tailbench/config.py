# Copyright (c) Syntropy Systems
"""Configuration management for tailbench."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, cast

import yaml

from tailbench.models.trial import DistributionConfig

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".tailbench"
CONFIG_FILE_NAME = "config.yaml"


@dataclass
class TailbenchConfig:
    """Configuration for tailbench."""

    # Seed for the bootstrap dataset
    seed: int = 12345

    # Default distribution parameters for new trials
    mean: float = 100.0
    std_dev: float = 10.0
    tail_shift: float = 3.0
    tail_probability: float = 0.01
    samples_per_trial: int = 20

    # Logging level name for the CLI
    log_level: str = "WARNING"

    def distribution(self) -> DistributionConfig:
        """Return the default distribution parameters as a validated model."""
        return DistributionConfig(
            mean=self.mean,
            std_dev=self.std_dev,
            tail_shift=self.tail_shift,
            tail_probability=self.tail_probability,
            samples_per_trial=self.samples_per_trial,
        )


def find_config_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .tailbench directory by walking up from start_path.

    Returns None if no .tailbench directory is found.
    """
    start = (start_path or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        config_dir = directory / CONFIG_DIR_NAME
        if config_dir.is_dir():
            return config_dir
    return None


def get_global_config_dir() -> Path:
    """Get the global tailbench config directory (~/.tailbench)."""
    return Path.home() / CONFIG_DIR_NAME


# Numeric fields read from config.yaml, with the type each is stored as
NUMERIC_FIELDS: dict[str, type[int] | type[float]] = {
    "seed": int,
    "samples_per_trial": int,
    "mean": float,
    "std_dev": float,
    "tail_shift": float,
    "tail_probability": float,
}


def resolve_config_path(config_dir: Path | None = None) -> Path | None:
    """Path of the config.yaml to read, or None to use defaults.

    An explicit config_dir wins, then the nearest .tailbench directory,
    then ~/.tailbench/config.yaml if it exists.
    """
    if config_dir is not None:
        return config_dir / CONFIG_FILE_NAME

    found_dir = find_config_dir()
    if found_dir is not None:
        return found_dir / CONFIG_FILE_NAME

    global_config = get_global_config_dir() / CONFIG_FILE_NAME
    return global_config if global_config.exists() else None


def parse_config(data: dict[str, object]) -> TailbenchConfig:
    """Build a config from parsed YAML.

    Values of the wrong type are ignored field by field; bools never count
    as numbers.
    """
    overrides: dict[str, Any] = {}
    for name, kind in NUMERIC_FIELDS.items():
        value = data.get(name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            overrides[name] = kind(value)

    log_level = data.get("log_level")
    if isinstance(log_level, str):
        overrides["log_level"] = log_level.upper()

    return replace(TailbenchConfig(), **overrides)


def load_config(config_dir: Path | None = None) -> TailbenchConfig:
    """Load configuration from .tailbench/config.yaml or defaults."""
    config_path = resolve_config_path(config_dir)
    if config_path is None or not config_path.exists():
        return TailbenchConfig()

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a mapping", config_path)
        return TailbenchConfig()
    return parse_config(cast("dict[str, object]", data))
