"""Settings loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from llmcache.config.hierarchy import load_config_hierarchy
from llmcache.config.schema import Settings
from llmcache.errors.exceptions import ConfigError


def load_settings(**runtime_overrides: Any) -> Settings:
    """Resolve the config hierarchy and return validated Settings."""
    flat = load_config_hierarchy(**runtime_overrides)
    return _validate(flat, source="hierarchy")


def load_settings_yaml(path: str | Path) -> Settings:
    """Load a flat settings YAML file on top of the package defaults."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings YAML not found: {path}")

    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}", source=str(path)) from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(
            f"Expected YAML mapping, got {type(raw).__name__} in {path}", source=str(path)
        )

    return _validate(raw, source=str(path))


def _validate(flat: dict[str, Any], source: str) -> Settings:
    try:
        return Settings.from_flat(flat)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigError(
            f"Invalid configuration from {source}: {key or 'value'}: {first.get('msg')}",
            source=source,
            key=key or None,
        ) from e
