"""pocketcal.config_loader

Config loader for pocketcal.

- Reads YAML (PyYAML) or JSON, chosen by file suffix.
- Exposes a typed dataclass `Config` and a `load_config()` helper that accepts
  an optional path override.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "pocketcal"
DEFAULT_STORAGE_KEY = "calendar-events"
DEFAULT_HORIZON_YEARS = 2
MAX_OCCURRENCES_PER_EVENT = 365
DEFAULT_UPCOMING_LIMIT = 10

# Storage keys double as file names
STORAGE_KEY_PATTERN = r"[A-Za-z0-9._-]+"


@dataclass
class Config:
    """Typed configuration for pocketcal.

    Fields:
        data_dir: directory holding the persisted event document
        storage_key: key the base-event document is stored under
        horizon_years: how far ahead of "now" recurrences are expanded
        max_occurrences: hard cap of generated instances per base event
        upcoming_limit: number of entries in the upcoming-events list
        log_level: logging level name
    """

    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    storage_key: str = DEFAULT_STORAGE_KEY
    horizon_years: int = DEFAULT_HORIZON_YEARS
    max_occurrences: int = MAX_OCCURRENCES_PER_EVENT
    upcoming_limit: int = DEFAULT_UPCOMING_LIMIT
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int and the expansion bounds are
        clamped to at least 1, logging warnings when coercions occur.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int, minimum: int = 1) -> int:
            raw = data.get(key, default)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default
            if value < minimum:
                logger.warning("Config %s=%d below minimum; coercing to %d", key, value, minimum)
                return minimum
            return value

        data_dir_raw = data.get("data_dir")
        data_dir = Path(str(data_dir_raw)).expanduser() if data_dir_raw else DEFAULT_DATA_DIR

        storage_key = str(data.get("storage_key") or DEFAULT_STORAGE_KEY)
        if not re.fullmatch(STORAGE_KEY_PATTERN, storage_key):
            logger.warning(
                "Config storage_key=%r has unsupported characters; using default %r",
                storage_key,
                DEFAULT_STORAGE_KEY,
            )
            storage_key = DEFAULT_STORAGE_KEY

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            data_dir=data_dir,
            storage_key=storage_key,
            horizon_years=_coerce_int("horizon_years", DEFAULT_HORIZON_YEARS),
            max_occurrences=_coerce_int("max_occurrences", MAX_OCCURRENCES_PER_EVENT),
            upcoming_limit=_coerce_int("upcoming_limit", DEFAULT_UPCOMING_LIMIT),
            log_level=log_level,
        )

    def with_overrides(self, overrides: dict[str, Any]) -> Config:
        """Return a copy with ``overrides`` applied through the same coercion."""
        if not overrides:
            return self
        merged = {
            "data_dir": str(self.data_dir),
            "storage_key": self.storage_key,
            "horizon_years": self.horizon_years,
            "max_occurrences": self.max_occurrences,
            "upcoming_limit": self.upcoming_limit,
            "log_level": self.log_level,
        }
        merged.update(overrides)
        return Config.from_dict(merged)


def _load_yaml_or_json(path: Path) -> Any:
    """Load a mapping from a YAML or JSON file; ``.json`` selects JSON."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        try:
            return json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {path} is not valid YAML: {exc}") from exc
    # safe_load can return None for empty files; normalize to empty dict
    if loaded is None:
        return {}
    return loaded


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from a YAML/JSON file and return a Config instance.

    Args:
        path: Optional path to the config file. Defaults to
              ~/.config/pocketcal/config.yaml.

    Returns:
        Config dataclass instance with values from file (or defaults).

    Behavior:
    - If file is missing: returns Config() with defaults.
    - If file exists but top-level is not a mapping: raises ConfigError.
    """
    p = Path(path).expanduser() if path else Path.home() / ".config" / "pocketcal" / "config.yaml"
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        return Config()

    raw = _load_yaml_or_json(p)
    if not isinstance(raw, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
        raise ConfigError("Config file must contain a mapping at top level")
    cfg = Config.from_dict(raw)
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg
