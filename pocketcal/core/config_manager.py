"""Environment-driven configuration for pocketcal."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from ..config_loader import Config, load_config

logger = logging.getLogger(__name__)

# env var -> (config key, is integer)
_ENV_KEYS: dict[str, tuple[str, bool]] = {
    "POCKETCAL_DATA_DIR": ("data_dir", False),
    "POCKETCAL_STORAGE_KEY": ("storage_key", False),
    "POCKETCAL_HORIZON_YEARS": ("horizon_years", True),
    "POCKETCAL_MAX_OCCURRENCES": ("max_occurrences", True),
    "POCKETCAL_UPCOMING_LIMIT": ("upcoming_limit", True),
    "POCKETCAL_LOG_LEVEL": ("log_level", False),
}


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Handles KEY=VALUE format with optional whitespace
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return result

    for raw_line in content.splitlines():
        line = raw_line.strip()

        if not line or line.startswith("#") or "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")

        if key:
            result[key] = val

    return result


class ConfigManager:
    """Builds the effective Config from a config file, a .env file and the environment."""

    def __init__(self, env_file_path: Path | None = None, config_path: str | Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
            config_path: Optional YAML/JSON config file passed to load_config()
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"
        self.config_path = config_path

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []
        for key, val in parse_env_file(self.env_file_path).items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_overrides_from_env(self) -> dict[str, Any]:
        """Collect config overrides from POCKETCAL_* environment variables.

        Integer settings that do not parse are ignored with a warning.
        """
        overrides: dict[str, Any] = {}
        for env_name, (key, is_int) in _ENV_KEYS.items():
            raw = os.environ.get(env_name)
            if not raw:
                continue
            if is_int:
                try:
                    overrides[key] = int(raw)
                except ValueError:
                    logger.warning("Invalid %s=%r; ignoring", env_name, raw)
                    continue
            else:
                overrides[key] = raw
        return overrides

    def load_full_config(self) -> Config:
        """Load file config, then .env defaults, then environment overrides.

        Returns:
            Effective Config
        """
        cfg = load_config(self.config_path)
        self.load_env_file()
        overrides = self.build_overrides_from_env()
        if overrides:
            logger.debug("Applying environment overrides for: %s", ", ".join(sorted(overrides)))
        return cfg.with_overrides(overrides)
