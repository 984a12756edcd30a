"""
Central logging configuration for pocketcal.

Sets package logger levels and keeps third-party loggers quiet. Debug mode
can be forced from the environment for troubleshooting.
"""

import logging
import os
from typing import Optional

PACKAGE_LOGGERS = (
    "pocketcal",
    "pocketcal.domain.engine",
    "pocketcal.domain.event_store",
    "pocketcal.domain.recurrence",
    "pocketcal.domain.collection",
    "pocketcal.core.kv_backend",
    "pocketcal.config_loader",
)


def configure_logging(
    log_level: str = "INFO", debug_mode: bool = False, force_debug: Optional[bool] = None
) -> int:
    """
    Configure logging levels for pocketcal.

    Args:
        log_level: Level name applied when debug mode is off
        debug_mode: Whether to enable debug logging for pocketcal modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        POCKETCAL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        POCKETCAL_LOG_LEVEL: Override the level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        The level applied to the root logger.
    """
    env_debug = os.getenv("POCKETCAL_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("POCKETCAL_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    if final_debug:
        root_level = logging.DEBUG
    elif env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)
    else:
        candidate = getattr(logging, str(log_level).upper(), None)
        root_level = candidate if isinstance(candidate, int) else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    logger_config: dict[str, int] = {
        "dateutil": logging.WARNING,
        "yaml": logging.WARNING,
    }
    for module in PACKAGE_LOGGERS:
        logger_config[module] = root_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.debug("Debug logging enabled for pocketcal modules")
    return root_level


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in PACKAGE_LOGGERS:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
