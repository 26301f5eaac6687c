"""
Central logging configuration for ical_expander.

Keeps the package's own loggers at the requested verbosity while quieting the
parsing library, with environment overrides for troubleshooting.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR")

PACKAGE_LOGGERS = [
    "ical_expander",
    "ical_expander.components",
    "ical_expander.config",
    "ical_expander.datetime_utils",
    "ical_expander.timezones",
    "ical_expander.recurrence",
    "ical_expander.expander",
]


def configure_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure logging levels for ical_expander.

    Args:
        debug_mode: Whether to enable debug logging for ical_expander modules
        force_debug: Override debug mode setting (None to use env var detection)
        log_level: Level name for root and ical_expander loggers when not debugging
                   (typically ExpanderConfig.log_level); unknown names are ignored

    Environment Variables:
        ICAL_EXPANDER_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        ICAL_EXPANDER_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("ICAL_EXPANDER_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("ICAL_EXPANDER_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    base_level = logging.INFO
    if log_level and log_level.upper() in LEVEL_NAMES:
        base_level = getattr(logging, log_level.upper())

    root_level = logging.DEBUG if final_debug else base_level
    if env_log_level in LEVEL_NAMES:
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Only add a handler if none exist to avoid duplicate output
    if not root_logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
        root_logger.addHandler(handler)

    logger_config: dict[str, int] = {
        "icalendar": logging.WARNING,
    }
    package_level = logging.DEBUG if final_debug else base_level
    for module in PACKAGE_LOGGERS:
        logger_config[module] = package_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    root_logger.debug(
        "Logging configured: root=%s, ical_expander=%s",
        logging.getLevelName(root_level),
        logging.getLevelName(package_level),
    )


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ["ical_expander", "icalendar"]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
