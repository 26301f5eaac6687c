"""ical_expander.config

Configuration for IcalExpander.

- Typed dataclass ``ExpanderConfig`` with a conservative ``from_dict``.
- ``load_config()`` reads YAML or JSON (by suffix) and applies environment
  overrides.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "ICAL_EXPANDER_"

DEFAULT_MAX_ITERATIONS = 1000


@dataclass(frozen=True)
class ExpanderConfig:
    """Typed configuration for IcalExpander.

    Fields:
        max_iterations: cap on recurrence candidates per series (<= 0 means no cap)
        skip_invalid_dates: drop events whose dates cannot be resolved instead of failing
        timezone: IANA name of the caller timezone for floating and all-day values
        log_level: logging level name used by the CLI
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    skip_invalid_dates: bool = False
    timezone: str = "UTC"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> ExpanderConfig:
        """Create a config from a plain mapping, coercing types and logging fixes.

        camelCase keys (``maxIterations``, ``skipInvalidDates``) are accepted as
        aliases of the snake_case names.
        """
        if data is None:
            data = {}

        def _get(key: str, alias: str, default: Any) -> Any:
            if key in data:
                return data[key]
            return data.get(alias, default)

        raw_iterations = _get("max_iterations", "maxIterations", DEFAULT_MAX_ITERATIONS)
        if raw_iterations is None:
            max_iterations = 0
        else:
            try:
                max_iterations = int(raw_iterations)
            except (TypeError, ValueError):
                logger.warning(
                    "Config max_iterations=%r is not an int; using default %d",
                    raw_iterations,
                    DEFAULT_MAX_ITERATIONS,
                )
                max_iterations = DEFAULT_MAX_ITERATIONS

        skip_invalid_dates = _coerce_bool(_get("skip_invalid_dates", "skipInvalidDates", False))

        timezone = _get("timezone", "tz", "UTC")
        timezone = str(timezone) if timezone else "UTC"

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            max_iterations=max_iterations,
            skip_invalid_dates=skip_invalid_dates,
            timezone=timezone,
            log_level=log_level,
        )

    def with_env_overrides(self, environ: Optional[dict[str, str]] = None) -> ExpanderConfig:
        """Return a copy with ICAL_EXPANDER_* environment variables applied."""
        env = os.environ if environ is None else environ
        changes: dict[str, Any] = {}

        raw = env.get(f"{ENV_PREFIX}MAX_ITERATIONS")
        if raw:
            try:
                changes["max_iterations"] = int(raw)
            except ValueError:
                logger.warning("Ignoring invalid %sMAX_ITERATIONS=%r", ENV_PREFIX, raw)

        raw = env.get(f"{ENV_PREFIX}SKIP_INVALID_DATES")
        if raw:
            changes["skip_invalid_dates"] = _coerce_bool(raw)

        raw = env.get(f"{ENV_PREFIX}TIMEZONE")
        if raw:
            changes["timezone"] = raw

        raw = env.get(f"{ENV_PREFIX}LOG_LEVEL")
        if raw:
            changes["log_level"] = raw.upper()

        return replace(self, **changes) if changes else self


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _load_mapping(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    loaded = yaml.safe_load(text)
    # safe_load returns None for empty files
    return {} if loaded is None else loaded


def load_config(path: Optional[str] = None, apply_env: bool = True) -> ExpanderConfig:
    """Load configuration from a YAML/JSON file.

    Args:
        path: Optional path to the config file; defaults are used when omitted
              or when the file does not exist
        apply_env: Apply ICAL_EXPANDER_* environment overrides

    Raises:
        ValueError: If the file's top level is not a mapping
    """
    cfg = ExpanderConfig()
    if path:
        p = Path(path)
        if p.exists():
            raw = _load_mapping(p)
            if not isinstance(raw, dict):
                logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
                raise ValueError("Config file must contain a mapping at top level")  # noqa: TRY004
            cfg = ExpanderConfig.from_dict(raw)
            logger.info("Loaded configuration from %s", p)
        else:
            logger.info("Config file %s not found; using defaults", p)
    if apply_env:
        cfg = cfg.with_env_overrides()
    logger.debug("Configuration values: %s", cfg)
    return cfg
