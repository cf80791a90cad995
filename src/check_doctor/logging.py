"""Python-standard logging configuration for check-doctor.

Logging is configured with logging.config.dictConfig() from YAML files
shipped in the ``check_doctor/resources`` directory. ``CHECK_DOCTOR_ENV``
selects an environment-specific file (``logging-<env>.yaml``).
"""

from __future__ import annotations

import logging
import logging.config
import os
import sys
from pathlib import Path
from typing import Any, cast

import yaml

RESOURCES_DIR = Path(__file__).parent / "resources"
ENV_VARIABLE = "CHECK_DOCTOR_ENV"


class LoggingError(Exception):
    """Exception raised for logging configuration errors."""

    pass


def get_config_path(environment: str | None = None) -> Path:
    """Get the path to a logging configuration file.

    Args:
        environment: Environment name (dev, test, prod); read from
            ``CHECK_DOCTOR_ENV`` when omitted

    Returns:
        Path to the environment-specific file if it exists, otherwise the
        default ``logging.yaml``

    Raises:
        LoggingError: If no configuration file is found

    """
    env = (environment or os.getenv(ENV_VARIABLE, "")).lower()
    if env == "development":
        env = "dev"
    elif env == "production":
        env = "prod"

    config_path = RESOURCES_DIR / "logging.yaml"
    if env:
        candidate = RESOURCES_DIR / f"logging-{env}.yaml"
        if candidate.exists():
            config_path = candidate

    if not config_path.exists():
        raise LoggingError(f"No logging configuration found. Expected at: {config_path}")
    return config_path


def load_config(config_path: Path) -> dict[str, Any]:
    """Load logging configuration from a YAML file.

    Raises:
        LoggingError: If configuration cannot be loaded or parsed

    """
    try:
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise LoggingError(f"Failed to parse YAML config {config_path}: {e}") from e
    except OSError as e:
        raise LoggingError(f"Failed to read config file {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise LoggingError(f"Invalid configuration format in {config_path}")
    return cast(dict[str, Any], config)


def _apply_level(config: dict[str, Any], level: str) -> None:
    """Override logger levels and lower handler levels to ``level``."""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise LoggingError(f"Invalid log level: {level}")
    level = level.upper()

    for logger_config in config.get("loggers", {}).values():
        logger_config["level"] = level
    if "root" in config:
        config["root"]["level"] = level

    for handler_config in config.get("handlers", {}).values():
        if isinstance(handler_config, dict) and "level" in handler_config:
            current = getattr(logging, cast(str, handler_config["level"]), logging.INFO)
            if numeric_level < current:
                handler_config["level"] = level


def setup_logging(
    config_path: Path | str | None = None,
    level: str | None = None,
    environment: str | None = None,
    force_basic: bool = False,
) -> None:
    """Configure logging using dictConfig.

    Falls back to basic console logging on stderr when the configuration
    cannot be applied.

    Args:
        config_path: Path to a logging configuration file
        level: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Environment for config selection (dev, test, prod)
        force_basic: Force basic console logging

    """
    if force_basic:
        _setup_basic_logging(level or "INFO")
        return

    try:
        if isinstance(config_path, str):
            config_path = Path(config_path)
        elif config_path is None:
            config_path = get_config_path(environment)

        config = load_config(config_path)
        if level:
            _apply_level(config, level)
        logging.config.dictConfig(config)
        logging.getLogger(__name__).debug("Logging configured from: %s", config_path.name)

    except (LoggingError, KeyError, ValueError, TypeError) as e:
        fallback_level = level or "INFO"
        _setup_basic_logging(fallback_level)
        logging.getLogger(__name__).warning(
            "Failed to configure logging from file (%s), using basic console logging at %s level",
            e,
            fallback_level,
        )


def _setup_basic_logging(level: str) -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
