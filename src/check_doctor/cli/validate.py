"""CLI command implementation for configuration validation."""

from __future__ import annotations

import logging
from pathlib import Path

from check_doctor.cli.errors import cli_error_handler
from check_doctor.cli.formatting import OutputFormatter
from check_doctor.config import load_config
from check_doctor.logging import setup_logging

logger = logging.getLogger(__name__)


def validate_config_command(config_path: Path, log_level: str = "INFO") -> None:
    """CLI command implementation for validating a configuration file.

    Args:
        config_path: Path to the configuration YAML file
        log_level: Logging level

    """
    setup_logging(level=log_level)

    with cli_error_handler("validate-config", "Configuration validation failed"):
        config = load_config(config_path)
        OutputFormatter().format_config_validation(config, config_path)
        logger.info("Configuration %s is valid", config_path)
