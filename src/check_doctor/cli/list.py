"""CLI command implementations for listing fixers and exporters."""

from __future__ import annotations

import logging
from pathlib import Path

from check_doctor.cli.errors import cli_error_handler
from check_doctor.cli.formatting import OutputFormatter
from check_doctor.cli.infrastructure import build_catalog, initialise_exporters, resolve_config
from check_doctor.exporters import ExporterRegistry
from check_doctor.logging import setup_logging

logger = logging.getLogger(__name__)


def list_fixers_command(config_path: Path | None = None, log_level: str = "INFO") -> None:
    """CLI command implementation for listing catalog entries.

    Args:
        config_path: Configuration file (its disabled_fixers are honoured)
        log_level: Logging level

    """
    setup_logging(level=log_level)
    with cli_error_handler("ls-fixers", "Failed to list fixers"):
        config = resolve_config(None, config_path, "ls-fixers")
        catalog = build_catalog(config)
        logger.info("Found %d available fixers", len(catalog))
        OutputFormatter().format_fixer_list(catalog)


def list_exporters_command(log_level: str = "INFO") -> None:
    """CLI command implementation for listing exporters.

    Args:
        log_level: Logging level

    """
    setup_logging(level=log_level)
    with cli_error_handler("ls-exporters", "Failed to list exporters"):
        initialise_exporters()
        names = ExporterRegistry.list_exporters()
        logger.info("Found %d available exporters", len(names))
        OutputFormatter().format_exporter_list(names)
