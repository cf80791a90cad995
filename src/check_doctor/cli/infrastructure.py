"""Shared CLI infrastructure setup."""

from __future__ import annotations

import logging
from pathlib import Path

from check_doctor.catalog import RuleCatalog, build_default_catalog
from check_doctor.cli.errors import CLIError
from check_doctor.config import DoctorConfig, VerifierConfig, load_config
from check_doctor.exporters import ExporterRegistry, JsonExporter, TextExporter
from check_doctor.verifiers import BuiltinVerifier, CommandVerifier, Verifier

logger = logging.getLogger(__name__)


def initialise_exporters() -> None:
    """Register the built-in exporters."""
    ExporterRegistry.register(JsonExporter())
    ExporterRegistry.register(TextExporter())
    logger.debug("Registered JsonExporter and TextExporter")


def resolve_config(
    project_dir: Path | None,
    config_path: Path | None,
    command: str,
    *,
    max_iterations: int | None = None,
    verifier_cmd: str | None = None,
) -> DoctorConfig:
    """Load configuration and apply command-line overrides.

    Raises:
        CLIError: If the configuration cannot be loaded or an override is invalid

    """
    try:
        config = load_config(config_path, root=project_dir)
        updates: dict[str, object] = {}
        if max_iterations is not None:
            updates["max_iterations"] = max_iterations
        if verifier_cmd is not None:
            updates["verifier"] = VerifierConfig.from_properties({"command": verifier_cmd})
        if updates:
            config = DoctorConfig.from_properties(config.model_dump() | updates)
    except Exception as e:
        raise CLIError(f"Invalid configuration: {e}", command=command, original_error=e) from e
    return config


def build_catalog(config: DoctorConfig) -> RuleCatalog:
    """Build the catalog of built-in and entry-point fixers."""
    catalog = build_default_catalog(config)
    catalog.discover_from_entry_points()
    logger.debug("Catalog ready with %d fixer(s)", len(catalog))
    return catalog


def build_verifier(config: DoctorConfig, root: Path) -> Verifier:
    """Return the configured verifier.

    Args:
        config: Session configuration
        root: Directory the external checker runs in

    """
    if config.verifier is None:
        return BuiltinVerifier(config)
    logger.info("Using external verifier: %s", " ".join(config.verifier.command))
    return CommandVerifier(config.verifier.command, root, timeout=config.verifier.timeout)
