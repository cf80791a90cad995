"""Main entry point for check-doctor.

This module provides the command-line interface for check-doctor,
including commands for:
- Running repair sessions against a project directory
- Running a single verification pass
- Listing available fixers and exporters
- Validating configuration files
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from check_doctor.cli import (
    check_project_command,
    execute_repair_command,
    list_exporters_command,
    list_fixers_command,
    validate_config_command,
)

# Load environment variables from .env in the working directory
load_dotenv()

app = typer.Typer(name="check-doctor")

ProjectDir = Annotated[
    Path,
    typer.Argument(
        help="Path to the project directory",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Configuration file (defaults to .check-doctor.yaml in the project directory)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
]

LogLevelOption = Annotated[
    str,
    typer.Option(
        "--log-level",
        help="Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        case_sensitive=False,
    ),
]

VerifierOption = Annotated[
    str | None,
    typer.Option(
        "--verifier-cmd",
        help="External checker command printing JSON findings (overrides configuration)",
        rich_help_panel="Session",
    ),
]


@app.command()
def run(  # noqa: PLR0913 - CLI entry point with many options
    project_dir: ProjectDir,
    config: ConfigOption = None,
    max_iterations: Annotated[
        int | None,
        typer.Option(
            "--max-iterations",
            min=1,
            help="Iteration ceiling (overrides configuration)",
            rich_help_panel="Session",
        ),
    ] = None,
    verifier_cmd: VerifierOption = None,
    exporter: Annotated[
        str | None,
        typer.Option(
            "--exporter",
            help="Export the report with this exporter. Available: json, text",
            rich_help_panel="Output",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the exported report to this file (json unless --exporter is given)",
            file_okay=True,
            dir_okay=False,
            writable=True,
            rich_help_panel="Output",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Repair in memory without writing files back",
            rich_help_panel="Session",
        ),
    ] = False,
    strict: Annotated[
        bool,
        typer.Option(
            "--strict/--no-strict",
            help="Exit with code 2 when the session does not converge",
            rich_help_panel="Session",
        ),
    ] = True,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output (sets log level to DEBUG)",
        ),
    ] = False,
    log_level: LogLevelOption = "INFO",
) -> None:
    """Repair a project until it converges, stalls or hits the iteration ceiling.

    Example:
        check-doctor run ./mypackage --dry-run -v
        check-doctor run ./mypackage --exporter json --output report.json

    """
    execute_repair_command(
        project_dir,
        config_path=config,
        max_iterations=max_iterations,
        verifier_cmd=verifier_cmd,
        exporter_name=exporter,
        output=output,
        dry_run=dry_run,
        strict=strict,
        verbose=verbose,
        log_level=log_level,
    )


@app.command()
def check(
    project_dir: ProjectDir,
    config: ConfigOption = None,
    verifier_cmd: VerifierOption = None,
    log_level: LogLevelOption = "INFO",
) -> None:
    """Run a single verification pass and list the findings."""
    check_project_command(project_dir, config, verifier_cmd, log_level)


@app.command(name="ls-fixers")
def list_available_fixers(
    config: ConfigOption = None,
    log_level: LogLevelOption = "INFO",
) -> None:
    """List available (built-in & registered) fixers."""
    list_fixers_command(config, log_level)


@app.command(name="ls-exporters")
def list_available_exporters(log_level: LogLevelOption = "INFO") -> None:
    """List available exporters."""
    list_exporters_command(log_level)


@app.command(name="validate-config")
def validate_config(
    config: Annotated[
        Path,
        typer.Argument(
            help="Path to the configuration YAML file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    log_level: LogLevelOption = "INFO",
) -> None:
    """Validate a configuration file."""
    validate_config_command(config, log_level)


if __name__ == "__main__":
    app()
