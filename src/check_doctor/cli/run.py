"""CLI command implementations for repair sessions and single checks."""

from __future__ import annotations

import logging
import shutil
import signal
import tempfile
import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import typer

from check_doctor.cli.errors import CLIError, cli_error_handler
from check_doctor.cli.formatting import OutputFormatter
from check_doctor.cli.infrastructure import (
    build_catalog,
    build_verifier,
    initialise_exporters,
    resolve_config,
)
from check_doctor.config import DoctorConfig
from check_doctor.exporters import Exporter, ExporterRegistry
from check_doctor.findings import count_blocking
from check_doctor.logging import setup_logging
from check_doctor.loop import CancellationToken, RepairLoop
from check_doctor.project import ProjectState
from check_doctor.project_io import load_project, write_project
from check_doctor.report import RepairReport, build_report

logger = logging.getLogger(__name__)

# Exit code for a session or check that leaves blocking/advisory findings.
EXIT_UNRESOLVED = 2


@contextmanager
def _verification_root(
    project_dir: Path, config: DoctorConfig, dry_run: bool
) -> Generator[Path]:
    """Yield the directory an external checker runs in.

    A dry run with an external checker works on a temporary copy so the
    project on disk is never touched.
    """
    if not dry_run or config.verifier is None:
        yield project_dir
        return
    with tempfile.TemporaryDirectory(prefix="check-doctor-") as tmp:
        shutil.copytree(project_dir, tmp, dirs_exist_ok=True)
        logger.debug("Dry run: verifying in temporary copy %s", tmp)
        yield Path(tmp)


@contextmanager
def _cancel_on_interrupt(token: CancellationToken) -> Generator[None]:
    """Turn Ctrl-C into a cooperative cancellation of the session."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handle(signum: int, frame: object) -> None:
        logger.warning("Interrupt received, stopping after the current iteration")
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handle)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _changed_units(initial: dict[str, str], state: ProjectState) -> list[str]:
    current = state.snapshot()
    changed = {name for name, content in current.items() if initial.get(name) != content}
    changed |= set(initial) - set(current)
    return sorted(changed)


def _get_exporter(name: str) -> Exporter:
    try:
        return ExporterRegistry.get(name)
    except ValueError as e:
        raise CLIError(str(e), command="run", original_error=e) from e


def _export_report(report: RepairReport, exporter: Exporter, output: Path | None) -> None:
    """Write the exported report to a file, or to stdout when no file is given.

    Raises:
        CLIError: If the file cannot be written

    """
    document = exporter.export(report)
    if output is None:
        typer.echo(document, nl=not document.endswith("\n"))
        return
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(document, encoding="utf-8")
    except OSError as e:
        raise CLIError(
            f"Failed to save report to {output}: {e}", command="run", original_error=e
        ) from e
    logger.info("Report saved to %s", output)


def execute_repair_command(  # noqa: PLR0913 - Matches CLI entry point signature
    project_dir: Path,
    config_path: Path | None = None,
    max_iterations: int | None = None,
    verifier_cmd: str | None = None,
    exporter_name: str | None = None,
    output: Path | None = None,
    dry_run: bool = False,
    strict: bool = True,
    verbose: bool = False,
    log_level: str = "INFO",
) -> None:
    """CLI command implementation for running a repair session.

    Args:
        project_dir: Project directory to repair
        config_path: Explicit configuration file
        max_iterations: Override for the iteration ceiling
        verifier_cmd: Override for the external checker command
        exporter_name: Exporter used for the report (json when only --output is given)
        output: File the exported report is written to
        dry_run: Repair in memory without writing files back
        strict: Exit with code 2 when the session does not converge
        verbose: Enable verbose output
        log_level: Logging level

    """
    effective_log_level = "DEBUG" if verbose else log_level
    setup_logging(level=effective_log_level)
    formatter = OutputFormatter()

    with cli_error_handler("run", "Repair failed"):
        initialise_exporters()
        config = resolve_config(
            project_dir,
            config_path,
            "run",
            max_iterations=max_iterations,
            verifier_cmd=verifier_cmd,
        )
        if exporter_name is None and output is not None:
            exporter_name = "json"
        exporter = _get_exporter(exporter_name) if exporter_name else None
        formatter.show_startup_banner(project_dir, config, dry_run, effective_log_level)

        state = load_project(project_dir, config.exclude_patterns)
        initial = state.snapshot()
        catalog = build_catalog(config)
        token = CancellationToken()
        with _verification_root(project_dir, config, dry_run) as root:
            loop = RepairLoop(catalog, build_verifier(config, root), config.max_iterations)
            with _cancel_on_interrupt(token):
                session = loop.run(state, token, formatter.show_iteration)

        if not dry_run:
            write_project(state, project_dir)
        changed = _changed_units(initial, state)

        report = build_report(session)
        formatter.format_report(report, verbose)
        formatter.show_written_units(changed, dry_run)
        if exporter is not None:
            _export_report(report, exporter, output)
            if output is not None:
                formatter.show_file_save_success(output)

    if strict and not report.converged:
        raise typer.Exit(EXIT_UNRESOLVED)


def check_project_command(
    project_dir: Path,
    config_path: Path | None = None,
    verifier_cmd: str | None = None,
    log_level: str = "INFO",
) -> None:
    """CLI command implementation for a single verification pass.

    Args:
        project_dir: Project directory to check
        config_path: Explicit configuration file
        verifier_cmd: Override for the external checker command
        log_level: Logging level

    """
    setup_logging(level=log_level)

    with cli_error_handler("check", "Check failed"):
        config = resolve_config(project_dir, config_path, "check", verifier_cmd=verifier_cmd)
        state = load_project(project_dir, config.exclude_patterns)
        catalog = build_catalog(config)
        findings = catalog.sort(build_verifier(config, project_dir).verify(state))
        OutputFormatter().format_findings(findings, f"🔍 Findings for {state.name}")
        unresolved = count_blocking(findings)
        logger.info("%d finding(s), %d blocking or advisory", len(findings), unresolved)

    if unresolved:
        raise typer.Exit(EXIT_UNRESOLVED)
