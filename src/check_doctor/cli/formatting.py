"""Output formatting for check-doctor CLI commands."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from check_doctor.catalog import RuleCatalog
from check_doctor.config import DoctorConfig
from check_doctor.findings import Finding, Severity
from check_doctor.loop import IterationRecord
from check_doctor.report import RepairReport

logger = logging.getLogger(__name__)
console = Console()


class OutputFormatter:
    """Handles formatting CLI output for different commands."""

    # Status text constants
    STATUS_CONVERGED = "[green]Converged[/green]"
    STATUS_STALLED = "[yellow]Stalled[/yellow]"
    STATUS_ABORTED = "[red]Aborted[/red]"

    SEVERITY_STYLES = {
        Severity.BLOCKING: "red",
        Severity.ADVISORY: "yellow",
        Severity.INFORMATIONAL: "dim",
    }

    def _status_text(self, report: RepairReport) -> str:
        status = {
            "converged": self.STATUS_CONVERGED,
            "stalled": self.STATUS_STALLED,
            "aborted": self.STATUS_ABORTED,
        }[report.session.status]
        if report.session.abort_reason:
            status += f" ({report.session.abort_reason})"
        return status

    def _severity_text(self, severity: Severity) -> str:
        style = self.SEVERITY_STYLES[severity]
        return f"[{style}]{severity.value}[/{style}]"

    def show_startup_banner(
        self,
        project_dir: Path,
        config: DoctorConfig,
        dry_run: bool,
        log_level: str,
    ) -> None:
        """Show startup banner for the run command."""
        verifier = (
            " ".join(config.verifier.command) if config.verifier else "built-in checks"
        )
        startup_panel = Panel(
            f"[bold cyan]🩺 Starting repair session[/bold cyan]\n\n"
            f"[bold]Project:[/bold] {project_dir}\n"
            f"[bold]Verifier:[/bold] {escape(verifier)}\n"
            f"[bold]Max Iterations:[/bold] {config.max_iterations}\n"
            f"[bold]Dry Run:[/bold] {'yes' if dry_run else 'no'}\n"
            f"[bold]Log Level:[/bold] {log_level}",
            title="check-doctor",
            border_style="cyan",
        )
        console.print(startup_panel)

    def show_iteration(self, record: IterationRecord) -> None:
        """Print a one-line progress entry for a completed iteration."""
        applied = sum(1 for attempt in record.attempts if attempt.applied)
        console.print(
            f"[dim]Iteration {record.number}:[/dim] "
            f"{len(record.findings_before)} finding(s), "
            f"{applied}/{len(record.attempts)} fix(es) applied, "
            f"{record.mutations} mutation(s)"
        )

    def format_findings(self, findings: Sequence[Finding], title: str) -> None:
        """Print findings as a table, or a success panel when there are none."""
        if not findings:
            console.print(
                Panel("[green]✅ No findings[/green]", title=title, border_style="green")
            )
            return

        table = Table(title=title, show_header=True, header_style="bold magenta")
        table.add_column("Severity")
        table.add_column("Signature", style="cyan", no_wrap=True)
        table.add_column("Location", style="white")
        table.add_column("Detail", style="dim")
        for finding in findings:
            table.add_row(
                self._severity_text(finding.severity),
                finding.signature,
                escape(str(finding.location)),
                escape(finding.detail),
            )
        console.print(table)

    def format_report(self, report: RepairReport, verbose: bool = False) -> None:
        """Print the session outcome and the unresolved findings."""
        summary = report.summary
        console.print(
            Panel(
                f"[bold]Status:[/bold] {self._status_text(report)}\n"
                f"[bold]Iterations:[/bold] {report.session.iterations} "
                f"of {report.session.max_iterations}\n"
                f"[bold]Mutations:[/bold] {summary.mutations}\n"
                f"[bold]Remaining:[/bold] {summary.blocking} blocking, "
                f"{summary.advisory} advisory, {summary.informational} informational\n"
                f"[bold]Catalog Gaps:[/bold] {summary.catalog_gaps}\n"
                f"[bold]Duration:[/bold] {report.session.duration_seconds:.2f}s",
                title="📊 Repair Session Summary",
                border_style="green" if report.converged else "yellow",
            )
        )

        if report.unresolved:
            table = Table(
                title="Unresolved Findings", show_header=True, header_style="bold magenta"
            )
            table.add_column("Severity")
            table.add_column("Signature", style="cyan", no_wrap=True)
            table.add_column("Location", style="white")
            table.add_column("Reason", style="yellow")
            table.add_column("Note", style="dim")
            for entry in report.unresolved:
                reason = entry.reason
                if entry.failures:
                    reason += f" x{entry.failures}"
                table.add_row(
                    self._severity_text(entry.severity),
                    entry.signature,
                    escape(entry.location),
                    reason,
                    escape(entry.note),
                )
            console.print(table)

        if verbose:
            self._print_iteration_tree(report)

    def _print_iteration_tree(self, report: RepairReport) -> None:
        tree = Tree("[bold blue]🔄 Iterations[/bold blue]")
        for iteration in report.iterations:
            branch = tree.add(
                f"[cyan]Iteration {iteration.number}[/cyan] "
                f"[dim]{iteration.fingerprint[:12]}[/dim]"
            )
            for attempt in iteration.attempts:
                branch.add(
                    f"{attempt.outcome}: {attempt.signature} at "
                    f"{escape(attempt.location)} [dim]{escape(attempt.message)}[/dim]"
                )
            for gap in iteration.catalog_gaps:
                branch.add(f"[yellow]no fixer[/yellow]: {gap.signature} at {escape(gap.location)}")
        console.print(tree)

    def format_fixer_list(self, catalog: RuleCatalog) -> None:
        """Print the catalog entries."""
        if not len(catalog):
            console.print(
                Panel(
                    "[yellow]No fixers available. "
                    "Enable built-in fixers or install fixer plugins.[/yellow]",
                    title="⚠️  Warning",
                    border_style="yellow",
                )
            )
            logger.warning("No fixers registered in catalog")
            return

        table = Table(
            title="🔧 Available Fixers", show_header=True, header_style="bold magenta"
        )
        table.add_column("Signature", style="cyan", no_wrap=True)
        table.add_column("Description", style="white")
        table.add_column("Class", style="dim")
        table.add_column("Idempotent")
        for entry in catalog.entries():
            fixer_class = type(entry.fixer)
            table.add_row(
                entry.signature,
                getattr(entry.fixer, "description", "") or "No description available",
                f"{fixer_class.__module__}.{fixer_class.__name__}",
                "yes" if entry.idempotent else "no",
            )
        console.print(table)

    def format_exporter_list(self, names: Sequence[str]) -> None:
        """Print the registered exporter names."""
        table = Table(
            title="📤 Available Exporters", show_header=True, header_style="bold magenta"
        )
        table.add_column("Name", style="cyan", no_wrap=True)
        for name in names:
            table.add_row(name)
        console.print(table)

    def format_config_validation(self, config: DoctorConfig, path: Path) -> None:
        """Print a configuration validation success panel."""
        verifier = (
            " ".join(config.verifier.command) if config.verifier else "built-in checks"
        )
        disabled = ", ".join(config.disabled_fixers) or "none"
        console.print(
            Panel(
                f"[green]✅ Configuration is valid[/green]\n\n"
                f"[bold]File:[/bold] {path}\n"
                f"[bold]Max Iterations:[/bold] {config.max_iterations}\n"
                f"[bold]Manifest:[/bold] {config.manifest_unit}\n"
                f"[bold]Source Dirs:[/bold] {', '.join(config.source_dirs)}\n"
                f"[bold]Verifier:[/bold] {escape(verifier)}\n"
                f"[bold]Disabled Fixers:[/bold] {disabled}",
                title="📋 Configuration Validation",
                border_style="green",
            )
        )

    def show_written_units(self, names: Sequence[str], dry_run: bool) -> None:
        """Show which units were written back to disk."""
        if dry_run:
            console.print("\n[yellow]Dry run: no files were written[/yellow]")
        elif names:
            console.print(f"\n[green]✅ Updated {len(names)} file(s):[/green]")
            for name in names:
                console.print(f"  {escape(name)}")
        else:
            console.print("\n[dim]No files changed[/dim]")

    def show_file_save_success(self, file_path: Path) -> None:
        """Show successful report save message."""
        console.print(f"\n[green]✅ Report saved to: {file_path}[/green]")
