"""Protocol for report exporters."""

from typing import Protocol

from check_doctor.report import RepairReport


class Exporter(Protocol):
    """Protocol for report exporters.

    Exporters turn a finished RepairReport into a document. Each exporter is
    registered once under its name and selected from the CLI with
    ``--exporter``.
    """

    @property
    def name(self) -> str:
        """Exporter identifier (e.g., 'json', 'text')."""
        ...

    @property
    def file_extension(self) -> str:
        """Suggested extension for files written by this exporter."""
        ...

    def export(self, report: RepairReport) -> str:
        """Export a report.

        Args:
            report: Report of a finished repair session

        Returns:
            The exported document

        """
        ...
