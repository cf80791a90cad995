"""Plain-text exporter for repair reports."""

from check_doctor.report import RepairReport, render_text


class TextExporter:
    """Human-readable exporter."""

    @property
    def name(self) -> str:
        """Return exporter identifier."""
        return "text"

    @property
    def file_extension(self) -> str:
        """Return the file extension."""
        return ".txt"

    def export(self, report: RepairReport) -> str:
        """Render the report as plain text."""
        return render_text(report)
