"""JSON exporter for repair reports."""

from check_doctor.report import RepairReport


class JsonExporter:
    """Machine-readable exporter producing the RepairReport document."""

    def __init__(self, indent: int | None = 2) -> None:
        """Initialise with the JSON indentation (None for compact output)."""
        self._indent = indent

    @property
    def name(self) -> str:
        """Return exporter identifier."""
        return "json"

    @property
    def file_extension(self) -> str:
        """Return the file extension."""
        return ".json"

    def export(self, report: RepairReport) -> str:
        """Serialise the report to JSON."""
        return report.model_dump_json(indent=self._indent)
