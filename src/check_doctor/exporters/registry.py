"""Registry for exporters."""

from typing import TypedDict

from check_doctor.exporters.protocol import Exporter


class ExporterRegistryState(TypedDict):
    """State snapshot for ExporterRegistry.

    Used for test isolation - captures and restores registry state
    to prevent test pollution.
    """

    exporters: dict[str, Exporter]


class ExporterRegistry:
    """Registry for exporters."""

    _exporters: dict[str, Exporter] = {}

    @classmethod
    def register(cls, exporter: Exporter) -> None:
        """Register an exporter, replacing any exporter with the same name."""
        cls._exporters[exporter.name] = exporter

    @classmethod
    def get(cls, name: str) -> Exporter:
        """Get exporter by name.

        Raises:
            ValueError: If exporter not found.

        """
        if name not in cls._exporters:
            available = sorted(cls._exporters)
            raise ValueError(f"Unknown exporter '{name}'. Available: {available}")
        return cls._exporters[name]

    @classmethod
    def list_exporters(cls) -> list[str]:
        """List available exporter names in registration order."""
        return list(cls._exporters.keys())

    @classmethod
    def snapshot_state(cls) -> ExporterRegistryState:
        """Capture current registry state for later restoration."""
        return {"exporters": cls._exporters.copy()}

    @classmethod
    def restore_state(cls, state: ExporterRegistryState) -> None:
        """Restore registry state from a snapshot taken by snapshot_state()."""
        cls._exporters = state["exporters"].copy()
