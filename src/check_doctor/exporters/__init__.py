"""Report exporters."""

from check_doctor.exporters.json_exporter import JsonExporter
from check_doctor.exporters.protocol import Exporter
from check_doctor.exporters.registry import ExporterRegistry, ExporterRegistryState
from check_doctor.exporters.text_exporter import TextExporter

__all__ = [
    "Exporter",
    "ExporterRegistry",
    "ExporterRegistryState",
    "JsonExporter",
    "TextExporter",
]
