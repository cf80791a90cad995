"""Workspace-level pytest configuration and fixtures."""

import pytest

from check_doctor.exporters import ExporterRegistry


@pytest.fixture(autouse=True, scope="function")
def isolate_exporter_registry():
    """Automatically preserve and restore ExporterRegistry state for each test.

    ExporterRegistry holds class-level mutable state; tests that register
    exporters would otherwise leak them into later tests.
    """
    saved_state = ExporterRegistry.snapshot_state()

    yield

    ExporterRegistry.restore_state(saved_state)
