"""Fixer that excludes stray files from the package build."""

from __future__ import annotations

import re
from typing import override

from check_doctor.findings import Finding
from check_doctor.fixers.base import Applied, BaseFixer, FixResult, Skipped
from check_doctor.project import ProjectState


def ignore_pattern(unit: str) -> str:
    """Return the anchored regular expression that matches exactly ``unit``."""
    return f"^{re.escape(unit)}$"


def is_ignored(unit: str, ignore_text: str) -> bool:
    """Whether any pattern line of the build-ignore unit matches ``unit``."""
    for line in ignore_text.splitlines():
        pattern = line.strip()
        if not pattern or pattern.startswith("#"):
            continue
        try:
            if re.search(pattern, unit):
                return True
        except re.error:
            continue
    return False


class BuildIgnoreFixer(BaseFixer):
    """Add an anchored pattern for the finding's unit to the build-ignore unit."""

    description = "Exclude the file from the package build via the build-ignore unit"

    def __init__(self, ignore_unit: str) -> None:
        """Initialise with the name of the build-ignore unit."""
        self._ignore_unit = ignore_unit

    @override
    def _fix(self, finding: Finding, state: ProjectState) -> FixResult:
        unit = finding.location.unit
        if unit == self._ignore_unit:
            return Skipped(reason=f"{unit} cannot ignore itself")

        current = state.read(self._ignore_unit) if self._ignore_unit in state else ""
        if is_ignored(unit, current):
            return Skipped(reason=f"{unit} is already excluded from the build")

        prefix = current if not current or current.endswith("\n") else current + "\n"
        state.write(self._ignore_unit, f"{prefix}{ignore_pattern(unit)}\n")
        return Applied(description=f"excluded {unit} via {self._ignore_unit}")
