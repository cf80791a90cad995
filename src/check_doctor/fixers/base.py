"""Fixer contract and fix result types."""

from __future__ import annotations

import abc
from typing import Annotated, Literal, Protocol, override

from pydantic import BaseModel, ConfigDict, Field

from check_doctor.errors import FixerContractViolation
from check_doctor.findings import Finding
from check_doctor.project import ProjectState

LOCATION_GONE = "location no longer present"


class Applied(BaseModel):
    """The fixer changed the project state to resolve the finding."""

    model_config = ConfigDict(frozen=True)

    outcome: Literal["applied"] = "applied"
    description: str


class Skipped(BaseModel):
    """The fixer declined to act (nothing to do, or ambiguous target)."""

    model_config = ConfigDict(frozen=True)

    outcome: Literal["skipped"] = "skipped"
    reason: str


class Failed(BaseModel):
    """The fixer tried and could not resolve the finding this iteration."""

    model_config = ConfigDict(frozen=True)

    outcome: Literal["failed"] = "failed"
    cause: str


FixResult = Annotated[Applied | Skipped | Failed, Field(discriminator="outcome")]


class Fixer(Protocol):
    """Protocol for fixers.

    A fixer resolves findings of one signature. Expected domain failures are
    returned as Skipped or Failed; a fixer raises only when the finding breaks
    its contract (for example a missing detail payload it depends on).

    Attributes:
        description: Human-readable description of the remediation.

    """

    description: str

    def apply(self, finding: Finding, state: ProjectState) -> FixResult:
        """Attempt to resolve the finding by mutating the project state."""
        ...


class BaseFixer(abc.ABC):
    """Base class for fixers that operate on one unit of the project state.

    Handles the shared part of the fixer contract: a finding whose unit has
    disappeared (for example because an earlier fixer in the same iteration
    deleted it) is skipped rather than treated as an error.
    """

    description: str = ""

    def apply(self, finding: Finding, state: ProjectState) -> FixResult:
        """Skip vanished locations, otherwise delegate to ``_fix``."""
        if finding.location.unit not in state:
            return Skipped(reason=LOCATION_GONE)
        return self._fix(finding, state)

    @abc.abstractmethod
    def _fix(self, finding: Finding, state: ProjectState) -> FixResult:
        """Resolve a finding whose unit is known to exist."""

    @staticmethod
    def require_anchor(finding: Finding) -> str:
        """Return the finding's anchor or raise a contract violation."""
        if not finding.location.anchor:
            raise FixerContractViolation(
                f"Finding '{finding.signature}' requires an anchor in its location"
            )
        return finding.location.anchor

    @staticmethod
    def require_detail(finding: Finding) -> str:
        """Return the finding's detail or raise a contract violation."""
        detail = finding.detail.strip()
        if not detail:
            raise FixerContractViolation(
                f"Finding '{finding.signature}' requires a detail payload"
            )
        return detail


class ManifestFixer(BaseFixer):
    """Base class for fixers that rewrite the manifest unit.

    Both the finding's unit and the configured manifest unit must exist.
    """

    def __init__(self, manifest_unit: str) -> None:
        """Initialise with the name of the manifest unit.

        Args:
            manifest_unit: Name of the unit holding the manifest

        """
        self._manifest_unit = manifest_unit

    @override
    def apply(self, finding: Finding, state: ProjectState) -> FixResult:
        if finding.location.unit not in state or self._manifest_unit not in state:
            return Skipped(reason=LOCATION_GONE)
        return self._fix(finding, state)
