"""Types for verifier findings.

A finding is an immutable description of one detected problem. Verifiers
produce a fresh list of findings on every pass; the repair loop never mutates
a finding it has received.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(StrEnum):
    """Ordered finding severity.

    BLOCKING and ADVISORY findings must reach zero for a session to converge.
    INFORMATIONAL findings are surfaced for human review only.
    """

    BLOCKING = "blocking"
    ADVISORY = "advisory"
    INFORMATIONAL = "informational"

    @property
    def rank(self) -> int:
        """Return the priority rank (0 is applied first)."""
        return _SEVERITY_RANKS[self]

    @property
    def blocks_convergence(self) -> bool:
        """Whether findings of this severity prevent convergence."""
        return self is not Severity.INFORMATIONAL

    @classmethod
    def from_label(cls, label: str) -> Severity:
        """Resolve a severity from its name or a checker label.

        Accepts the enum values as well as the conventional checker labels
        "error", "warning" and "note" (case-insensitive).

        Args:
            label: Severity label to resolve

        Returns:
            The matching Severity

        Raises:
            ValueError: If the label is not recognised

        """
        key = label.strip().lower()
        if key in _SEVERITY_ALIASES:
            return _SEVERITY_ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            allowed = sorted({*_SEVERITY_ALIASES, *(s.value for s in cls)})
            raise ValueError(
                f"severity must be one of {allowed}, got: {label}"
            ) from None


_SEVERITY_RANKS = {
    Severity.BLOCKING: 0,
    Severity.ADVISORY: 1,
    Severity.INFORMATIONAL: 2,
}

_SEVERITY_ALIASES = {
    "error": Severity.BLOCKING,
    "warning": Severity.ADVISORY,
    "note": Severity.INFORMATIONAL,
}


class Location(BaseModel):
    """Reference into the project state: a unit plus an optional sub-location."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    unit: str = Field(min_length=1, description="Name of the unit in the project state")
    anchor: str | None = Field(
        default=None,
        description="Sub-location within the unit (function, field, line marker)",
    )

    @classmethod
    def parse(cls, value: str) -> Location:
        """Parse the ``unit#anchor`` display form."""
        unit, sep, anchor = value.partition("#")
        return cls(unit=unit, anchor=anchor if sep and anchor else None)

    def __str__(self) -> str:
        """Return the ``unit#anchor`` display form."""
        if self.anchor:
            return f"{self.unit}#{self.anchor}"
        return self.unit


class Finding(BaseModel):
    """A single problem reported by a verifier."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    signature: str = Field(
        min_length=1, description="Stable identifier of the problem class"
    )
    severity: Severity = Field(description="Finding severity")
    location: Location = Field(description="Where the problem was found")
    detail: str = Field(
        default="",
        description="Opaque diagnostic payload consumed by the matching fixer",
    )

    @field_validator("severity", mode="before")
    @classmethod
    def coerce_severity_label(cls, v: Any) -> Any:  # noqa: ANN401
        """Accept checker labels (error, warning, note) for severity."""
        if isinstance(v, str):
            return Severity.from_label(v)
        return v

    @field_validator("location", mode="before")
    @classmethod
    def coerce_location_string(cls, v: Any) -> Any:  # noqa: ANN401
        """Accept the ``unit#anchor`` string form for location."""
        if isinstance(v, str):
            return Location.parse(v)
        return v

    @property
    def blocks_convergence(self) -> bool:
        """Whether this finding prevents convergence."""
        return self.severity.blocks_convergence

    def __str__(self) -> str:
        """Return a one-line description of the finding."""
        text = f"[{self.severity.value}] {self.signature} at {self.location}"
        if self.detail:
            text += f": {self.detail}"
        return text


def signature_multiset(findings: Iterable[Finding]) -> Counter[str]:
    """Count findings per signature."""
    return Counter(finding.signature for finding in findings)


def count_blocking(findings: Iterable[Finding]) -> int:
    """Count BLOCKING and ADVISORY findings."""
    return sum(1 for finding in findings if finding.blocks_convergence)
