"""Terminal report of a repair session.

The report is the stable, serialisable view of a RepairSession: the ordered
iterations, the terminal status and every finding left unresolved together
with the reason it was not resolved.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from check_doctor.findings import Finding, Severity
from check_doctor.fixers.base import Applied, Failed, Skipped
from check_doctor.loop import FixAttempt, IterationRecord, RepairSession

REPORT_FORMAT_VERSION = "1.0.0"

UnresolvedReason = Literal[
    "catalog_gap", "skipped", "failed", "informational", "unstable", "not_attempted"
]


class FindingEntry(BaseModel):
    """A finding in report form."""

    signature: str = Field(..., description="Finding signature")
    severity: Severity = Field(..., description="Finding severity")
    location: str = Field(..., description="Location in unit#anchor form")
    detail: str = Field("", description="Diagnostic payload")

    @classmethod
    def from_finding(cls, finding: Finding) -> FindingEntry:
        """Build an entry from a finding."""
        return cls(
            signature=finding.signature,
            severity=finding.severity,
            location=str(finding.location),
            detail=finding.detail,
        )


class AttemptEntry(BaseModel):
    """A fix attempt in report form."""

    signature: str = Field(..., description="Signature of the finding")
    location: str = Field(..., description="Location of the finding")
    outcome: Literal["applied", "skipped", "failed"] = Field(
        ..., description="Fixer outcome"
    )
    message: str = Field(..., description="Description, skip reason or failure cause")
    mutations: int = Field(..., ge=0, description="Mutations kept")


class IterationEntry(BaseModel):
    """One iteration of the session."""

    number: int = Field(..., ge=1, description="Iteration number, starting at 1")
    findings_before: list[FindingEntry] = Field(default_factory=list)
    attempts: list[AttemptEntry] = Field(default_factory=list)
    catalog_gaps: list[FindingEntry] = Field(default_factory=list)
    findings_after: list[FindingEntry] | None = Field(
        None, description="Findings reported after the fixes"
    )
    fingerprint: str = Field(..., description="Project state fingerprint after the iteration")


class UnresolvedEntry(FindingEntry):
    """A remaining finding and why it was not resolved."""

    reason: UnresolvedReason = Field(..., description="Why the finding remains")
    failures: int = Field(0, ge=0, description="Number of failed fix attempts")
    note: str = Field("", description="Last skip reason or failure cause")


class SessionInfo(BaseModel):
    """Information about the repair session."""

    project: str = Field(..., description="Project name")
    status: Literal["converged", "stalled", "aborted"] = Field(
        ..., description="Terminal status"
    )
    abort_reason: Literal["ceiling", "cancelled"] | None = Field(
        None, description="Why the session was aborted"
    )
    iterations: int = Field(..., ge=0, description="Iterations run")
    max_iterations: int = Field(..., ge=1, description="Iteration ceiling")
    started_at: str = Field(..., description="ISO8601 timestamp with timezone")
    duration_seconds: float = Field(..., ge=0, description="Total session time")
    initial_fingerprint: str = Field(..., description="Fingerprint before the session")
    final_fingerprint: str = Field(..., description="Fingerprint after the session")


class SummaryInfo(BaseModel):
    """Summary statistics for the session."""

    remaining: int = Field(..., ge=0, description="Findings left")
    blocking: int = Field(..., ge=0, description="BLOCKING findings left")
    advisory: int = Field(..., ge=0, description="ADVISORY findings left")
    informational: int = Field(..., ge=0, description="INFORMATIONAL findings left")
    catalog_gaps: int = Field(..., ge=0, description="Findings without a fixer")
    mutations: int = Field(..., ge=0, description="Total mutations kept")


class RepairReport(BaseModel):
    """Report format shared by all exporters."""

    format_version: Literal["1.0.0"] = Field(..., description="Report format version")
    session: SessionInfo = Field(..., description="Session information")
    summary: SummaryInfo = Field(..., description="Summary statistics")
    iterations: list[IterationEntry] = Field(default_factory=list)
    unresolved: list[UnresolvedEntry] = Field(default_factory=list)

    @property
    def converged(self) -> bool:
        """Whether the session converged."""
        return self.session.status == "converged"


def _attempt_entry(attempt: FixAttempt) -> AttemptEntry:
    result = attempt.result
    if isinstance(result, Applied):
        message = result.description
    elif isinstance(result, Skipped):
        message = result.reason
    else:
        message = result.cause
    return AttemptEntry(
        signature=attempt.finding.signature,
        location=str(attempt.finding.location),
        outcome=result.outcome,
        message=message,
        mutations=attempt.mutations,
    )


def _iteration_entry(record: IterationRecord) -> IterationEntry:
    return IterationEntry(
        number=record.number,
        findings_before=[FindingEntry.from_finding(f) for f in record.findings_before],
        attempts=[_attempt_entry(a) for a in record.attempts],
        catalog_gaps=[FindingEntry.from_finding(f) for f in record.catalog_gaps],
        findings_after=(
            [FindingEntry.from_finding(f) for f in record.findings_after]
            if record.findings_after is not None
            else None
        ),
        fingerprint=record.fingerprint,
    )


def unresolved_reason(
    session: RepairSession, finding: Finding
) -> tuple[UnresolvedReason, int, str]:
    """Explain why a remaining finding was not resolved.

    The reason is decided by the catalog first, then the severity, then the
    most recent attempt at a finding with the same signature and location.

    Returns:
        ``(reason, failure count, note)``

    """
    if finding in session.catalog_gaps:
        return "catalog_gap", 0, "no fixer registered for this signature"
    if finding.severity is Severity.INFORMATIONAL:
        return "informational", 0, "left for human review"

    attempts = session.attempts_for(finding)
    if not attempts:
        return "not_attempted", 0, ""

    failures = sum(1 for a in attempts if isinstance(a.result, Failed))
    last = attempts[-1].result
    if isinstance(last, Failed):
        return "failed", failures, last.cause
    if isinstance(last, Skipped):
        return "skipped", failures, last.reason
    return "unstable", failures, "fix applied but the finding persists"


def _summary(session: RepairSession) -> SummaryInfo:
    remaining = session.remaining
    return SummaryInfo(
        remaining=len(remaining),
        blocking=sum(1 for f in remaining if f.severity is Severity.BLOCKING),
        advisory=sum(1 for f in remaining if f.severity is Severity.ADVISORY),
        informational=sum(1 for f in remaining if f.severity is Severity.INFORMATIONAL),
        catalog_gaps=len(session.catalog_gaps),
        mutations=session.mutation_count,
    )


def build_report(session: RepairSession) -> RepairReport:
    """Build the report for a finished session.

    Args:
        session: Finished repair session

    Returns:
        Validated RepairReport

    Raises:
        ValueError: If the session has not finished

    """
    if session.status is None or session.finished_at is None:
        raise ValueError("Cannot report on a session that has not finished")

    unresolved = []
    for finding in session.remaining:
        reason, failures, note = unresolved_reason(session, finding)
        unresolved.append(
            UnresolvedEntry(
                signature=finding.signature,
                severity=finding.severity,
                location=str(finding.location),
                detail=finding.detail,
                reason=reason,
                failures=failures,
                note=note,
            )
        )

    duration = (session.finished_at - session.started_at).total_seconds()
    return RepairReport(
        format_version=REPORT_FORMAT_VERSION,
        session=SessionInfo(
            project=session.project,
            status=session.status.value,
            abort_reason=session.abort_reason.value if session.abort_reason else None,
            iterations=session.iterations,
            max_iterations=session.max_iterations,
            started_at=session.started_at.isoformat(),
            duration_seconds=max(duration, 0.0),
            initial_fingerprint=session.initial_fingerprint,
            final_fingerprint=session.final_fingerprint,
        ),
        summary=_summary(session),
        iterations=[_iteration_entry(record) for record in session.history],
        unresolved=unresolved,
    )


def render_text(report: RepairReport) -> str:
    """Render a report as plain text."""
    info = report.session
    status = info.status.upper()
    if info.abort_reason:
        status += f" ({info.abort_reason})"
    lines = [
        f"Project: {info.project}",
        f"Status: {status}",
        f"Iterations: {info.iterations} of {info.max_iterations}",
        f"Mutations: {report.summary.mutations}",
        f"Fingerprint: {info.final_fingerprint[:12]}",
    ]

    for iteration in report.iterations:
        lines.append("")
        lines.append(
            f"Iteration {iteration.number}: "
            f"{len(iteration.findings_before)} finding(s), "
            f"{len(iteration.attempts)} attempt(s)"
        )
        for attempt in iteration.attempts:
            lines.append(
                f"  {attempt.outcome:<8} {attempt.signature} at {attempt.location}: "
                f"{attempt.message}"
            )
        for gap in iteration.catalog_gaps:
            lines.append(f"  no fixer {gap.signature} at {gap.location}")

    lines.append("")
    if not report.unresolved:
        lines.append("Unresolved: none")
    else:
        lines.append(f"Unresolved: {len(report.unresolved)}")
        for entry in report.unresolved:
            reason = entry.reason
            if entry.failures:
                reason += f" x{entry.failures}"
            text = f"  [{entry.severity.value}] {entry.signature} at {entry.location} ({reason})"
            if entry.note:
                text += f": {entry.note}"
            lines.append(text)
    return "\n".join(lines) + "\n"
