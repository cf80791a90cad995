"""Repair loop driving a project state toward zero blocking findings.

Each iteration verifies the project, classifies the findings against the
rule catalog and applies the matched fixers in priority order. The loop ends
when no BLOCKING or ADVISORY findings remain (CONVERGED), when an iteration
reports exactly the same signatures as the previous one (STALLED), or when
the iteration ceiling is reached or the session is cancelled (ABORTED).

Both the ceiling and cancellation end with a closing verification of the
applied state, which does not count as an iteration. A ceiling whose closing
verification finds nothing blocking ends CONVERGED.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from check_doctor.catalog import CatalogEntry, RuleCatalog
from check_doctor.findings import Finding, count_blocking, signature_multiset
from check_doctor.fixers.base import Applied, Failed, FixResult, Skipped
from check_doctor.project import ProjectState
from check_doctor.verifiers import Verifier

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 25


class SessionStatus(StrEnum):
    """Terminal status of a repair session."""

    CONVERGED = "converged"
    STALLED = "stalled"
    ABORTED = "aborted"


class AbortReason(StrEnum):
    """Why an ABORTED session stopped."""

    CEILING = "ceiling"
    CANCELLED = "cancelled"


class CancellationToken:
    """Thread-safe cooperative cancellation flag.

    The repair loop checks the token at iteration boundaries only, so a fixer
    is never interrupted halfway through an invocation.
    """

    def __init__(self) -> None:
        """Initialise an unset token."""
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()


class FixAttempt(BaseModel):
    """One fixer application within an iteration."""

    finding: Finding
    fixer: str
    """Signature of the catalog entry that was applied."""

    result: FixResult
    mutations: int = 0
    """Mutations kept after the attempt (zero when rolled back)."""

    raised: bool = False
    """Whether the fixer raised instead of returning a result."""

    @property
    def applied(self) -> bool:
        """Whether the fixer reported success."""
        return isinstance(self.result, Applied)


class IterationRecord(BaseModel):
    """What happened in one iteration of the loop."""

    number: int
    findings_before: list[Finding]
    """Findings reported by the verifier at the start of the iteration."""

    attempts: list[FixAttempt] = Field(default_factory=list)
    catalog_gaps: list[Finding] = Field(default_factory=list)
    findings_after: list[Finding] | None = None
    """Findings reported after the fixes; set by the next verification."""

    fingerprint: str = ""
    """Project state fingerprint at the end of the iteration."""

    @property
    def mutations(self) -> int:
        """Return the number of mutations kept in this iteration."""
        return sum(attempt.mutations for attempt in self.attempts)


class RepairSession(BaseModel):
    """Audit history and outcome of one repair request."""

    project: str
    max_iterations: int
    history: list[IterationRecord] = Field(default_factory=list)
    status: SessionStatus | None = None
    abort_reason: AbortReason | None = None
    remaining: list[Finding] = Field(default_factory=list)
    """Findings left when the session ended."""

    catalog_gaps: list[Finding] = Field(default_factory=list)
    """Remaining findings whose signature has no registered fixer."""

    mutation_count: int = 0
    initial_fingerprint: str = ""
    final_fingerprint: str = ""
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None

    @property
    def iterations(self) -> int:
        """Return the number of iterations run."""
        return len(self.history)

    @property
    def converged(self) -> bool:
        """Whether the session ended CONVERGED."""
        return self.status is SessionStatus.CONVERGED

    def attempts_for(self, finding: Finding) -> list[FixAttempt]:
        """Return every attempt at a finding with the same signature and location."""
        return [
            attempt
            for record in self.history
            for attempt in record.attempts
            if attempt.finding.signature == finding.signature
            and attempt.finding.location == finding.location
        ]

    def mark_finished(
        self,
        status: SessionStatus,
        remaining: list[Finding],
        state: ProjectState,
        *,
        gaps: list[Finding] | None = None,
        abort_reason: AbortReason | None = None,
    ) -> None:
        """Record the terminal status.

        Args:
            status: Terminal status
            remaining: Findings left unresolved
            state: The repaired project state
            gaps: Remaining findings with no registered fixer
            abort_reason: Required when status is ABORTED

        """
        self.status = status
        self.abort_reason = abort_reason
        self.remaining = remaining
        self.catalog_gaps = gaps or []
        self.final_fingerprint = state.fingerprint()
        self.mutation_count = sum(record.mutations for record in self.history)
        self.finished_at = datetime.now(UTC)


IterationCallback = Callable[[IterationRecord], None]


class RepairLoop:
    """Verify, classify and fix until the project converges or stops making progress."""

    def __init__(
        self,
        catalog: RuleCatalog,
        verifier: Verifier,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        """Initialise the loop.

        Args:
            catalog: Rule catalog mapping signatures to fixers
            verifier: Verifier producing findings for a project state
            max_iterations: Iteration ceiling

        Raises:
            ValueError: If max_iterations is less than 1

        """
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
        self._catalog = catalog
        self._verifier = verifier
        self._max_iterations = max_iterations

    def run(
        self,
        state: ProjectState,
        token: CancellationToken | None = None,
        on_iteration: IterationCallback | None = None,
    ) -> RepairSession:
        """Run a repair session against a project state.

        The project state is mutated in place; the returned session holds the
        audit history and terminal status.

        Args:
            state: Project state to repair
            token: Optional cancellation token checked between iterations
            on_iteration: Optional callback receiving each completed iteration

        Returns:
            The finished repair session

        Raises:
            VerifierError: If the verifier cannot produce findings

        """
        session = RepairSession(
            project=state.name,
            max_iterations=self._max_iterations,
            initial_fingerprint=state.fingerprint(),
        )
        previous: IterationRecord | None = None

        while True:
            if token is not None and token.cancelled:
                remaining: list[Finding] = []
                if previous is not None:
                    # Closing verification of the fully applied state.
                    remaining = self._verify(state)
                    previous.findings_after = remaining
                logger.info(
                    "Session for %s cancelled after %d iteration(s)",
                    state.name,
                    session.iterations,
                )
                self._finish(
                    session, SessionStatus.ABORTED, remaining, state, AbortReason.CANCELLED
                )
                return session

            findings = self._verify(state)
            if previous is not None:
                previous.findings_after = findings

            record = IterationRecord(
                number=session.iterations + 1, findings_before=findings
            )
            session.history.append(record)
            blocking = count_blocking(findings)
            logger.debug(
                "Iteration %d: %d finding(s), %d blocking or advisory",
                record.number,
                len(findings),
                blocking,
            )

            if blocking == 0:
                self._close(record, findings, state, on_iteration)
                logger.info(
                    "Session for %s converged in %d iteration(s)",
                    state.name,
                    record.number,
                )
                self._finish(session, SessionStatus.CONVERGED, findings, state)
                return session

            if previous is not None and signature_multiset(
                findings
            ) == signature_multiset(previous.findings_before):
                self._close(record, findings, state, on_iteration)
                logger.info(
                    "Session for %s stalled at iteration %d with %d finding(s)",
                    state.name,
                    record.number,
                    len(findings),
                )
                self._finish(session, SessionStatus.STALLED, findings, state)
                return session

            self._fix(record, findings, state)
            record.fingerprint = state.fingerprint()
            if on_iteration is not None:
                on_iteration(record)

            if record.number >= self._max_iterations:
                # Closing verification; does not count as an iteration.
                remaining = self._verify(state)
                record.findings_after = remaining
                if count_blocking(remaining) == 0:
                    logger.info(
                        "Session for %s converged in %d iteration(s)",
                        state.name,
                        record.number,
                    )
                    self._finish(session, SessionStatus.CONVERGED, remaining, state)
                    return session
                logger.warning(
                    "Session for %s reached the ceiling of %d iteration(s) "
                    "with %d finding(s) left",
                    state.name,
                    self._max_iterations,
                    len(remaining),
                )
                self._finish(
                    session, SessionStatus.ABORTED, remaining, state, AbortReason.CEILING
                )
                return session
            previous = record

    def _verify(self, state: ProjectState) -> list[Finding]:
        return self._catalog.sort(self._verifier.verify(state))

    def _finish(
        self,
        session: RepairSession,
        status: SessionStatus,
        remaining: list[Finding],
        state: ProjectState,
        abort_reason: AbortReason | None = None,
    ) -> None:
        session.mark_finished(
            status,
            remaining,
            state,
            gaps=self._gaps(remaining),
            abort_reason=abort_reason,
        )

    def _close(
        self,
        record: IterationRecord,
        findings: list[Finding],
        state: ProjectState,
        on_iteration: IterationCallback | None,
    ) -> None:
        """Finish a terminal iteration that applied no fixes."""
        record.catalog_gaps = self._gaps(findings)
        record.findings_after = findings
        record.fingerprint = state.fingerprint()
        if on_iteration is not None:
            on_iteration(record)

    def _gaps(self, findings: list[Finding]) -> list[Finding]:
        gaps: list[Finding] = []
        for finding in findings:
            if finding.signature not in self._catalog and finding not in gaps:
                gaps.append(finding)
        return gaps

    def _fix(self, record: IterationRecord, findings: list[Finding], state: ProjectState) -> None:
        """Classify findings and apply matched fixers in priority order."""
        seen: set[Finding] = set()
        for finding in findings:
            if finding in seen:
                continue
            seen.add(finding)

            entry = self._catalog.lookup(finding.signature)
            if entry is None:
                logger.debug("No fixer registered for %s", finding)
                record.catalog_gaps.append(finding)
                continue
            if not finding.blocks_convergence:
                continue
            record.attempts.append(self._apply(entry, finding, state))

    def _apply(self, entry: CatalogEntry, finding: Finding, state: ProjectState) -> FixAttempt:
        """Apply one fixer inside an invocation, rolling back anything not Applied."""
        raised = False
        with state.invocation(entry.signature, finding) as invocation:
            try:
                result: FixResult = entry.fixer.apply(finding, state)
            except Exception as e:
                raised = True
                logger.exception(
                    "Fixer %s raised while resolving %s (detail=%r)",
                    type(entry.fixer).__name__,
                    finding,
                    finding.detail,
                )
                result = Failed(cause=f"{type(e).__name__}: {e}")

        kept = len(invocation.mutations)
        if not isinstance(result, Applied):
            undone = state.rollback(invocation.id)
            kept = 0
            if undone:
                logger.debug(
                    "Rolled back %d mutation(s) from %s on %s",
                    undone,
                    entry.signature,
                    finding.location,
                )

        if isinstance(result, Failed) and not raised:
            logger.info("Fixer for %s failed: %s", finding, result.cause)
        elif isinstance(result, Skipped):
            logger.debug("Fixer for %s skipped: %s", finding, result.reason)
        elif isinstance(result, Applied):
            logger.debug("Fixed %s: %s", finding, result.description)

        return FixAttempt(
            finding=finding,
            fixer=entry.signature,
            result=result,
            mutations=kept,
            raised=raised,
        )
