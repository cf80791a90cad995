"""Tests for repair reports."""

import pytest

from check_doctor.catalog import RuleCatalog
from check_doctor.findings import Finding
from check_doctor.fixers import Applied, Failed, FixResult, Skipped
from check_doctor.loop import RepairLoop, RepairSession
from check_doctor.project import ProjectState
from check_doctor.report import build_report, render_text
from check_doctor.verifiers import CallableVerifier


class ScriptedFixer:
    """Fixer that always returns the same result."""

    description = "Scripted fixer for tests"

    def __init__(self, result: FixResult) -> None:
        self.result = result

    def apply(self, finding: Finding, state: ProjectState) -> FixResult:
        if isinstance(self.result, Applied):
            state.write("R/a.R", state.read("R/a.R") + "# touched\n")
        return self.result


def run_session(findings: list[Finding], **fixers: FixResult) -> RepairSession:
    """Run a session whose verifier always reports ``findings``."""
    catalog = RuleCatalog()
    for signature, result in fixers.items():
        catalog.register(signature.replace("_", "-"), ScriptedFixer(result))
    state = ProjectState.from_mapping({"R/a.R": "f <- 1\n"}, name="demo")
    return RepairLoop(catalog, CallableVerifier(lambda state: findings)).run(state)


class TestUnresolvedReasons:
    """Every remaining finding carries the reason it was not resolved."""

    def test_reasons_per_outcome(self) -> None:
        # Arrange
        findings = [
            Finding(signature="unknown-x", severity="error", location="R/a.R"),
            Finding(signature="always-fails", severity="error", location="R/a.R"),
            Finding(signature="always-skips", severity="warning", location="R/a.R"),
            Finding(signature="no-effect", severity="warning", location="R/a.R"),
            Finding(signature="always-skips", severity="note", location="R/b.R"),
        ]
        session = run_session(
            findings,
            always_fails=Failed(cause="cannot parse"),
            always_skips=Skipped(reason="ambiguous"),
            no_effect=Applied(description="rewrote"),
        )

        # Act
        report = build_report(session)

        # Assert
        reasons = {(e.signature, e.severity.value): e for e in report.unresolved}
        assert reasons[("unknown-x", "blocking")].reason == "catalog_gap"
        assert reasons[("always-fails", "blocking")].reason == "failed"
        assert reasons[("always-fails", "blocking")].failures == 1
        assert reasons[("always-fails", "blocking")].note == "cannot parse"
        assert reasons[("always-skips", "advisory")].reason == "skipped"
        assert reasons[("always-skips", "advisory")].note == "ambiguous"
        assert reasons[("no-effect", "advisory")].reason == "unstable"
        assert reasons[("always-skips", "informational")].reason == "informational"

    def test_findings_only_seen_by_closing_verify_are_not_attempted(self) -> None:
        """A finding that first appears after the last iteration was never attempted."""
        calls: list[int] = []

        def produce(state: ProjectState) -> list[Finding]:
            calls.append(1)
            signature = "known" if len(calls) == 1 else "late"
            return [Finding(signature=signature, severity="error", location="R/a.R")]

        catalog = RuleCatalog()
        catalog.register("known", ScriptedFixer(Applied(description="ok")))
        catalog.register("late", ScriptedFixer(Applied(description="ok")))
        state = ProjectState.from_mapping({"R/a.R": ""})
        session = RepairLoop(catalog, CallableVerifier(produce), max_iterations=1).run(state)

        [entry] = build_report(session).unresolved

        assert entry.signature == "late"
        assert entry.reason == "not_attempted"


class TestBuildReport:
    """Test report construction."""

    def test_summary_counts(self) -> None:
        findings = [
            Finding(signature="gap", severity="error", location="R/a.R"),
            Finding(signature="gap", severity="note", location="R/b.R"),
        ]

        report = build_report(run_session(findings))

        assert report.format_version == "1.0.0"
        assert report.session.status == "stalled"
        assert report.session.abort_reason is None
        assert report.session.iterations == 2
        assert report.summary.remaining == 2
        assert report.summary.blocking == 1
        assert report.summary.informational == 1
        assert report.summary.catalog_gaps == 2
        assert not report.converged

    def test_unfinished_session_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="has not finished"):
            build_report(RepairSession(project="demo", max_iterations=3))

    def test_iterations_keep_attempt_messages(self) -> None:
        findings = [Finding(signature="always-fails", severity="error", location="R/a.R")]

        report = build_report(run_session(findings, always_fails=Failed(cause="nope")))

        [attempt] = report.iterations[0].attempts
        assert attempt.outcome == "failed"
        assert attempt.message == "nope"
        assert attempt.mutations == 0
        assert report.iterations[0].findings_after is not None


class TestRenderText:
    """Test the plain-text rendering."""

    def test_converged_report(self) -> None:
        text = render_text(build_report(run_session([])))

        assert text.startswith("Project: demo\nStatus: CONVERGED\nIterations: 1 of 25\n")
        assert text.endswith("Unresolved: none\n")

    def test_unresolved_entries(self) -> None:
        findings = [Finding(signature="always-fails", severity="error", location="R/a.R#f")]

        text = render_text(build_report(run_session(findings, always_fails=Failed(cause="nope"))))

        assert "Status: STALLED\n" in text
        assert "  failed   always-fails at R/a.R#f: nope\n" in text
        assert "Unresolved: 1\n  [blocking] always-fails at R/a.R#f (failed x1): nope\n" in text
