"""Testing utilities for check-doctor fixers.

Fixer packages can inherit FixerContractTests to verify that their fixers
honour the fixer contract the repair loop relies on.
"""

import pytest

from check_doctor.findings import Finding
from check_doctor.fixers.base import LOCATION_GONE, Applied, Fixer, FixResult, Skipped
from check_doctor.project import Mutation, ProjectState


def apply_fix(
    fixer: Fixer, finding: Finding, state: ProjectState, signature: str | None = None
) -> tuple[FixResult, list[Mutation]]:
    """Apply a fixer inside a fix invocation, as the repair loop does.

    Args:
        fixer: Fixer to apply
        finding: Finding to resolve
        state: Project state to mutate
        signature: Catalog signature used for attribution (defaults to the
            finding's signature)

    Returns:
        The fix result and the mutations made by this application

    """
    with state.invocation(signature or finding.signature, finding) as invocation:
        result = fixer.apply(finding, state)
    return result, list(invocation.mutations)


class FixerContractTests:
    """Contract tests that all fixers must pass.

    Required Fixtures:
        fixer: Fixer instance to test
        broken_state: Project state exhibiting the problem
        finding: Finding describing the problem in broken_state

    Contract Requirements:
        1. apply() resolves the finding with Applied and at least one mutation
        2. Reapplying on the fixed state returns Skipped with no mutation
        3. A finding whose unit is absent returns Skipped("location no longer present")
        4. description is a non-empty string

    Usage Pattern:
        class TestMyFixer(FixerContractTests):
            @pytest.fixture
            def fixer(self) -> Fixer:
                return MyFixer()

            @pytest.fixture
            def broken_state(self) -> ProjectState:
                return ProjectState.from_mapping({"R/a.R": "..."})

            @pytest.fixture
            def finding(self) -> Finding:
                return Finding(signature="my-signature", severity="error", location="R/a.R")

    Abstract fixtures raise NotImplementedError so that inheriting classes
    are forced to provide them.

    """

    @pytest.fixture
    def fixer(self) -> Fixer:
        """Provide the fixer under test.

        Raises:
            NotImplementedError: If subclass doesn't override this fixture

        """
        raise NotImplementedError("Subclass must provide 'fixer' fixture")

    @pytest.fixture
    def broken_state(self) -> ProjectState:
        """Provide a project state the fixer can repair.

        Raises:
            NotImplementedError: If subclass doesn't override this fixture

        """
        raise NotImplementedError("Subclass must provide 'broken_state' fixture")

    @pytest.fixture
    def finding(self) -> Finding:
        """Provide the finding describing the problem in broken_state.

        Raises:
            NotImplementedError: If subclass doesn't override this fixture

        """
        raise NotImplementedError("Subclass must provide 'finding' fixture")

    def test_apply_resolves_finding_with_mutation(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        """apply() must return Applied and record its mutations."""
        result, mutations = apply_fix(fixer, finding, broken_state)

        assert isinstance(result, Applied)
        assert result.description
        assert mutations
        assert all(m.finding == finding for m in mutations)

    def test_reapplying_is_a_no_op(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        """Reapplying on an already fixed state must return Skipped without mutating."""
        apply_fix(fixer, finding, broken_state)
        fingerprint = broken_state.fingerprint()

        result, mutations = apply_fix(fixer, finding, broken_state)

        assert isinstance(result, Skipped)
        assert mutations == []
        assert broken_state.fingerprint() == fingerprint

    def test_vanished_location_is_skipped(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        """A finding whose unit no longer exists must be skipped."""
        contents = broken_state.snapshot()
        contents.pop(finding.location.unit)
        state = ProjectState.from_mapping(contents)

        result, mutations = apply_fix(fixer, finding, state)

        assert result == Skipped(reason=LOCATION_GONE)
        assert mutations == []

    def test_description_is_not_empty(self, fixer: Fixer) -> None:
        """Fixers must describe their remediation."""
        assert isinstance(fixer.description, str)
        assert fixer.description.strip()
