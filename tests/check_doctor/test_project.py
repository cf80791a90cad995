"""Tests for ProjectState and its attributed mutation log."""

import pytest

from check_doctor.errors import UnattributedMutationError, UnitNotFoundError
from check_doctor.findings import Finding
from check_doctor.project import MutationKind, ProjectState


@pytest.fixture
def state() -> ProjectState:
    return ProjectState.from_mapping(
        {"DESCRIPTION": "Package: demo\n", "R/a.R": "f <- function() 1\n"},
        name="demo",
    )


class TestProjectStateReads:
    """Test read access to units."""

    def test_read_returns_content(self, state: ProjectState) -> None:
        assert state.read("DESCRIPTION") == "Package: demo\n"

    def test_read_missing_unit_raises(self, state: ProjectState) -> None:
        """Reading an absent unit raises UnitNotFoundError naming the unit."""
        with pytest.raises(UnitNotFoundError, match="'NAMESPACE' not found in demo"):
            state.read("NAMESPACE")

    def test_units_iterate_in_name_order(self, state: ProjectState) -> None:
        assert [unit.name for unit in state] == ["DESCRIPTION", "R/a.R"]
        assert state.unit_names() == ["DESCRIPTION", "R/a.R"]
        assert len(state) == 2
        assert "R/a.R" in state

    def test_fingerprint_depends_only_on_content(self) -> None:
        """Equal contents give equal fingerprints regardless of insertion order."""
        first = ProjectState.from_mapping({"a": "1", "b": "2"})
        second = ProjectState.from_mapping({"b": "2", "a": "1"})
        third = ProjectState.from_mapping({"a": "1", "b": "3"})

        assert first.fingerprint() == second.fingerprint()
        assert first.fingerprint() != third.fingerprint()

    def test_fingerprint_distinguishes_names_from_content(self) -> None:
        """Moving text between the name and the content changes the fingerprint."""
        assert (
            ProjectState.from_mapping({"ab": ""}).fingerprint()
            != ProjectState.from_mapping({"a": "b"}).fingerprint()
        )


class TestAttributedWrites:
    """Test that every mutation is attributed to one fix invocation."""

    def test_write_outside_invocation_is_rejected(self, state: ProjectState) -> None:
        """Unattributed writes raise and leave the state untouched."""
        before = state.fingerprint()

        with pytest.raises(UnattributedMutationError):
            state.write("R/a.R", "changed")

        assert state.fingerprint() == before
        assert state.mutations == ()

    def test_delete_outside_invocation_is_rejected(self, state: ProjectState) -> None:
        with pytest.raises(UnattributedMutationError):
            state.delete("R/a.R")

    def test_write_records_modification(
        self, state: ProjectState, blocking_finding: Finding
    ) -> None:
        """A write inside an invocation is logged with before and after content."""
        # Act
        with state.invocation("missing-doc", blocking_finding) as invocation:
            changed = state.write("R/a.R", "g <- 1\n")

        # Assert
        assert changed is True
        assert state.read("R/a.R") == "g <- 1\n"
        [mutation] = invocation.mutations
        assert mutation.kind is MutationKind.MODIFIED
        assert mutation.fixer == "missing-doc"
        assert mutation.finding == blocking_finding
        assert mutation.before == "f <- function() 1\n"
        assert mutation.after == "g <- 1\n"
        assert state.mutations == (mutation,)

    def test_write_of_new_unit_records_creation(
        self, state: ProjectState, blocking_finding: Finding
    ) -> None:
        with state.invocation("x", blocking_finding) as invocation:
            state.write("NAMESPACE", "export(f)\n")

        assert invocation.mutations[0].kind is MutationKind.CREATED
        assert invocation.mutations[0].before is None

    def test_identical_write_records_nothing(
        self, state: ProjectState, blocking_finding: Finding
    ) -> None:
        """Rewriting the same content is not a mutation."""
        with state.invocation("x", blocking_finding) as invocation:
            changed = state.write("R/a.R", "f <- function() 1\n")

        assert changed is False
        assert not invocation.changed
        assert state.mutations == ()

    def test_delete_records_deletion(
        self, state: ProjectState, blocking_finding: Finding
    ) -> None:
        with state.invocation("x", blocking_finding):
            state.delete("R/a.R")

        assert "R/a.R" not in state
        assert state.deleted_units() == {"R/a.R"}
        assert state.mutations[0].kind is MutationKind.DELETED

    def test_delete_missing_unit_raises(
        self, state: ProjectState, blocking_finding: Finding
    ) -> None:
        with state.invocation("x", blocking_finding), pytest.raises(UnitNotFoundError):
            state.delete("R/missing.R")

    def test_nested_invocations_are_rejected(
        self, state: ProjectState, blocking_finding: Finding
    ) -> None:
        """Only one invocation may be open at a time."""
        with state.invocation("outer", blocking_finding):
            with pytest.raises(UnattributedMutationError, match="still open"):
                with state.invocation("inner", blocking_finding):
                    pass

    def test_invocation_closes_when_fixer_raises(
        self, state: ProjectState, blocking_finding: Finding
    ) -> None:
        """An exception inside the scope still closes the invocation."""
        with pytest.raises(RuntimeError):
            with state.invocation("x", blocking_finding):
                raise RuntimeError("boom")

        with pytest.raises(UnattributedMutationError):
            state.write("R/a.R", "changed")

    def test_invocation_ids_are_unique(
        self, state: ProjectState, blocking_finding: Finding
    ) -> None:
        with state.invocation("x", blocking_finding) as first:
            pass
        with state.invocation("x", blocking_finding) as second:
            pass

        assert first.id != second.id


class TestRollback:
    """Test undoing one invocation."""

    def test_rollback_restores_every_touched_unit(
        self, state: ProjectState, blocking_finding: Finding
    ) -> None:
        """Modified, created and deleted units all return to their prior content."""
        # Arrange
        before = state.snapshot()
        with state.invocation("x", blocking_finding) as invocation:
            state.write("R/a.R", "one")
            state.write("R/a.R", "two")
            state.write("NAMESPACE", "export(f)\n")
            state.delete("DESCRIPTION")

        # Act
        undone = state.rollback(invocation.id)

        # Assert
        assert undone == 4
        assert state.snapshot() == before
        assert state.mutations == ()
        assert state.deleted_units() == set()

    def test_rollback_leaves_other_invocations_alone(
        self, state: ProjectState, blocking_finding: Finding
    ) -> None:
        with state.invocation("keep", blocking_finding):
            state.write("R/a.R", "kept\n")
        with state.invocation("drop", blocking_finding) as dropped:
            state.write("DESCRIPTION", "Package: other\n")

        state.rollback(dropped.id)

        assert state.read("R/a.R") == "kept\n"
        assert state.read("DESCRIPTION") == "Package: demo\n"
        assert [m.fixer for m in state.mutations] == ["keep"]

    def test_rollback_of_unknown_invocation_is_a_no_op(self, state: ProjectState) -> None:
        assert state.rollback(999) == 0
