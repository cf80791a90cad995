"""Mutable project state with an attributed mutation audit log.

ProjectState holds the units (source files, manifest fields, generated
artifacts) that fixers rewrite. Every write happens inside a fix invocation
opened by the repair loop, so each mutation is attributed to exactly one
fixer application and can be rolled back.
"""

from __future__ import annotations

import hashlib
import itertools
from collections.abc import Generator, Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from check_doctor.errors import UnattributedMutationError, UnitNotFoundError
from check_doctor.findings import Finding


class Unit(BaseModel):
    """A named piece of project content."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    content: str
    modified_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MutationKind(StrEnum):
    """Kind of change a mutation made to a unit."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


class Mutation(BaseModel):
    """One audited change to a unit."""

    model_config = ConfigDict(frozen=True)

    invocation_id: int
    fixer: str
    """Signature of the catalog entry whose fixer made the change."""

    finding: Finding
    unit: str
    kind: MutationKind
    before: str | None = None
    after: str | None = None


class FixInvocation:
    """An open attribution scope for a single fixer application."""

    def __init__(self, invocation_id: int, fixer: str, finding: Finding) -> None:
        """Initialise the invocation scope.

        Args:
            invocation_id: Identifier unique within the owning project state
            fixer: Signature of the catalog entry being applied
            finding: The finding the fixer is resolving

        """
        self.id = invocation_id
        self.fixer = fixer
        self.finding = finding
        self.mutations: list[Mutation] = []

    @property
    def changed(self) -> bool:
        """Whether the invocation has mutated anything."""
        return bool(self.mutations)


class ProjectState:
    """A named collection of units mutated by fixers."""

    def __init__(self, units: Iterable[Unit] = (), *, name: str = "project") -> None:
        """Initialise the project state.

        Args:
            units: Initial units
            name: Display name of the project

        """
        self.name = name
        self._units: dict[str, Unit] = {unit.name: unit for unit in units}
        self._audit: list[Mutation] = []
        self._active: FixInvocation | None = None
        self._ids = itertools.count(1)

    @classmethod
    def from_mapping(cls, contents: dict[str, str], *, name: str = "project") -> ProjectState:
        """Build a project state from ``{unit name: content}``."""
        return cls((Unit(name=n, content=c) for n, c in contents.items()), name=name)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def __contains__(self, name: object) -> bool:
        """Whether a unit with this name exists."""
        return name in self._units

    def __iter__(self) -> Iterator[Unit]:
        """Iterate units in name order."""
        return iter(sorted(self._units.values(), key=lambda unit: unit.name))

    def __len__(self) -> int:
        """Return the number of units."""
        return len(self._units)

    def get(self, name: str) -> Unit | None:
        """Return the unit, or None if it does not exist."""
        return self._units.get(name)

    def read(self, name: str) -> str:
        """Return the content of a unit.

        Raises:
            UnitNotFoundError: If the unit does not exist

        """
        unit = self._units.get(name)
        if unit is None:
            raise UnitNotFoundError(f"Unit '{name}' not found in {self.name}")
        return unit.content

    def unit_names(self) -> list[str]:
        """Return all unit names in sorted order."""
        return sorted(self._units)

    def snapshot(self) -> dict[str, str]:
        """Return ``{unit name: content}`` for every unit."""
        return {name: self._units[name].content for name in sorted(self._units)}

    def fingerprint(self) -> str:
        """Return a stable SHA-256 digest over all unit names and contents."""
        digest = hashlib.sha256()
        for name, content in self.snapshot().items():
            digest.update(name.encode("utf-8"))
            digest.update(b"\0")
            digest.update(content.encode("utf-8"))
            digest.update(b"\0")
        return digest.hexdigest()

    # -------------------------------------------------------------------------
    # Attributed writes
    # -------------------------------------------------------------------------

    @contextmanager
    def invocation(self, fixer: str, finding: Finding) -> Generator[FixInvocation]:
        """Open the attribution scope for one fixer application.

        Args:
            fixer: Signature of the catalog entry being applied
            finding: The finding being resolved

        Yields:
            The open FixInvocation collecting this application's mutations

        Raises:
            UnattributedMutationError: If another invocation is already open

        """
        if self._active is not None:
            raise UnattributedMutationError(
                f"Invocation {self._active.id} ({self._active.fixer}) is still open"
            )
        current = FixInvocation(next(self._ids), fixer, finding)
        self._active = current
        try:
            yield current
        finally:
            self._active = None

    def write(self, name: str, content: str) -> bool:
        """Create or replace a unit.

        Writing content identical to the current content records nothing.

        Returns:
            True if the unit changed, False otherwise

        Raises:
            UnattributedMutationError: If no invocation is open

        """
        invocation = self._require_invocation(name)
        existing = self._units.get(name)
        if existing is not None and existing.content == content:
            return False

        self._units[name] = Unit(name=name, content=content)
        self._record(
            invocation,
            name,
            MutationKind.CREATED if existing is None else MutationKind.MODIFIED,
            before=existing.content if existing is not None else None,
            after=content,
        )
        return True

    def delete(self, name: str) -> None:
        """Delete a unit.

        Raises:
            UnattributedMutationError: If no invocation is open
            UnitNotFoundError: If the unit does not exist

        """
        invocation = self._require_invocation(name)
        existing = self._units.pop(name, None)
        if existing is None:
            raise UnitNotFoundError(f"Unit '{name}' not found in {self.name}")
        self._record(
            invocation, name, MutationKind.DELETED, before=existing.content, after=None
        )

    # -------------------------------------------------------------------------
    # Audit log
    # -------------------------------------------------------------------------

    @property
    def mutations(self) -> tuple[Mutation, ...]:
        """Return the full audit log in application order."""
        return tuple(self._audit)

    def mutations_for(self, invocation_id: int) -> list[Mutation]:
        """Return the mutations made by one invocation."""
        return [m for m in self._audit if m.invocation_id == invocation_id]

    def deleted_units(self) -> set[str]:
        """Return names of units deleted and not recreated since."""
        return {
            m.unit
            for m in self._audit
            if m.kind is MutationKind.DELETED and m.unit not in self._units
        }

    def rollback(self, invocation_id: int) -> int:
        """Undo the mutations of one invocation and drop them from the log.

        Mutations are undone in reverse order, restoring each unit to the
        content it had before the invocation started.

        Args:
            invocation_id: Identifier of the invocation to undo

        Returns:
            Number of mutations undone

        """
        undone = self.mutations_for(invocation_id)
        for mutation in reversed(undone):
            if mutation.before is None:
                self._units.pop(mutation.unit, None)
            else:
                self._units[mutation.unit] = Unit(
                    name=mutation.unit, content=mutation.before
                )
        self._audit = [m for m in self._audit if m.invocation_id != invocation_id]
        return len(undone)

    def _require_invocation(self, name: str) -> FixInvocation:
        if self._active is None:
            raise UnattributedMutationError(
                f"Cannot modify unit '{name}' outside a fix invocation"
            )
        return self._active

    def _record(
        self,
        invocation: FixInvocation,
        name: str,
        kind: MutationKind,
        *,
        before: str | None,
        after: str | None,
    ) -> None:
        mutation = Mutation(
            invocation_id=invocation.id,
            fixer=invocation.fixer,
            finding=invocation.finding,
            unit=name,
            kind=kind,
            before=before,
            after=after,
        )
        invocation.mutations.append(mutation)
        self._audit.append(mutation)
