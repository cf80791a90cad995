"""Rule catalog mapping finding signatures to fixers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from importlib.metadata import entry_points

from check_doctor.config import DoctorConfig
from check_doctor.errors import DuplicateSignatureError
from check_doctor.findings import Finding
from check_doctor.fixers import builtin_fixers
from check_doctor.fixers.base import Fixer

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "check_doctor.fixers"


@dataclass(frozen=True)
class CatalogEntry:
    """A registered fixer for one finding signature."""

    signature: str
    fixer: Fixer
    idempotent: bool
    order: int
    """Registration index, used as the tie-break after severity."""


class RuleCatalog:
    """Registry of fixers keyed by finding signature.

    Each catalog is an ordinary instance: sessions that repair different
    projects build their own catalogs and share nothing.
    """

    def __init__(self) -> None:
        """Initialise an empty catalog."""
        self._entries: dict[str, CatalogEntry] = {}

    def register(self, signature: str, fixer: Fixer, idempotent: bool = True) -> CatalogEntry:
        """Register a fixer for a signature.

        Args:
            signature: Finding signature the fixer resolves
            fixer: The fixer
            idempotent: Whether reapplying on an already fixed state is a no-op

        Returns:
            The new catalog entry

        Raises:
            DuplicateSignatureError: If the signature is already registered
            ValueError: If the signature is empty

        """
        if not signature:
            raise ValueError("Catalog signatures must be non-empty")
        if signature in self._entries:
            existing = self._entries[signature].fixer
            raise DuplicateSignatureError(
                f"Signature '{signature}' is already registered "
                f"to {type(existing).__name__}"
            )
        entry = CatalogEntry(
            signature=signature,
            fixer=fixer,
            idempotent=idempotent,
            order=len(self._entries),
        )
        self._entries[signature] = entry
        return entry

    def lookup(self, signature: str) -> CatalogEntry | None:
        """Return the entry for a signature, or None when it is a catalog gap."""
        return self._entries.get(signature)

    def __contains__(self, signature: object) -> bool:
        """Whether the signature has a registered fixer."""
        return signature in self._entries

    def __len__(self) -> int:
        """Return the number of registered signatures."""
        return len(self._entries)

    def __iter__(self) -> Iterator[CatalogEntry]:
        """Iterate entries in registration order."""
        return iter(self.entries())

    def entries(self) -> list[CatalogEntry]:
        """Return all entries in registration order."""
        return sorted(self._entries.values(), key=lambda entry: entry.order)

    def signatures(self) -> list[str]:
        """Return registered signatures in registration order."""
        return [entry.signature for entry in self.entries()]

    def priority_key(self, finding: Finding) -> tuple[int, int, str, str, str]:
        """Return the sort key that orders fix application.

        Severity first (BLOCKING > ADVISORY > INFORMATIONAL), then catalog
        registration order, then location and detail so that the order never
        depends on the order findings arrived in. Catalog gaps sort last
        within their severity.
        """
        entry = self._entries.get(finding.signature)
        order = entry.order if entry is not None else len(self._entries)
        return (
            finding.severity.rank,
            order,
            finding.location.unit,
            finding.location.anchor or "",
            f"{finding.signature}\0{finding.detail}",
        )

    def sort(self, findings: Iterable[Finding]) -> list[Finding]:
        """Return findings in fix-application order."""
        return sorted(findings, key=self.priority_key)

    def discover_from_entry_points(self, group: str = ENTRY_POINT_GROUP) -> None:
        """Discover and register fixers published as entry points.

        Each entry point name is the signature; the loaded object is a fixer
        class (instantiated without arguments) or a fixer instance. Entry
        points whose signature is already registered, or that fail to load,
        are logged and skipped.

        Args:
            group: The entry point group to discover from.

        """
        for ep in entry_points(group=group):
            if ep.name in self._entries:
                logger.warning(
                    "Entry point '%s' ignored: signature already registered", ep.name
                )
                continue
            try:
                loaded = ep.load()
                fixer = loaded() if isinstance(loaded, type) else loaded
                self.register(
                    ep.name, fixer, idempotent=getattr(fixer, "idempotent", True)
                )
                logger.debug(
                    "Discovered fixer '%s' from entry point '%s'",
                    type(fixer).__name__,
                    ep.name,
                )
            except Exception as e:
                logger.warning(
                    "Failed to load fixer from entry point '%s': %s", ep.name, e
                )


def build_default_catalog(config: DoctorConfig | None = None) -> RuleCatalog:
    """Build a catalog with the built-in fixers.

    Registration order is the tie-break order after severity: structural
    fixes (documentation blocks, manifest fields) are registered before the
    fixes that refine them.

    Args:
        config: Session configuration; defaults are used when omitted

    Returns:
        Catalog without the fixers listed in ``config.disabled_fixers``

    """
    config = config or DoctorConfig()
    catalog = RuleCatalog()
    disabled = set(config.disabled_fixers)
    for signature, fixer in builtin_fixers(config):
        if signature in disabled:
            logger.debug("Built-in fixer for '%s' disabled by configuration", signature)
            continue
        catalog.register(signature, fixer, idempotent=True)
    return catalog
