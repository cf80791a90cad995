"""Fixers that rewrite fields of the manifest unit."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import override

from check_doctor.errors import ManifestParseError
from check_doctor.findings import Finding
from check_doctor.fixers.base import (
    Applied,
    Failed,
    FixResult,
    ManifestFixer,
    Skipped,
)
from check_doctor.manifest import Manifest
from check_doctor.project import ProjectState

# Words kept in lower case inside a title, following the usual title-case rules.
_SMALL_WORDS = frozenset(
    {"a", "an", "and", "as", "at", "but", "by", "for", "from", "in", "into",
     "nor", "of", "on", "or", "per", "the", "to", "via", "vs", "with"}
)
_PACKAGE_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9.]*[A-Za-z0-9]$")


def title_case(text: str) -> str:
    """Return ``text`` in title case.

    Small words stay lower case except at the start; words that already
    contain upper-case letters, quotes or markup are left untouched.
    """
    words = text.split(" ")
    result = []
    for index, word in enumerate(words):
        if not word or any(c.isupper() for c in word) or word[0] in "'\"`(":
            result.append(word)
        elif index > 0 and word.lower() in _SMALL_WORDS:
            result.append(word.lower())
        else:
            result.append(word[0].upper() + word[1:])
    return " ".join(result)


class _ManifestEditor(ManifestFixer):
    """Parse, edit and write back the manifest."""

    def _load(self, state: ProjectState) -> Manifest | Failed:
        try:
            return Manifest.parse(state.read(self._manifest_unit))
        except ManifestParseError as e:
            return Failed(cause=f"cannot parse {self._manifest_unit}: {e}")

    def _save(self, state: ProjectState, manifest: Manifest) -> None:
        state.write(self._manifest_unit, manifest.render())


class DeclareImportFixer(_ManifestEditor):
    """Declare a package used by the sources; the finding's detail names it."""

    description = "Add the package named in the finding detail to the manifest Imports"

    def __init__(self, manifest_unit: str, field: str = "Imports") -> None:
        """Initialise with the manifest unit and the dependency field to extend."""
        super().__init__(manifest_unit)
        self._field = field

    @override
    def _fix(self, finding: Finding, state: ProjectState) -> FixResult:
        package = self.require_detail(finding)
        if not _PACKAGE_NAME.match(package):
            return Skipped(reason=f"'{package}' is not a valid package name")

        manifest = self._load(state)
        if isinstance(manifest, Failed):
            return manifest
        if package in manifest.declared_packages():
            return Skipped(reason=f"package '{package}' is already declared")

        manifest.add_package(self._field, package)
        self._save(state, manifest)
        return Applied(description=f"declared '{package}' in {self._field}")


class ManifestFieldFixer(_ManifestEditor):
    """Add a missing manifest field from the configured defaults.

    The finding's anchor names the field.
    """

    description = "Add the missing manifest field using its configured default"

    def __init__(self, manifest_unit: str, defaults: Mapping[str, str]) -> None:
        """Initialise with the manifest unit and the field defaults."""
        super().__init__(manifest_unit)
        self._defaults = dict(defaults)

    @override
    def _fix(self, finding: Finding, state: ProjectState) -> FixResult:
        name = self.require_anchor(finding)
        manifest = self._load(state)
        if isinstance(manifest, Failed):
            return manifest
        if name in manifest:
            return Skipped(reason=f"field '{name}' is already present")
        if name not in self._defaults:
            return Skipped(reason=f"no default configured for field '{name}'")

        manifest.set(name, self._defaults[name])
        self._save(state, manifest)
        return Applied(description=f"added field '{name}: {self._defaults[name]}'")


class TitleCaseFixer(_ManifestEditor):
    """Rewrite the manifest Title in title case."""

    description = "Rewrite the manifest Title in title case"

    @override
    def _fix(self, finding: Finding, state: ProjectState) -> FixResult:
        manifest = self._load(state)
        if isinstance(manifest, Failed):
            return manifest
        title = manifest.get("Title")
        if title is None:
            return Skipped(reason="manifest has no Title field")

        fixed = title_case(title)
        if fixed == title:
            return Skipped(reason="Title is already in title case")
        manifest.set("Title", fixed)
        self._save(state, manifest)
        return Applied(description=f"Title rewritten as '{fixed}'")


class DescriptionPeriodFixer(_ManifestEditor):
    """Terminate the manifest Description with a period."""

    description = "Terminate the manifest Description with a period"

    @override
    def _fix(self, finding: Finding, state: ProjectState) -> FixResult:
        manifest = self._load(state)
        if isinstance(manifest, Failed):
            return manifest
        raw = manifest.raw("Description")
        if raw is None or not raw.strip():
            return Failed(cause="manifest has no Description text to terminate")
        if raw.rstrip().endswith("."):
            return Skipped(reason="Description already ends with a period")

        manifest.set("Description", raw.rstrip() + ".")
        self._save(state, manifest)
        return Applied(description="terminated Description with a period")
