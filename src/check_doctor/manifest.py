"""Codec for ``Field: value`` manifest units.

Manifests are sequences of fields; a field value may continue on following
lines indented by whitespace. Rendering preserves field order and the raw
formatting of fields that were not changed.
"""

from __future__ import annotations

import re

from check_doctor.errors import ManifestParseError

_FIELD_PATTERN = re.compile(r"^(?P<name>[A-Za-z0-9][A-Za-z0-9@._/-]*):(?P<value>.*)$")
_PACKAGE_PATTERN = re.compile(r"^\s*(?P<name>[A-Za-z][A-Za-z0-9.]*)")

DEPENDENCY_FIELDS = ("Depends", "Imports", "LinkingTo", "Suggests")


class Manifest:
    """An ordered, format-preserving view of a manifest unit."""

    def __init__(self, fields: list[tuple[str, str]] | None = None) -> None:
        """Initialise from ``(name, raw value)`` pairs.

        A raw value keeps continuation lines (with their indentation)
        separated by newlines.
        """
        self._fields: list[tuple[str, str]] = list(fields or [])

    @classmethod
    def parse(cls, text: str) -> Manifest:
        """Parse manifest text.

        Args:
            text: Manifest unit content

        Returns:
            Parsed manifest

        Raises:
            ManifestParseError: If a line is neither a field nor a continuation

        """
        fields: list[tuple[str, str]] = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            if line[0] in " \t":
                if not fields:
                    raise ManifestParseError(
                        f"Line {lineno}: continuation line before any field"
                    )
                name, value = fields[-1]
                fields[-1] = (name, f"{value}\n{line.rstrip()}")
                continue
            match = _FIELD_PATTERN.match(line)
            if match is None:
                raise ManifestParseError(f"Line {lineno}: expected 'Field: value'")
            fields.append((match["name"], match["value"].strip()))
        return cls(fields)

    def render(self) -> str:
        """Render the manifest back to text with a trailing newline."""
        lines = []
        for name, value in self._fields:
            first, *rest = value.split("\n")
            lines.append(f"{name}: {first}".rstrip())
            lines.extend(rest)
        return "\n".join(lines) + "\n" if lines else ""

    def __contains__(self, name: object) -> bool:
        """Whether the field exists (case-sensitive)."""
        return any(field == name for field, _ in self._fields)

    def names(self) -> list[str]:
        """Return field names in order."""
        return [name for name, _ in self._fields]

    def raw(self, name: str) -> str | None:
        """Return the raw value, continuation lines included."""
        for field, value in self._fields:
            if field == name:
                return value
        return None

    def get(self, name: str) -> str | None:
        """Return the value with continuation lines folded into single spaces."""
        value = self.raw(name)
        if value is None:
            return None
        return " ".join(part.strip() for part in value.split("\n") if part.strip())

    def set(self, name: str, value: str) -> None:
        """Replace a field's value, appending the field if it does not exist."""
        for index, (field, _) in enumerate(self._fields):
            if field == name:
                self._fields[index] = (name, value)
                return
        self._fields.append((name, value))

    def packages(self, name: str) -> list[str]:
        """Return package names declared in a dependency field.

        Version constraints are dropped; ``R`` itself is ignored.
        """
        value = self.get(name)
        if not value:
            return []
        result = []
        for entry in value.split(","):
            match = _PACKAGE_PATTERN.match(entry)
            if match and match["name"] != "R":
                result.append(match["name"])
        return result

    def declared_packages(self) -> set[str]:
        """Return every package declared in any dependency field."""
        return {pkg for field in DEPENDENCY_FIELDS for pkg in self.packages(field)}

    def add_package(self, name: str, package: str) -> bool:
        """Append a package to a dependency field.

        Returns:
            True if the package was added, False if already declared there

        """
        if package in self.packages(name):
            return False
        value = self.raw(name)
        if not value or not value.strip():
            self.set(name, package)
        elif "\n" in value:
            self.set(name, f"{value.rstrip().rstrip(',')},\n    {package}")
        else:
            self.set(name, f"{value.rstrip().rstrip(',')}, {package}")
        return True
