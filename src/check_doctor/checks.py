"""Built-in checks for R package sources.

Each check inspects the project state and returns findings whose signatures
match the built-in fixers. The manifest checks report ``missing-manifest``
when the manifest unit is absent and ``invalid-manifest`` when it cannot be
parsed; neither has a built-in fixer.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from check_doctor.config import DoctorConfig
from check_doctor.errors import ManifestParseError
from check_doctor.findings import Finding, Location, Severity
from check_doctor.fixers.buildignore import is_ignored
from check_doctor.fixers.manifest import title_case
from check_doctor.manifest import Manifest
from check_doctor.project import ProjectState
from check_doctor.sources import FunctionDef, ParsedSource, exported_names, find_functions

# Packages shipped with R itself never need declaring.
BASE_PACKAGES = frozenset(
    {"base", "compiler", "datasets", "graphics", "grDevices", "grid", "methods",
     "parallel", "splines", "stats", "stats4", "tcltk", "tools", "utils"}
)


class Check(Protocol):
    """Protocol for built-in checks."""

    name: str
    description: str

    def run(self, state: ProjectState, config: DoctorConfig) -> list[Finding]:
        """Return the findings for the project state."""
        ...


def source_units(state: ProjectState, config: DoctorConfig) -> list[str]:
    """Return the names of the R source units in the project state."""
    return [name for name in state.unit_names() if config.is_source_unit(name)]


def load_manifest(state: ProjectState, config: DoctorConfig) -> Manifest | None:
    """Return the parsed manifest, or None if it is absent or unparsable."""
    if config.manifest_unit not in state:
        return None
    try:
        return Manifest.parse(state.read(config.manifest_unit))
    except ManifestParseError:
        return None


class NonAsciiCheck:
    """Report source units containing non-ASCII characters."""

    name = "non-ascii"
    description = "Source units must be portable ASCII"

    def run(self, state: ProjectState, config: DoctorConfig) -> list[Finding]:
        findings = []
        for unit in source_units(state, config):
            lines = state.read(unit).split("\n")
            rows = [i for i, line in enumerate(lines, start=1) if not line.isascii()]
            if rows:
                findings.append(
                    Finding(
                        signature="non-ascii-source",
                        severity=Severity.ADVISORY,
                        location=Location(unit=unit, anchor=f"line {rows[0]}"),
                        detail=f"non-ASCII characters on {len(rows)} line(s)",
                    )
                )
        return findings


def iter_functions(
    state: ProjectState, config: DoctorConfig
) -> Iterator[tuple[str, FunctionDef]]:
    """Yield ``(unit, function)`` for every top-level function in the sources."""
    for unit in source_units(state, config):
        for function in find_functions(state.read(unit)):
            yield unit, function


class MissingDocCheck:
    """Report exported functions without a documentation block.

    Exports come from the namespace unit's ``export()`` directives; without a
    namespace unit every function whose name does not start with a dot counts
    as exported.
    """

    name = "missing-doc"
    description = "Exported functions must be documented"

    def run(self, state: ProjectState, config: DoctorConfig) -> list[Finding]:
        exports: set[str] | None = None
        if config.namespace_unit in state:
            exports = exported_names(state.read(config.namespace_unit))

        findings = []
        for unit, function in iter_functions(state, config):
            if function.documented:
                continue
            if exports is None:
                exported = not function.name.startswith(".")
            else:
                exported = function.name in exports
            if exported:
                findings.append(
                    Finding(
                        signature="missing-doc",
                        severity=Severity.BLOCKING,
                        location=Location(unit=unit, anchor=function.name),
                        detail=f"exported function '{function.name}' has no documentation",
                    )
                )
        return findings


class ReturnDocCheck:
    """Report documented functions without a ``@return`` tag."""

    name = "missing-return-doc"
    description = "Documented functions must describe their return value"

    def run(self, state: ProjectState, config: DoctorConfig) -> list[Finding]:
        return [
            Finding(
                signature="missing-return-doc",
                severity=Severity.ADVISORY,
                location=Location(unit=unit, anchor=function.name),
            )
            for unit, function in iter_functions(state, config)
            if function.documented and not function.tags() & {"return", "noRd"}
        ]


class ParamDocCheck:
    """Report arguments of documented functions without a ``@param`` tag."""

    name = "missing-param-doc"
    description = "Documented functions must describe every argument"

    def run(self, state: ProjectState, config: DoctorConfig) -> list[Finding]:
        findings = []
        for unit, function in iter_functions(state, config):
            if not function.documented or "noRd" in function.tags():
                continue
            documented = function.documented_params()
            findings.extend(
                Finding(
                    signature="missing-param-doc",
                    severity=Severity.ADVISORY,
                    location=Location(unit=unit, anchor=function.name),
                    detail=param,
                )
                for param in function.params
                if param not in documented
            )
        return findings


class UndeclaredImportCheck:
    """Report packages used by the sources but not declared in the manifest.

    Usage means ``library()``/``require()`` calls or ``pkg::`` access. Each
    package is reported once, at its first use. A package listed in any
    dependency field counts as declared, ``Suggests`` included.
    """

    name = "undeclared-import"
    description = "Packages used by the sources must be declared in the manifest"

    def run(self, state: ProjectState, config: DoctorConfig) -> list[Finding]:
        manifest = load_manifest(state, config)
        if manifest is None:
            return []
        declared = manifest.declared_packages() | BASE_PACKAGES
        own = manifest.get("Package")
        if own:
            declared.add(own)

        findings = []
        reported: set[str] = set()
        for unit in source_units(state, config):
            for package, lineno in ParsedSource(state.read(unit)).used_packages():
                if package in declared or package in reported:
                    continue
                reported.add(package)
                findings.append(
                    Finding(
                        signature="undeclared-import",
                        severity=Severity.BLOCKING,
                        location=Location(unit=unit, anchor=f"line {lineno}"),
                        detail=package,
                    )
                )
        return findings


class ManifestFieldsCheck:
    """Report a missing or unparsable manifest and missing required fields."""

    name = "manifest-fields"
    description = "The manifest must exist and declare every required field"

    def run(self, state: ProjectState, config: DoctorConfig) -> list[Finding]:
        unit = config.manifest_unit
        if unit not in state:
            return [
                Finding(
                    signature="missing-manifest",
                    severity=Severity.BLOCKING,
                    location=Location(unit=unit),
                    detail=f"{unit} not found",
                )
            ]
        try:
            manifest = Manifest.parse(state.read(unit))
        except ManifestParseError as e:
            return [
                Finding(
                    signature="invalid-manifest",
                    severity=Severity.BLOCKING,
                    location=Location(unit=unit),
                    detail=str(e),
                )
            ]
        return [
            Finding(
                signature="missing-manifest-field",
                severity=Severity.BLOCKING,
                location=Location(unit=unit, anchor=field),
                detail=f"required field '{field}' is missing",
            )
            for field in config.required_fields
            if field not in manifest
        ]


class TitleCaseCheck:
    """Report a manifest Title that is not in title case."""

    name = "title-case"
    description = "The manifest Title must be in title case"

    def run(self, state: ProjectState, config: DoctorConfig) -> list[Finding]:
        manifest = load_manifest(state, config)
        title = manifest.get("Title") if manifest is not None else None
        if not title or title_case(title) == title:
            return []
        return [
            Finding(
                signature="title-case",
                severity=Severity.ADVISORY,
                location=Location(unit=config.manifest_unit, anchor="Title"),
                detail=title,
            )
        ]


class DescriptionPeriodCheck:
    """Report a manifest Description that does not end with a period."""

    name = "description-period"
    description = "The manifest Description must end with a period"

    def run(self, state: ProjectState, config: DoctorConfig) -> list[Finding]:
        manifest = load_manifest(state, config)
        text = manifest.get("Description") if manifest is not None else None
        if not text or text.rstrip().endswith("."):
            return []
        return [
            Finding(
                signature="description-period",
                severity=Severity.ADVISORY,
                location=Location(unit=config.manifest_unit, anchor="Description"),
            )
        ]


class HiddenFileCheck:
    """Report hidden top-level files that the package build would include.

    Reported as ADVISORY: a hidden file shipped in the built package is a
    packaging mistake with a mechanical fix, so it blocks convergence.
    """

    name = "hidden-file"
    description = "Hidden top-level files should be excluded from the build"

    def run(self, state: ProjectState, config: DoctorConfig) -> list[Finding]:
        ignore_text = (
            state.read(config.ignore_unit) if config.ignore_unit in state else ""
        )
        return [
            Finding(
                signature="hidden-file",
                severity=Severity.ADVISORY,
                location=Location(unit=name),
                detail=f"{name} is not listed in {config.ignore_unit}",
            )
            for name in state.unit_names()
            if "/" not in name
            and name.startswith(".")
            and name != config.ignore_unit
            and not is_ignored(name, ignore_text)
        ]


BUILTIN_CHECKS: tuple[Check, ...] = (
    ManifestFieldsCheck(),
    UndeclaredImportCheck(),
    MissingDocCheck(),
    ParamDocCheck(),
    ReturnDocCheck(),
    NonAsciiCheck(),
    TitleCaseCheck(),
    DescriptionPeriodCheck(),
    HiddenFileCheck(),
)
