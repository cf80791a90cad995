"""Fixers resolving built-in finding signatures."""

from __future__ import annotations

from check_doctor.config import DoctorConfig
from check_doctor.fixers.base import (
    LOCATION_GONE,
    Applied,
    BaseFixer,
    Failed,
    Fixer,
    FixResult,
    ManifestFixer,
    Skipped,
)
from check_doctor.fixers.buildignore import BuildIgnoreFixer
from check_doctor.fixers.documentation import DocStubFixer, ParamDocFixer, ReturnDocFixer
from check_doctor.fixers.encoding import AsciiEscapeFixer
from check_doctor.fixers.manifest import (
    DeclareImportFixer,
    DescriptionPeriodFixer,
    ManifestFieldFixer,
    TitleCaseFixer,
)


def builtin_fixers(config: DoctorConfig) -> list[tuple[str, Fixer]]:
    """Return ``(signature, fixer)`` pairs in registration order."""
    return [
        ("missing-manifest-field", ManifestFieldFixer(config.manifest_unit, config.field_defaults)),
        ("undeclared-import", DeclareImportFixer(config.manifest_unit)),
        ("missing-doc", DocStubFixer()),
        ("missing-param-doc", ParamDocFixer()),
        ("missing-return-doc", ReturnDocFixer()),
        ("non-ascii-source", AsciiEscapeFixer()),
        ("title-case", TitleCaseFixer(config.manifest_unit)),
        ("description-period", DescriptionPeriodFixer(config.manifest_unit)),
        ("hidden-file", BuildIgnoreFixer(config.ignore_unit)),
    ]


__all__ = [
    "LOCATION_GONE",
    # Result types
    "Applied",
    "Failed",
    "FixResult",
    "Skipped",
    # Base types
    "BaseFixer",
    "Fixer",
    "ManifestFixer",
    # Fixers
    "AsciiEscapeFixer",
    "BuildIgnoreFixer",
    "DeclareImportFixer",
    "DescriptionPeriodFixer",
    "DocStubFixer",
    "ManifestFieldFixer",
    "ParamDocFixer",
    "ReturnDocFixer",
    "TitleCaseFixer",
    # Factory
    "builtin_fixers",
]
