"""Error classes for check-doctor.

This module provides:
- CheckDoctorError: Base exception class for all engine errors
- CatalogError, DuplicateSignatureError: Rule catalog exceptions
- FixerContractViolation: Programming error inside a fixer
- ProjectStateError, UnitNotFoundError, UnattributedMutationError: Project state exceptions
- VerifierError: Verifier invocation exception
- ConfigError: Configuration loading exception
- ManifestParseError: Manifest codec exception
"""


class CheckDoctorError(Exception):
    """Base exception for all check-doctor errors."""

    pass


class CatalogError(CheckDoctorError):
    """Base exception for rule catalog errors."""

    pass


class DuplicateSignatureError(CatalogError):
    """Raised when a signature is registered twice in the same catalog.

    This is a build-time programming error and is never recovered from.
    """

    pass


class FixerContractViolation(CheckDoctorError):
    """Raised by a fixer when a finding breaks the fixer's assumptions.

    The repair loop logs it with the full finding context and treats the
    attempt as failed; it never ends the session.
    """

    pass


class ProjectStateError(CheckDoctorError):
    """Base exception for project state errors."""

    pass


class UnitNotFoundError(ProjectStateError):
    """Raised when a unit is read or deleted but does not exist."""

    pass


class UnattributedMutationError(ProjectStateError):
    """Raised when the project state is mutated outside a fix invocation."""

    pass


class VerifierError(CheckDoctorError):
    """Raised when the verifier cannot produce findings."""

    pass


class ConfigError(CheckDoctorError):
    """Raised when the configuration file cannot be read or validated."""

    pass


class ManifestParseError(CheckDoctorError):
    """Raised when a manifest unit cannot be parsed."""

    pass
