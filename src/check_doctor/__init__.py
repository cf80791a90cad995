"""check-doctor: iterative diagnostic repair for R package sources.

A repair session verifies a project, matches each finding to a fixer in the
rule catalog and applies the fixes in priority order, repeating until no
blocking findings remain or the session stops making progress.
"""

from check_doctor.catalog import CatalogEntry, RuleCatalog, build_default_catalog
from check_doctor.config import DoctorConfig, VerifierConfig, load_config
from check_doctor.errors import (
    CatalogError,
    CheckDoctorError,
    ConfigError,
    DuplicateSignatureError,
    FixerContractViolation,
    ManifestParseError,
    ProjectStateError,
    UnattributedMutationError,
    UnitNotFoundError,
    VerifierError,
)
from check_doctor.findings import Finding, Location, Severity
from check_doctor.fixers import Applied, BaseFixer, Failed, Fixer, FixResult, Skipped
from check_doctor.loop import (
    AbortReason,
    CancellationToken,
    FixAttempt,
    IterationRecord,
    RepairLoop,
    RepairSession,
    SessionStatus,
)
from check_doctor.project import Mutation, MutationKind, ProjectState, Unit
from check_doctor.project_io import load_project, write_project
from check_doctor.report import RepairReport, build_report, render_text
from check_doctor.verifiers import (
    BuiltinVerifier,
    CallableVerifier,
    CommandVerifier,
    Verifier,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Findings
    "Finding",
    "Location",
    "Severity",
    # Project state
    "Mutation",
    "MutationKind",
    "ProjectState",
    "Unit",
    "load_project",
    "write_project",
    # Fixers and catalog
    "Applied",
    "BaseFixer",
    "CatalogEntry",
    "Failed",
    "FixResult",
    "Fixer",
    "RuleCatalog",
    "Skipped",
    "build_default_catalog",
    # Verifiers
    "BuiltinVerifier",
    "CallableVerifier",
    "CommandVerifier",
    "Verifier",
    # Loop
    "AbortReason",
    "CancellationToken",
    "FixAttempt",
    "IterationRecord",
    "RepairLoop",
    "RepairSession",
    "SessionStatus",
    # Report
    "RepairReport",
    "build_report",
    "render_text",
    # Configuration
    "DoctorConfig",
    "VerifierConfig",
    "load_config",
    # Errors
    "CatalogError",
    "CheckDoctorError",
    "ConfigError",
    "DuplicateSignatureError",
    "FixerContractViolation",
    "ManifestParseError",
    "ProjectStateError",
    "UnattributedMutationError",
    "UnitNotFoundError",
    "VerifierError",
]
