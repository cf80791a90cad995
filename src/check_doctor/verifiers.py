"""Verifiers produce findings for a project state.

A verifier must be deterministic: identical project content yields the same
findings. The repair loop sorts findings itself, so verifiers may report them
in any order.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Protocol, cast

from pydantic import ValidationError

from check_doctor.checks import BUILTIN_CHECKS, Check
from check_doctor.config import DoctorConfig
from check_doctor.errors import VerifierError
from check_doctor.findings import Finding
from check_doctor.project import ProjectState
from check_doctor.project_io import write_project

logger = logging.getLogger(__name__)


class Verifier(Protocol):
    """Protocol for verifiers."""

    def verify(self, state: ProjectState) -> list[Finding]:
        """Return the findings for the current project state."""
        ...


class CallableVerifier:
    """Adapt a plain function to the Verifier protocol."""

    def __init__(self, func: Callable[[ProjectState], Sequence[Finding]]) -> None:
        """Initialise with the function producing findings."""
        self._func = func

    def verify(self, state: ProjectState) -> list[Finding]:
        """Call the wrapped function."""
        return list(self._func(state))


class BuiltinVerifier:
    """Run the built-in checks against the project state."""

    def __init__(
        self, config: DoctorConfig | None = None, checks: Sequence[Check] | None = None
    ) -> None:
        """Initialise the verifier.

        Args:
            config: Configuration passed to every check
            checks: Checks to run (defaults to all built-in checks)

        """
        self._config = config or DoctorConfig()
        self._checks = list(checks) if checks is not None else list(BUILTIN_CHECKS)

    @property
    def checks(self) -> list[Check]:
        """Return the checks run by this verifier."""
        return list(self._checks)

    def verify(self, state: ProjectState) -> list[Finding]:
        """Run every check and concatenate the findings."""
        findings: list[Finding] = []
        for check in self._checks:
            found = check.run(state, self._config)
            logger.debug("Check %s reported %d finding(s)", check.name, len(found))
            findings.extend(found)
        return findings


class CommandVerifier:
    """Run an external checker against the project written to disk.

    The checker is expected to print a JSON findings document on stdout:
    either a list of finding objects or an object with a ``findings`` list.
    Checkers conventionally exit non-zero when they report problems, so the
    exit code is logged but never treated as an error.
    """

    def __init__(
        self, command: Sequence[str], root: Path, timeout: float | None = None
    ) -> None:
        """Initialise the verifier.

        Args:
            command: Command line of the checker, run with ``root`` as cwd
            root: Directory the project state is written to before each run
            timeout: Optional process timeout in seconds

        Raises:
            ValueError: If the command is empty

        """
        if not command:
            raise ValueError("Verifier command must not be empty")
        self._command = list(command)
        self._root = root
        self._timeout = timeout

    def verify(self, state: ProjectState) -> list[Finding]:
        """Write the state, run the checker and parse its findings.

        Raises:
            VerifierError: If the checker cannot be run, times out, or
                prints output that is not a findings document

        """
        write_project(state, self._root)
        logger.debug("Running verifier command: %s", " ".join(self._command))
        try:
            completed = subprocess.run(
                self._command,
                cwd=self._root,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise VerifierError(f"Verifier executable not found: {self._command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise VerifierError(
                f"Verifier timed out after {self._timeout} seconds"
            ) from e
        except OSError as e:
            raise VerifierError(f"Cannot run verifier: {e}") from e

        if completed.returncode != 0:
            logger.debug("Verifier exited with code %d", completed.returncode)
        if completed.stderr:
            logger.debug("Verifier stderr: %s", completed.stderr.strip())
        return parse_findings(completed.stdout)


def parse_findings(text: str) -> list[Finding]:
    """Parse a JSON findings document.

    Args:
        text: JSON list of findings, or an object with a ``findings`` list

    Returns:
        Parsed findings

    Raises:
        VerifierError: If the document is not valid JSON or a finding is malformed

    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise VerifierError(f"Verifier output is not valid JSON: {e}") from e

    if isinstance(document, dict) and "findings" in document:
        document = cast(dict[str, Any], document)["findings"]
    if not isinstance(document, list):
        raise VerifierError(
            "Verifier output must be a list of findings or an object with a 'findings' list"
        )

    findings: list[Finding] = []
    for index, item in enumerate(cast(list[Any], document)):
        try:
            findings.append(Finding.model_validate(item))
        except ValidationError as e:
            raise VerifierError(f"Invalid finding at index {index}: {e}") from e
    return findings
