"""Shared fixtures for check-doctor tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from check_doctor.findings import Finding
from check_doctor.project import ProjectState

CLEAN_DESCRIPTION = """\
Package: tidyup
Title: Tidy Up Messy Data
Version: 0.1.0
Description: Functions for tidying messy data frames.
License: MIT
Encoding: UTF-8
Imports: dplyr
"""

CLEAN_SOURCE = """\
#' Tidy a data frame
#'
#' @param df A data frame.
#' @return A tidy data frame.
#' @export
tidy <- function(df) {
  dplyr::arrange(df)
}
"""

BROKEN_DESCRIPTION = """\
Package: tidyup
Title: tidy up messy data
Version: 0.1.0
Description: Functions for tidying messy data frames
License: MIT
"""

BROKEN_SOURCE = """\
tidy <- function(df, cols) {
  stringr::str_trim(df[cols])
}

#' Clean values
#'
#' @param x Values to clean.
#' @export
clean <- function(x) x
"""


@pytest.fixture
def clean_package() -> dict[str, str]:
    """Contents of a package that passes every built-in check."""
    return {
        "DESCRIPTION": CLEAN_DESCRIPTION,
        "NAMESPACE": "export(tidy)\n",
        "R/tidy.R": CLEAN_SOURCE,
    }


@pytest.fixture
def broken_package() -> dict[str, str]:
    """Contents of a package with one problem per built-in fixer family.

    - DESCRIPTION lacks Encoding and does not declare stringr
    - Title is not in title case and Description has no final period
    - ``tidy`` is exported but undocumented, ``clean`` has no @return
    - ``.lintr`` is a hidden file not excluded from the build
    """
    return {
        "DESCRIPTION": BROKEN_DESCRIPTION,
        "NAMESPACE": "export(tidy)\nexport(clean)\n",
        "R/tidy.R": BROKEN_SOURCE,
        ".lintr": "linters: linters_with_defaults()\n",
    }


@pytest.fixture
def make_state() -> Callable[..., ProjectState]:
    """Factory building a ProjectState from a mapping of unit contents."""

    def _make(contents: dict[str, str], name: str = "tidyup") -> ProjectState:
        return ProjectState.from_mapping(contents, name=name)

    return _make


@pytest.fixture
def write_tree() -> Callable[[Path, dict[str, str]], Path]:
    """Factory writing a mapping of unit contents below a directory."""

    def _write(root: Path, contents: dict[str, str]) -> Path:
        for name, content in contents.items():
            target = root / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return root

    return _write


@pytest.fixture
def blocking_finding() -> Finding:
    """A blocking finding on a source unit."""
    return Finding(signature="missing-doc", severity="error", location="R/a.R#f")
