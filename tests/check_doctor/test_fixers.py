"""Tests for the built-in fixers.

Every fixer runs the shared fixer contract tests, followed by tests of its
own behaviour.
"""

import pytest

from check_doctor.errors import FixerContractViolation
from check_doctor.findings import Finding
from check_doctor.fixers import (
    Applied,
    AsciiEscapeFixer,
    BuildIgnoreFixer,
    DeclareImportFixer,
    DescriptionPeriodFixer,
    DocStubFixer,
    Failed,
    Fixer,
    ManifestFieldFixer,
    ParamDocFixer,
    ReturnDocFixer,
    Skipped,
    TitleCaseFixer,
)
from check_doctor.fixers.manifest import title_case
from check_doctor.project import ProjectState
from check_doctor.testing import FixerContractTests, apply_fix

DESCRIPTION = """\
Package: tidyup
Title: a grammar of data manipulation
Version: 0.1.0
Description: Tools for tidying data
License: MIT
Imports: dplyr
"""

DOCUMENTED = """\
#' Add numbers
#'
#' @param x First number.
#' @export
add <- function(x, y) {
  x + y
}
"""

# =============================================================================
# Documentation fixers
# =============================================================================


class TestDocStubFixer(FixerContractTests):
    """Test DocStubFixer."""

    @pytest.fixture
    def fixer(self) -> Fixer:
        return DocStubFixer()

    @pytest.fixture
    def broken_state(self) -> ProjectState:
        return ProjectState.from_mapping({"R/add.R": "add <- function(x, y) {\n  x + y\n}\n"})

    @pytest.fixture
    def finding(self) -> Finding:
        return Finding(signature="missing-doc", severity="error", location="R/add.R#add")

    def test_inserts_stub_above_definition(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        """The stub has a title, one @param per argument and a @return tag."""
        # Act
        apply_fix(fixer, finding, broken_state)

        # Assert
        assert broken_state.read("R/add.R") == (
            "#' Add\n"
            "#'\n"
            "#' @param x Value for \\code{x}.\n"
            "#' @param y Value for \\code{y}.\n"
            "#' @return The result of \\code{add}.\n"
            "add <- function(x, y) {\n"
            "  x + y\n"
            "}\n"
        )

    def test_title_is_derived_from_function_name(self) -> None:
        state = ProjectState.from_mapping({"R/a.R": "read_csv.file <- function() NULL\n"})
        finding = Finding(signature="missing-doc", severity="error", location="R/a.R#read_csv.file")

        apply_fix(DocStubFixer(), finding, state)

        assert state.read("R/a.R").startswith("#' Read csv file\n")

    def test_keeps_crlf_line_endings(self, fixer: Fixer, finding: Finding) -> None:
        """Only the stub lines are added; existing line endings are untouched."""
        state = ProjectState.from_mapping({"R/add.R": "x <- 1\r\nadd <- function(x) x\r\n"})

        apply_fix(fixer, finding, state)

        assert state.read("R/add.R") == (
            "x <- 1\r\n"
            "#' Add\r\n"
            "#'\r\n"
            "#' @param x Value for \\code{x}.\r\n"
            "#' @return The result of \\code{add}.\r\n"
            "add <- function(x) x\r\n"
        )

    def test_unknown_function_is_skipped(self, fixer: Fixer, broken_state: ProjectState) -> None:
        finding = Finding(signature="missing-doc", severity="error", location="R/add.R#subtract")

        result, mutations = apply_fix(fixer, finding, broken_state)

        assert isinstance(result, Skipped)
        assert mutations == []

    def test_missing_anchor_violates_contract(
        self, fixer: Fixer, broken_state: ProjectState
    ) -> None:
        finding = Finding(signature="missing-doc", severity="error", location="R/add.R")

        with pytest.raises(FixerContractViolation, match="requires an anchor"):
            apply_fix(fixer, finding, broken_state)


class TestReturnDocFixer(FixerContractTests):
    """Test ReturnDocFixer."""

    @pytest.fixture
    def fixer(self) -> Fixer:
        return ReturnDocFixer()

    @pytest.fixture
    def broken_state(self) -> ProjectState:
        return ProjectState.from_mapping({"R/add.R": DOCUMENTED})

    @pytest.fixture
    def finding(self) -> Finding:
        return Finding(signature="missing-return-doc", severity="warning", location="R/add.R#add")

    def test_inserts_return_after_params(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        apply_fix(fixer, finding, broken_state)

        lines = broken_state.read("R/add.R").splitlines()
        assert lines[2:5] == [
            "#' @param x First number.",
            "#' @return The result of \\code{add}.",
            "#' @export",
        ]

    def test_undocumented_function_fails(self, fixer: Fixer) -> None:
        """There is no block to extend until a stub has been inserted."""
        state = ProjectState.from_mapping({"R/add.R": "add <- function(x) x\n"})
        finding = Finding(signature="missing-return-doc", severity="warning", location="R/add.R#add")

        result, mutations = apply_fix(fixer, finding, state)

        assert isinstance(result, Failed)
        assert "no documentation block" in result.cause
        assert mutations == []


class TestParamDocFixer(FixerContractTests):
    """Test ParamDocFixer."""

    @pytest.fixture
    def fixer(self) -> Fixer:
        return ParamDocFixer()

    @pytest.fixture
    def broken_state(self) -> ProjectState:
        return ProjectState.from_mapping({"R/add.R": DOCUMENTED})

    @pytest.fixture
    def finding(self) -> Finding:
        return Finding(
            signature="missing-param-doc",
            severity="warning",
            location="R/add.R#add",
            detail="y",
        )

    def test_inserts_param_after_existing_params(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        apply_fix(fixer, finding, broken_state)

        lines = broken_state.read("R/add.R").splitlines()
        assert lines[2:5] == [
            "#' @param x First number.",
            "#' @param y Value for \\code{y}.",
            "#' @export",
        ]

    def test_first_param_goes_above_other_tags(self, fixer: Fixer) -> None:
        state = ProjectState.from_mapping(
            {"R/a.R": "#' Identity\n#'\n#' @return x\nid <- function(x) x\n"}
        )
        finding = Finding(
            signature="missing-param-doc", severity="warning", location="R/a.R#id", detail="x"
        )

        apply_fix(fixer, finding, state)

        assert state.read("R/a.R").splitlines()[2] == "#' @param x Value for \\code{x}."

    def test_unknown_parameter_is_skipped(
        self, fixer: Fixer, broken_state: ProjectState
    ) -> None:
        finding = Finding(
            signature="missing-param-doc", severity="warning", location="R/add.R#add", detail="z"
        )

        result, _ = apply_fix(fixer, finding, broken_state)

        assert result == Skipped(reason="'add' has no parameter 'z'")

    def test_missing_detail_violates_contract(
        self, fixer: Fixer, broken_state: ProjectState
    ) -> None:
        finding = Finding(signature="missing-param-doc", severity="warning", location="R/add.R#add")

        with pytest.raises(FixerContractViolation, match="requires a detail payload"):
            apply_fix(fixer, finding, broken_state)


# =============================================================================
# Manifest fixers
# =============================================================================


class TestDeclareImportFixer(FixerContractTests):
    """Test DeclareImportFixer."""

    @pytest.fixture
    def fixer(self) -> Fixer:
        return DeclareImportFixer("DESCRIPTION")

    @pytest.fixture
    def broken_state(self) -> ProjectState:
        return ProjectState.from_mapping(
            {"DESCRIPTION": DESCRIPTION, "R/a.R": "trim <- function(x) stringr::str_trim(x)\n"}
        )

    @pytest.fixture
    def finding(self) -> Finding:
        return Finding(
            signature="undeclared-import",
            severity="error",
            location="R/a.R#line 1",
            detail="stringr",
        )

    def test_appends_package_to_imports(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        apply_fix(fixer, finding, broken_state)

        assert "Imports: dplyr, stringr\n" in broken_state.read("DESCRIPTION")

    def test_invalid_package_name_is_skipped(
        self, fixer: Fixer, broken_state: ProjectState
    ) -> None:
        finding = Finding(
            signature="undeclared-import", severity="error", location="R/a.R", detail="not a pkg"
        )

        result, mutations = apply_fix(fixer, finding, broken_state)

        assert isinstance(result, Skipped)
        assert mutations == []

    def test_missing_manifest_is_skipped(self, fixer: Fixer, finding: Finding) -> None:
        state = ProjectState.from_mapping({"R/a.R": "stringr::str_trim(x)\n"})

        result, _ = apply_fix(fixer, finding, state)

        assert isinstance(result, Skipped)

    def test_unparsable_manifest_fails(self, fixer: Fixer, finding: Finding) -> None:
        state = ProjectState.from_mapping({"DESCRIPTION": "garbage\n", "R/a.R": "x\n"})

        result, mutations = apply_fix(fixer, finding, state)

        assert isinstance(result, Failed)
        assert "cannot parse DESCRIPTION" in result.cause
        assert mutations == []


class TestManifestFieldFixer(FixerContractTests):
    """Test ManifestFieldFixer."""

    @pytest.fixture
    def fixer(self) -> Fixer:
        return ManifestFieldFixer("DESCRIPTION", {"Encoding": "UTF-8"})

    @pytest.fixture
    def broken_state(self) -> ProjectState:
        return ProjectState.from_mapping({"DESCRIPTION": DESCRIPTION})

    @pytest.fixture
    def finding(self) -> Finding:
        return Finding(
            signature="missing-manifest-field", severity="error", location="DESCRIPTION#Encoding"
        )

    def test_appends_field_with_default(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        apply_fix(fixer, finding, broken_state)

        assert broken_state.read("DESCRIPTION").endswith("Imports: dplyr\nEncoding: UTF-8\n")

    def test_field_without_default_is_skipped(
        self, fixer: Fixer, broken_state: ProjectState
    ) -> None:
        finding = Finding(
            signature="missing-manifest-field", severity="error", location="DESCRIPTION#Authors"
        )

        result, _ = apply_fix(fixer, finding, broken_state)

        assert result == Skipped(reason="no default configured for field 'Authors'")


class TestTitleCaseFixer(FixerContractTests):
    """Test TitleCaseFixer."""

    @pytest.fixture
    def fixer(self) -> Fixer:
        return TitleCaseFixer("DESCRIPTION")

    @pytest.fixture
    def broken_state(self) -> ProjectState:
        return ProjectState.from_mapping({"DESCRIPTION": DESCRIPTION})

    @pytest.fixture
    def finding(self) -> Finding:
        return Finding(signature="title-case", severity="warning", location="DESCRIPTION#Title")

    def test_rewrites_title(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        apply_fix(fixer, finding, broken_state)

        assert "Title: A Grammar of Data Manipulation\n" in broken_state.read("DESCRIPTION")

    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("tools for the web", "Tools for the Web"),
            ("the art of R", "The Art of R"),
            ("interface to 'libcurl'", "Interface to 'libcurl'"),
            ("Already Fine", "Already Fine"),
        ],
    )
    def test_title_case_rules(self, title: str, expected: str) -> None:
        assert title_case(title) == expected


class TestDescriptionPeriodFixer(FixerContractTests):
    """Test DescriptionPeriodFixer."""

    @pytest.fixture
    def fixer(self) -> Fixer:
        return DescriptionPeriodFixer("DESCRIPTION")

    @pytest.fixture
    def broken_state(self) -> ProjectState:
        return ProjectState.from_mapping({"DESCRIPTION": DESCRIPTION})

    @pytest.fixture
    def finding(self) -> Finding:
        return Finding(
            signature="description-period", severity="warning", location="DESCRIPTION#Description"
        )

    def test_appends_period(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        apply_fix(fixer, finding, broken_state)

        assert "Description: Tools for tidying data.\n" in broken_state.read("DESCRIPTION")

    def test_missing_description_fails(self, fixer: Fixer, finding: Finding) -> None:
        state = ProjectState.from_mapping({"DESCRIPTION": "Package: a\n"})

        result, _ = apply_fix(fixer, finding, state)

        assert isinstance(result, Failed)


# =============================================================================
# Encoding and build fixers
# =============================================================================


class TestAsciiEscapeFixer(FixerContractTests):
    """Test AsciiEscapeFixer."""

    @pytest.fixture
    def fixer(self) -> Fixer:
        return AsciiEscapeFixer()

    @pytest.fixture
    def broken_state(self) -> ProjectState:
        return ProjectState.from_mapping({"R/a.R": 'greeting <- "café" # naïve\n'})

    @pytest.fixture
    def finding(self) -> Finding:
        return Finding(signature="non-ascii-source", severity="warning", location="R/a.R#line 1")

    def test_escapes_strings_and_transliterates_comments(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        apply_fix(fixer, finding, broken_state)

        assert broken_state.read("R/a.R") == 'greeting <- "caf\\u00e9" # naive\n'

    def test_non_ascii_identifier_fails_without_mutation(
        self, fixer: Fixer, finding: Finding
    ) -> None:
        """Characters outside strings cannot be escaped safely."""
        state = ProjectState.from_mapping({"R/a.R": "x <- 1\ncafé <- 2\n"})

        result, mutations = apply_fix(fixer, finding, state)

        assert isinstance(result, Failed)
        assert "R/a.R:2" in result.cause
        assert mutations == []

    def test_multiline_string_is_escaped_not_transliterated(
        self, fixer: Fixer, finding: Finding
    ) -> None:
        """A ``#`` on the second line of a literal does not start a comment."""
        # Arrange
        state = ProjectState.from_mapping({"R/a.R": 'msg <- "Status:\n# café au lait"\n'})

        # Act
        result, _ = apply_fix(fixer, finding, state)

        # Assert
        assert isinstance(result, Applied)
        assert state.read("R/a.R") == 'msg <- "Status:\n# caf\\u00e9 au lait"\n'

    def test_raw_string_fails_without_mutation(self, fixer: Fixer, finding: Finding) -> None:
        """Escapes are not interpreted inside raw strings."""
        state = ProjectState.from_mapping({"R/a.R": 'x <- 1\ny <- r"(café)"\n'})

        result, mutations = apply_fix(fixer, finding, state)

        assert isinstance(result, Failed)
        assert "R/a.R:2" in result.cause
        assert mutations == []

    def test_preserves_crlf_line_endings(self, fixer: Fixer, finding: Finding) -> None:
        state = ProjectState.from_mapping({"R/a.R": 'x <- "é"\r\n# ü\r\n'})

        apply_fix(fixer, finding, state)

        assert state.read("R/a.R") == 'x <- "\\u00e9"\r\n# u\r\n'


class TestBuildIgnoreFixer(FixerContractTests):
    """Test BuildIgnoreFixer."""

    @pytest.fixture
    def fixer(self) -> Fixer:
        return BuildIgnoreFixer(".Rbuildignore")

    @pytest.fixture
    def broken_state(self) -> ProjectState:
        return ProjectState.from_mapping(
            {".lintr": "linters: NULL\n", ".Rbuildignore": "^.*\\.Rproj$"}
        )

    @pytest.fixture
    def finding(self) -> Finding:
        return Finding(signature="hidden-file", severity="note", location=".lintr")

    def test_appends_anchored_pattern(
        self, fixer: Fixer, broken_state: ProjectState, finding: Finding
    ) -> None:
        apply_fix(fixer, finding, broken_state)

        assert broken_state.read(".Rbuildignore") == "^.*\\.Rproj$\n^\\.lintr$\n"

    def test_creates_ignore_unit(self, fixer: Fixer, finding: Finding) -> None:
        state = ProjectState.from_mapping({".lintr": ""})

        result, mutations = apply_fix(fixer, finding, state)

        assert isinstance(result, Applied)
        assert state.read(".Rbuildignore") == "^\\.lintr$\n"
        assert mutations[0].before is None
