"""Tests for check-doctor CLI commands.

These tests exercise the public command functions and the Typer application
against real project directories in temporary folders. Logging setup is
patched out so that commands do not reconfigure the test process's logging.
"""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
import typer
from pytest_mock import MockerFixture
from typer.testing import CliRunner

from check_doctor.__main__ import app
from check_doctor.cli import (
    CLIError,
    check_project_command,
    execute_repair_command,
    list_exporters_command,
    list_fixers_command,
    validate_config_command,
)
from check_doctor.cli.errors import cli_error_handler
from check_doctor.errors import ConfigError, VerifierError

WriteTree = Callable[[Path, dict[str, str]], Path]

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(mocker: MockerFixture) -> None:
    for module in ("run", "list", "validate"):
        mocker.patch(f"check_doctor.cli.{module}.setup_logging")


@pytest.fixture
def broken_dir(tmp_path: Path, write_tree: WriteTree, broken_package: dict[str, str]) -> Path:
    return write_tree(tmp_path / "tidyup", broken_package)


@pytest.fixture
def clean_dir(tmp_path: Path, write_tree: WriteTree, clean_package: dict[str, str]) -> Path:
    return write_tree(tmp_path / "tidyup", clean_package)


@pytest.fixture
def stalling_dir(tmp_path: Path, write_tree: WriteTree) -> Path:
    """A package without a manifest: missing-manifest has no fixer."""
    return write_tree(tmp_path / "nomanifest", {"R/a.R": "f <- function() 1\n"})


class TestCLIError:
    """Test CLIError formatting."""

    def test_str_includes_command(self) -> None:
        error = CLIError("bad things", command="run")

        assert str(error) == "CLI command 'run' failed: bad things"

    def test_str_without_command(self) -> None:
        assert str(CLIError("bad things")) == "bad things"

    def test_hint_follows_the_underlying_error(self) -> None:
        verifier = CLIError("boom", original_error=VerifierError("exit 3"))
        config = CLIError("boom", original_error=ConfigError("bad yaml"))
        plain = CLIError("boom", original_error=ValueError("x"))

        assert verifier.hint is not None and "--verifier-cmd" in verifier.hint
        assert config.hint is not None and "validate-config" in config.hint
        assert plain.hint is None


class TestCliErrorHandler:
    """Test cli_error_handler."""

    def test_wraps_domain_errors_and_exits_with_code_1(self) -> None:
        # Act
        with pytest.raises(typer.Exit) as exc_info:
            with cli_error_handler("run", "Repair failed"):
                raise VerifierError("checker exited with status 3")

        # Assert
        assert exc_info.value.exit_code == 1
        cause = exc_info.value.__cause__
        assert isinstance(cause, CLIError)
        assert cause.command == "run"
        assert isinstance(cause.original_error, VerifierError)
        assert cause.hint is not None

    def test_cli_errors_pass_through_unchanged(self) -> None:
        error = CLIError("bad override", command="check")

        with pytest.raises(typer.Exit) as exc_info:
            with cli_error_handler("run", "Repair failed"):
                raise error

        assert exc_info.value.__cause__ is error


class TestExecuteRepairCommand:
    """Test execute_repair_command."""

    def test_converging_session_writes_fixes(self, broken_dir: Path) -> None:
        # Act - returns normally when the session converges
        execute_repair_command(broken_dir)

        # Assert
        description = (broken_dir / "DESCRIPTION").read_text(encoding="utf-8")
        assert "Title: Tidy Up Messy Data\n" in description
        assert "Encoding: UTF-8\n" in description
        assert "Imports: stringr\n" in description

    def test_dry_run_leaves_files_untouched(
        self, broken_dir: Path, broken_package: dict[str, str]
    ) -> None:
        execute_repair_command(broken_dir, dry_run=True)

        assert (broken_dir / "DESCRIPTION").read_text(encoding="utf-8") == broken_package[
            "DESCRIPTION"
        ]

    def test_stalled_session_exits_with_code_2(self, stalling_dir: Path) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            execute_repair_command(stalling_dir)

        assert exc_info.value.exit_code == 2

    def test_no_strict_accepts_stalled_session(self, stalling_dir: Path) -> None:
        execute_repair_command(stalling_dir, strict=False)

    def test_iteration_ceiling_override(self, broken_dir: Path, tmp_path: Path) -> None:
        """One iteration fixes everything; the closing verification confirms it."""
        output = tmp_path / "session.json"

        execute_repair_command(broken_dir, max_iterations=1, output=output)

        document = json.loads(output.read_text(encoding="utf-8"))
        assert document["session"]["status"] == "converged"
        assert document["session"]["iterations"] == 1

    def test_ceiling_with_findings_left_exits_with_code_2(
        self, tmp_path: Path, write_tree: WriteTree
    ) -> None:
        """A non-ASCII identifier cannot be fixed, so the ceiling is reached."""
        project = write_tree(
            tmp_path / "ascii",
            {
                "DESCRIPTION": "Package: ascii\nTitle: Ascii\nVersion: 1.0\n"
                "Description: Ascii.\nLicense: MIT\nEncoding: UTF-8\n",
                "R/a.R": "caf\u00e9 <- 1\n",
            },
        )

        with pytest.raises(typer.Exit) as exc_info:
            execute_repair_command(project, max_iterations=1)

        assert exc_info.value.exit_code == 2

    def test_output_defaults_to_json(self, broken_dir: Path, tmp_path: Path) -> None:
        output = tmp_path / "reports" / "session.json"

        execute_repair_command(broken_dir, output=output)

        document = json.loads(output.read_text(encoding="utf-8"))
        assert document["session"]["status"] == "converged"
        assert document["summary"]["mutations"] == 7

    def test_unknown_exporter_fails(self, broken_dir: Path) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            execute_repair_command(broken_dir, exporter_name="xml")

        assert exc_info.value.exit_code == 1

    def test_invalid_config_fails(self, broken_dir: Path, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("max_iterations: zero\n", encoding="utf-8")

        with pytest.raises(typer.Exit) as exc_info:
            execute_repair_command(broken_dir, config_path=config)

        assert exc_info.value.exit_code == 1


class TestCheckProjectCommand:
    """Test check_project_command."""

    def test_clean_project_passes(self, clean_dir: Path) -> None:
        check_project_command(clean_dir)

    def test_findings_exit_with_code_2(self, broken_dir: Path) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            check_project_command(broken_dir)

        assert exc_info.value.exit_code == 2

    def test_check_never_writes(self, broken_dir: Path, broken_package: dict[str, str]) -> None:
        with pytest.raises(typer.Exit):
            check_project_command(broken_dir)

        assert (broken_dir / "R" / "tidy.R").read_text(encoding="utf-8") == broken_package[
            "R/tidy.R"
        ]


class TestListAndValidateCommands:
    """Test the listing and validation commands."""

    def test_list_fixers(self) -> None:
        list_fixers_command()

    def test_list_exporters(self, capsys: pytest.CaptureFixture[str]) -> None:
        list_exporters_command()

        output = capsys.readouterr().out
        assert "json" in output
        assert "text" in output

    def test_validate_config(self, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("max_iterations: 10\n", encoding="utf-8")

        validate_config_command(config)

    def test_validate_invalid_config(self, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("max_iterations: 10\nunknown_option: true\n", encoding="utf-8")

        with pytest.raises(typer.Exit) as exc_info:
            validate_config_command(config)

        assert exc_info.value.exit_code == 1


class TestTyperApp:
    """Invoke the application the way a shell would."""

    def test_run_converges(self, broken_dir: Path) -> None:
        result = runner.invoke(app, ["run", str(broken_dir)])

        assert result.exit_code == 0

    def test_run_with_text_exporter_prints_report(self, broken_dir: Path) -> None:
        result = runner.invoke(app, ["run", str(broken_dir), "--dry-run", "--exporter", "text"])

        assert result.exit_code == 0
        assert "Status: CONVERGED" in result.output

    def test_run_stalled_respects_strict_flag(self, stalling_dir: Path) -> None:
        strict = runner.invoke(app, ["run", str(stalling_dir), "--dry-run"])
        lenient = runner.invoke(app, ["run", str(stalling_dir), "--dry-run", "--no-strict"])

        assert strict.exit_code == 2
        assert lenient.exit_code == 0

    def test_run_rejects_zero_iterations(self, broken_dir: Path) -> None:
        result = runner.invoke(app, ["run", str(broken_dir), "--max-iterations", "0"])

        assert result.exit_code != 0

    def test_check_reports_findings(self, broken_dir: Path) -> None:
        result = runner.invoke(app, ["check", str(broken_dir)])

        assert result.exit_code == 2

    def test_ls_exporters(self) -> None:
        result = runner.invoke(app, ["ls-exporters"])

        assert result.exit_code == 0
        assert "json" in result.output
