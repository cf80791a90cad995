"""CLI command implementations for check-doctor."""

from check_doctor.cli.errors import CLIError
from check_doctor.cli.list import list_exporters_command, list_fixers_command
from check_doctor.cli.run import check_project_command, execute_repair_command
from check_doctor.cli.validate import validate_config_command

__all__ = [
    "CLIError",
    "check_project_command",
    "execute_repair_command",
    "list_exporters_command",
    "list_fixers_command",
    "validate_config_command",
]
