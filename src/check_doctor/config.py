"""Configuration for check-doctor sessions.

Configuration lives in a YAML file (``.check-doctor.yaml`` by default).
``${VAR_NAME}`` patterns in string values are substituted from the
environment before validation.
"""

from __future__ import annotations

import os
import re
import shlex
from pathlib import Path
from typing import Any, Self, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from check_doctor.errors import ConfigError

DEFAULT_CONFIG_NAME = ".check-doctor.yaml"

# Pattern for environment variable substitution: ${VAR_NAME}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class BaseConfiguration(BaseModel):
    """Base class for check-doctor configuration models.

    Immutable, and strict about unknown keys so that typos in the YAML file
    are reported rather than ignored.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def from_properties(cls, properties: dict[str, Any]) -> Self:
        """Create configuration from a properties dictionary with validation."""
        return cls.model_validate(properties)


class VerifierConfig(BaseConfiguration):
    """External checker invocation."""

    command: list[str] = Field(
        min_length=1, description="Checker command line; emits JSON findings on stdout"
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Process timeout in seconds (unset: wait for the checker)",
    )

    @field_validator("command", mode="before")
    @classmethod
    def split_command_string(cls, v: Any) -> Any:  # noqa: ANN401
        """Accept a shell-style command string."""
        if isinstance(v, str):
            return shlex.split(v)
        return v


class DoctorConfig(BaseConfiguration):
    """Settings for a repair session and the built-in checks and fixers."""

    max_iterations: int = Field(
        default=25, ge=1, description="Iteration ceiling before a session is aborted"
    )
    manifest_unit: str = Field(default="DESCRIPTION", min_length=1)
    namespace_unit: str = Field(default="NAMESPACE", min_length=1)
    ignore_unit: str = Field(default=".Rbuildignore", min_length=1)
    source_dirs: list[str] = Field(default_factory=lambda: ["R"])
    source_suffixes: list[str] = Field(default_factory=lambda: [".R", ".r"])
    exclude_patterns: list[str] = Field(
        default_factory=lambda: [".git/", "*.Rcheck/", ".Rproj.user/"],
        description="Git-style patterns of files never loaded into the project state",
    )
    required_fields: list[str] = Field(
        default_factory=lambda: [
            "Package",
            "Title",
            "Version",
            "Description",
            "License",
            "Encoding",
        ]
    )
    field_defaults: dict[str, str] = Field(
        default_factory=lambda: {"Encoding": "UTF-8", "Version": "0.0.0.9000"},
        description="Values used when a required manifest field is missing",
    )
    disabled_fixers: list[str] = Field(
        default_factory=list, description="Signatures whose built-in fixer is not registered"
    )
    verifier: VerifierConfig | None = None

    def is_source_unit(self, name: str) -> bool:
        """Whether a unit name lies in a source directory with a source suffix."""
        directory, _, filename = name.rpartition("/")
        return directory in self.source_dirs and any(
            filename.endswith(suffix) for suffix in self.source_suffixes
        )


def load_config(path: Path | None = None, *, root: Path | None = None) -> DoctorConfig:
    """Load configuration from a YAML file.

    Args:
        path: Explicit configuration file. Must exist when given.
        root: Project directory searched for ``.check-doctor.yaml`` when no
            explicit path is given. A missing default file yields the defaults.

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file cannot be read, YAML is invalid, an
            environment variable is missing, or validation fails.

    """
    if path is None:
        candidate = (root or Path.cwd()) / DEFAULT_CONFIG_NAME
        if not candidate.exists():
            return DoctorConfig()
        path = candidate

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e

    if data is None:
        return DoctorConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the root")

    data = _substitute_env_vars(data, path)
    return config_from_dict(cast(dict[str, Any], data), source=str(path))


def config_from_dict(data: dict[str, Any], *, source: str = "<dict>") -> DoctorConfig:
    """Validate configuration from a dictionary without env substitution.

    Raises:
        ConfigError: If validation fails

    """
    try:
        return DoctorConfig.from_properties(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {source}: {e}") from e


def _substitute_env_vars(value: Any, path: Path) -> Any:  # noqa: ANN401
    """Recursively substitute ${VAR_NAME} patterns with environment variable values."""
    if isinstance(value, str):
        return _substitute_string(value, path)
    if isinstance(value, dict):
        dict_value = cast(dict[str, Any], value)
        return {k: _substitute_env_vars(v, path) for k, v in dict_value.items()}
    if isinstance(value, list):
        list_value = cast(list[Any], value)
        return [_substitute_env_vars(item, path) for item in list_value]
    return value


def _substitute_string(value: str, path: Path) -> str:
    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not defined "
                f"(referenced in {path})"
            )
        return env_value

    return _ENV_VAR_PATTERN.sub(replace_match, value)
