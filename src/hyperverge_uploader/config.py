"""Configuration loading and validation."""

import json
from enum import IntEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from hyperverge_uploader.api_client import DEFAULT_HOST, normalise_host
from hyperverge_uploader.models import Action
from hyperverge_uploader.utils import normalise_path


class ExitCode(IntEnum):
    """Process exit status, one per fatal error category."""

    OK = 0
    MISSING_PATH = 100
    CONFLICTING_PATHS = 101
    INVALID_CONFIG = 102
    INVALID_ACTION = 103
    OPERATION_FAILED = 104
    MISSING_CREDENTIALS = 105
    DIRECTORY_READ_FAILED = 106
    OUTPUT_WRITE_FAILED = 107


class ConfigurationError(Exception):
    """Exception raised for configuration problems found before any upload."""

    def __init__(self, exit_code: ExitCode, message: str) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.message = message


class Settings(BaseModel):
    """Resolved settings for one run."""

    action: Action = Action.TEST
    file: Path | None = None
    directory: Path | None = None
    output: Path | None = None
    app_id: str = Field(default="", alias="appId")
    app_key: str = Field(default="", alias="appKey")
    host: str = DEFAULT_HOST

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("file", "directory", mode="after")
    @classmethod
    def make_absolute(cls, v: Path | None) -> Path | None:
        """Resolve relative paths against the working directory."""
        return normalise_path(v) if v is not None else None

    @field_validator("host", mode="after")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        return normalise_host(v)


# CLI option name -> key used in the JSON config file
CONFIG_KEYS = {
    "action": "action",
    "file": "file",
    "directory": "directory",
    "output": "output",
    "app_id": "appId",
    "app_key": "appKey",
    "host": "host",
}


def load_config_file(config_path: Path) -> dict[str, Any]:
    """Load a JSON config file holding any of the CLI parameters.

    Raises:
        ConfigurationError: If the file is missing, unreadable or not a JSON object
    """
    path = normalise_path(config_path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            ExitCode.INVALID_CONFIG, f"Invalid path to configuration file: {path} ({e})"
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            ExitCode.INVALID_CONFIG, f"Configuration file must hold a JSON object: {path}"
        )
    return data


def resolve_settings(
    cli_values: dict[str, Any], config_path: Path | None = None
) -> Settings:
    """Merge CLI values over config file values over defaults.

    Empty CLI values (None or "") fall through to the config file.

    Args:
        cli_values: Values keyed by Settings field name
        config_path: Optional JSON config file

    Returns:
        Frozen Settings

    Raises:
        ConfigurationError: For an unreadable config file, an unknown action,
            or any invalid value
    """
    file_values = load_config_file(config_path) if config_path else {}

    merged: dict[str, Any] = {}
    for name, file_key in CONFIG_KEYS.items():
        value = cli_values.get(name)
        if value in (None, ""):
            value = file_values.get(file_key)
        if value not in (None, ""):
            merged[name] = value

    action = merged.get("action", Action.TEST)
    if action not in [a.value for a in Action]:
        raise ConfigurationError(
            ExitCode.INVALID_ACTION,
            f'{action}: Invalid action "{action}". Must be one of '
            f"{json.dumps([a.value for a in Action])}",
        )

    try:
        return Settings.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(ExitCode.INVALID_CONFIG, f"Invalid configuration: {e}") from e


def validate_for_upload(settings: Settings) -> None:
    """Check the settings an upload action needs before touching the network.

    Raises:
        ConfigurationError: If paths are missing or conflicting, or credentials are empty
    """
    if settings.file and settings.directory:
        raise ConfigurationError(
            ExitCode.CONFLICTING_PATHS,
            "Parameters for file and directory path cannot both be present. "
            "Provide one or the other.",
        )
    if not settings.file and not settings.directory:
        raise ConfigurationError(
            ExitCode.MISSING_PATH,
            "Missing file and directory path. One must be provided.",
        )
    if not settings.app_id or not settings.app_key:
        raise ConfigurationError(
            ExitCode.MISSING_CREDENTIALS,
            "Missing or invalid credentials. Check your appKey or appId value "
            "in the configuration",
        )
    if not (settings.app_id.isascii() and settings.app_key.isascii()):
        raise ConfigurationError(
            ExitCode.MISSING_CREDENTIALS,
            "Missing or invalid credentials. appKey and appId must be ASCII",
        )
