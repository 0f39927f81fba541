"""Configuration loading for the multipart uploader.

Supports two configuration sources:
1. Environment variables (for CI/CD) - takes priority
2. config.json file (for local development)

Environment Variable Format:
    UPLOADER_BUCKET=xxx                  (required)
    UPLOADER_ACCESS_KEY=xxx              (required)
    UPLOADER_SECRET_KEY=xxx              (required)
    UPLOADER_ENDPOINT_URL=https://...
    UPLOADER_REGION=us-east-1
    UPLOADER_ADDRESSING_STYLE=path|virtual
    UPLOADER_FILE_PATH=/data/backup.tar
    UPLOADER_FILE_NAME=backup.tar        (defaults to the file path's base name)
    UPLOADER_TRANSFER_MODE=direct|presigned
    UPLOADER_PART_SIZE=5242880           (bytes)
    UPLOADER_URL_EXPIRY=43200            (seconds)
    UPLOADER_MAX_WORKERS=1
    UPLOADER_MAX_ATTEMPTS=1

The JSON file uses the same settings as snake_case keys, e.g.
``bucket_name``, ``aws_access_key_id``, ``part_size_threshold``.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from multipart_uploader.models import StoreConfig, TransferMode, UploaderConfig


class ConfigError(Exception):
    """Raised when configuration loading fails."""

    pass


# Required fields for a store configuration
REQUIRED_FIELDS = [
    "bucket_name",
    "aws_access_key_id",
    "aws_secret_access_key",
]

# Environment variable -> config key
ENV_FIELDS = {
    "UPLOADER_BUCKET": "bucket_name",
    "UPLOADER_ACCESS_KEY": "aws_access_key_id",
    "UPLOADER_SECRET_KEY": "aws_secret_access_key",
    "UPLOADER_ENDPOINT_URL": "endpoint_url",
    "UPLOADER_REGION": "region_name",
    "UPLOADER_ADDRESSING_STYLE": "addressing_style",
    "UPLOADER_FILE_PATH": "file_path",
    "UPLOADER_FILE_NAME": "file_name",
    "UPLOADER_TRANSFER_MODE": "transfer_mode",
    "UPLOADER_PART_SIZE": "part_size_threshold",
    "UPLOADER_URL_EXPIRY": "presigned_url_expiry_seconds",
    "UPLOADER_MAX_WORKERS": "max_workers",
    "UPLOADER_MAX_ATTEMPTS": "max_attempts",
}

INT_FIELDS = {
    "part_size_threshold",
    "presigned_url_expiry_seconds",
    "max_workers",
    "max_attempts",
}

ADDRESSING_STYLES = {"path", "virtual", "auto"}


def _parse_int(key: str, value: Any) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid integer for '{key}': {value!r}") from e
    if parsed <= 0:
        raise ConfigError(f"'{key}' must be positive, got {parsed}")
    return parsed


def build_config(values: dict[str, Any]) -> UploaderConfig:
    """Validate raw settings and build an UploaderConfig.

    Args:
        values: Settings keyed by snake_case field name.

    Raises:
        ConfigError: If a required field is missing or a value is malformed.
    """
    for field in REQUIRED_FIELDS:
        if not values.get(field):
            raise ConfigError(f"Missing required field '{field}'")

    addressing_style = values.get("addressing_style") or "path"
    if addressing_style not in ADDRESSING_STYLES:
        raise ConfigError(
            f"Invalid addressing_style {addressing_style!r}. "
            f"Expected one of: {', '.join(sorted(ADDRESSING_STYLES))}"
        )

    mode_value = values.get("transfer_mode") or TransferMode.DIRECT.value
    try:
        transfer_mode = TransferMode(str(mode_value).lower())
    except ValueError as e:
        raise ConfigError(
            f"Invalid transfer_mode {mode_value!r}. Expected 'direct' or 'presigned'"
        ) from e

    ints = {key: _parse_int(key, values[key]) for key in INT_FIELDS if values.get(key) is not None}

    store = StoreConfig(
        bucket_name=values["bucket_name"],
        aws_access_key_id=values["aws_access_key_id"],
        aws_secret_access_key=values["aws_secret_access_key"],
        endpoint_url=values.get("endpoint_url") or None,
        region_name=values.get("region_name") or None,
        addressing_style=addressing_style,
    )
    return UploaderConfig(
        store=store,
        file_path=values.get("file_path") or None,
        file_name=values.get("file_name") or None,
        transfer_mode=transfer_mode,
        **ints,
    )


def load_from_json(config_path: str) -> UploaderConfig:
    """Load the uploader configuration from a JSON file.

    Raises:
        ConfigError: If the file doesn't exist, contains invalid JSON,
                    or is missing required fields.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")

    return build_config(data)


def load_from_env() -> UploaderConfig:
    """Load the uploader configuration from UPLOADER_* environment variables.

    Raises:
        ConfigError: If required variables are missing or values are malformed.
    """
    values = {}
    for env_key, field in ENV_FIELDS.items():
        value = os.environ.get(env_key)
        if value:
            values[field] = value

    for field in REQUIRED_FIELDS:
        if field not in values:
            env_key = next(k for k, v in ENV_FIELDS.items() if v == field)
            raise ConfigError(f"Missing environment variable: {env_key}")

    return build_config(values)


def has_env_config() -> bool:
    """Check if the uploader is configured through the environment."""
    return bool(os.environ.get("UPLOADER_BUCKET"))


def load_config(config_path: Optional[str] = "config.json") -> UploaderConfig:
    """Load configuration with environment priority.

    Priority order:
    1. Environment variables (if UPLOADER_BUCKET is set)
    2. config.json file

    Raises:
        ConfigError: If neither source is available.
    """
    if has_env_config():
        return load_from_env()
    if config_path and Path(config_path).exists():
        return load_from_json(config_path)

    raise ConfigError(
        "No configuration found. Set UPLOADER_* environment variables "
        "or create a config.json file."
    )
