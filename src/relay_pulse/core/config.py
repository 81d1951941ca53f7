"""Configuration system for relay-pulse application.

This module implements the main configuration schema using Pydantic for
validation, with support for environment variable resolution and fail-fast
validation with actionable error messages.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Final

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from relay_pulse.core.exceptions import ConfigurationError, EnvironmentVariableError
from relay_pulse.types.models import BubbleConfig

# Matches ${VARIABLE_NAME} syntax where VARIABLE_NAME can contain letters, digits, and underscores
ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Z0-9_]+)\}")

DEFAULT_STATUS_URL: Final[str] = "https://relaypulse.top/api/status?period=24h"

MIN_INTERVAL_MS: Final[int] = 1_000
MAX_INTERVAL_MS: Final[int] = 60_000
DEFAULT_INTERVAL_MS: Final[int] = 5_000

MIN_BUBBLE_SIZE: Final[int] = 80
MAX_BUBBLE_SIZE: Final[int] = 200
BUBBLE_SIZE_STEP: Final[int] = 10

# List filter sentinel meaning "unfiltered"
ALL: Final[str] = "all"


class SourceConfig(BaseModel):
    """Configuration for the status endpoint."""

    url: Annotated[
        str,
        Field(
            description="Status endpoint returning a JSON object with a 'data' list",
            pattern=r"^https?://",
        ),
    ] = DEFAULT_STATUS_URL
    timeout_seconds: Annotated[
        float,
        Field(
            gt=0,
            description="Request timeout in seconds",
        ),
    ] = 10.0


class PollingConfig(BaseModel):
    """Configuration for the status poll loop."""

    interval_ms: Annotated[
        int,
        Field(
            ge=MIN_INTERVAL_MS,
            le=MAX_INTERVAL_MS,
            description="Initial poll interval in milliseconds",
        ),
    ] = DEFAULT_INTERVAL_MS


class StoreConfig(BaseModel):
    """Configuration for the persisted settings store."""

    path: Annotated[
        Path,
        Field(description="JSON file backing the settings store"),
    ] = Path("settings.json")

    @field_validator("path", mode="after")
    @classmethod
    def validate_not_directory(cls, v: Path) -> Path:
        """Validate that the store path is not an existing directory.

        Args:
            v: Store file path

        Returns:
            Validated path

        Raises:
            ValueError: If the path points at a directory
        """
        if v.is_dir():
            msg = f"Store path must be a file, not a directory: {v}"
            raise ValueError(msg)
        return v


class FiltersConfig(BaseModel):
    """Initial list filter selection for the card view."""

    provider: str = "88code"
    service: str = ALL
    channel: str = ALL


class BubbleDefaultsConfig(BaseModel):
    """Default bubble configuration used until one is persisted."""

    enabled: bool = False
    provider: str = "88code"
    service: str = "cc"
    channel: str = ""
    size: Annotated[
        int,
        Field(
            ge=MIN_BUBBLE_SIZE,
            le=MAX_BUBBLE_SIZE,
            description="Bubble window edge length in logical pixels",
        ),
    ] = 120

    def to_bubble_config(self) -> BubbleConfig:
        """Convert to the runtime BubbleConfig value."""
        return BubbleConfig(
            enabled=self.enabled,
            provider=self.provider,
            service=self.service,
            channel=self.channel,
            size=self.size,
        )


class WindowConfig(BaseModel):
    """Card window defaults and timeline rendering options."""

    card_width: Annotated[int, Field(gt=0)] = 520
    card_height: Annotated[int, Field(gt=0)] = 320
    recent_samples: Annotated[
        int,
        Field(
            gt=0,
            description="Number of timeline samples shown in the bar strip",
        ),
    ] = 24


class ApplicationConfig(BaseModel):
    """Configuration for application-level settings."""

    log_level: Annotated[
        str,
        Field(
            description="Logging level",
            pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        ),
    ] = "INFO"
    syslog_enabled: Annotated[
        bool,
        Field(
            description="Enable syslog integration",
        ),
    ] = False


class MainConfig(BaseModel):
    """Main application configuration schema.

    Every section carries defaults, so ``MainConfig()`` is a complete
    configuration for running against the public status endpoint.
    """

    source: SourceConfig = SourceConfig()
    polling: PollingConfig = PollingConfig()
    store: StoreConfig = StoreConfig()
    filters: FiltersConfig = FiltersConfig()
    bubble: BubbleDefaultsConfig = BubbleDefaultsConfig()
    window: WindowConfig = WindowConfig()
    application: ApplicationConfig = ApplicationConfig()


def resolve_env_var(value: str) -> str:
    """Resolve environment variable references in a string value.

    Args:
        value: String potentially containing ${VARIABLE_NAME} references

    Returns:
        String with environment variables resolved

    Raises:
        EnvironmentVariableError: If a referenced environment variable is missing

    Examples:
        >>> os.environ["STATUS_HOST"] = "example.com"
        >>> resolve_env_var("https://${STATUS_HOST}/api")
        'https://example.com/api'
    """

    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)

        if env_value is None:
            msg = (
                f"Required environment variable '{var_name}' is not set. "
                f"Please set this variable before starting the application."
            )
            raise EnvironmentVariableError(msg)

        return env_value

    return ENV_VAR_PATTERN.sub(replace_match, value)


def resolve_env_vars_in_dict(data: Mapping[str, object]) -> dict[str, object]:
    """Recursively resolve environment variables in a dictionary.

    Traverses nested dictionaries and lists, resolving environment variable
    references in string values. Non-string values are preserved as-is.

    Args:
        data: Dictionary potentially containing environment variable references

    Returns:
        New dictionary with environment variables resolved

    Raises:
        EnvironmentVariableError: If a required environment variable is missing
    """
    result: dict[str, object] = {}

    for key, value in data.items():
        if isinstance(value, str):
            result[key] = resolve_env_var(value)
        elif isinstance(value, dict):
            # YAML data is untyped at load time; validated by Pydantic after resolution
            result[key] = resolve_env_vars_in_dict(value)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
        elif isinstance(value, list):
            resolved_list: list[object] = []
            for item in value:  # pyright: ignore[reportUnknownVariableType]  # YAML list items
                if isinstance(item, str):
                    resolved_list.append(resolve_env_var(item))
                elif isinstance(item, dict):
                    resolved_list.append(resolve_env_vars_in_dict(item))  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
                else:
                    resolved_list.append(item)  # pyright: ignore[reportUnknownArgumentType]  # YAML primitives
            result[key] = resolved_list
        else:
            result[key] = value

    return result


def load_main_config(config_path: Path) -> MainConfig:
    """Load and validate main application configuration from YAML file.

    Args:
        config_path: Path to main configuration YAML file

    Returns:
        Validated MainConfig instance

    Raises:
        ConfigurationError: If configuration file cannot be loaded or is invalid
    """
    if not config_path.exists():
        msg = (
            f"Configuration file not found: {config_path}\n"
            f"Please create a configuration file at this location.\n"
            f"See documentation for configuration file format."
        )
        raise ConfigurationError(msg, {"config_path": str(config_path)})

    try:
        with config_path.open("r") as f:
            raw_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
    except yaml.YAMLError as e:
        msg = (
            f"Failed to parse YAML configuration file: {config_path}\n"
            f"YAML parsing error: {e}\n"
            f"Please check the file for syntax errors."
        )
        raise ConfigurationError(msg) from e
    except OSError as e:
        msg = f"Failed to read configuration file: {config_path}\nError: {e}\nPlease check file permissions."
        raise ConfigurationError(msg) from e

    # An empty file is a valid "all defaults" configuration
    if raw_data is None:
        raw_data = {}

    if not isinstance(raw_data, dict):
        msg = (
            f"Invalid configuration file format: {config_path}\n"
            f"Expected YAML dictionary at root level, got: {type(raw_data).__name__}\n"
            f"Configuration file must contain key-value pairs."
        )
        raise ConfigurationError(msg)

    try:
        resolved_data = resolve_env_vars_in_dict(raw_data)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
    except EnvironmentVariableError as e:
        msg = (
            f"Environment variable resolution failed in: {config_path}\n"
            f"{e}\n"
            f"Set the required environment variable before starting the application."
        )
        raise ConfigurationError(msg) from e

    try:
        config = MainConfig.model_validate(resolved_data)
    except ValidationError as e:
        error_lines = ["Configuration validation failed:", ""]
        for error in e.errors():
            field_path = " → ".join(str(loc) for loc in error["loc"])
            error_lines.append(f"  Field: {field_path}")
            error_lines.append(f"  Error: {error['msg']}")
            error_lines.append(f"  Type: {error['type']}")
            error_lines.append("")

        error_lines.append(f"Configuration file: {config_path}")
        error_lines.append("Please fix the above errors and try again.")

        raise ConfigurationError("\n".join(error_lines)) from e

    return config
