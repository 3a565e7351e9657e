"""
UniqueJobs Configuration Management

Uses Pydantic v2 BaseSettings for the process-wide uniqueness defaults, with
support for environment variables, config files, and validation.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class UniqueJobsSettings(BaseSettings):
    """
    Global uniqueness configuration.

    Configuration priority:
    1. Explicit keyword arguments
    2. Environment variables (UNIQUEJOBS_*)
    3. Config file (if specified)
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="UNIQUEJOBS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Uniqueness defaults
    default_prefix: str = Field(
        default="uniquejobs",
        description="Namespace prefix for digests when a handler sets none",
    )

    args_enabled_by_default: bool = Field(
        default=False,
        description="Filter and normalize arguments for handlers that do not opt in",
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    log_format: str = Field(
        default="simple", description="Log format: 'simple' or 'structured'"
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    @field_validator("debug", "args_enabled_by_default", mode="before")
    @classmethod
    def parse_bool(cls, v):
        """Parse boolean values from environment variables, handling empty strings."""
        if isinstance(v, str):
            if v.lower() in ("", "0", "false", "f", "no", "n"):
                return False
            elif v.lower() in ("1", "true", "t", "yes", "y"):
                return True
        return v

    @field_validator("default_prefix")
    @classmethod
    def validate_default_prefix(cls, v):
        if not v or not v.strip():
            raise ValueError("default_prefix must be a non-empty string")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        valid_formats = ["simple", "structured"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return v.lower()


# Global settings instance
_settings: Optional[UniqueJobsSettings] = None


def load_settings(
    config_file: Optional[Path] = None, **overrides
) -> UniqueJobsSettings:
    """
    Build a fresh settings object, converting validation failures.

    Args:
        config_file: Optional path to a dotenv-style config file
        **overrides: Explicit values for any UniqueJobsSettings field

    Returns:
        UniqueJobsSettings instance

    Raises:
        ConfigurationError: If any value fails validation
    """
    try:
        if config_file and Path(config_file).exists():
            return UniqueJobsSettings(_env_file=str(config_file), **overrides)
        return UniqueJobsSettings(**overrides)
    except ValidationError as e:
        first = e.errors()[0]
        setting = ".".join(str(part) for part in first.get("loc", ())) or "settings"
        raise ConfigurationError(
            setting=setting,
            value=first.get("input"),
            reason=first.get("msg", str(e)),
        ) from e


def get_settings(
    config_file: Optional[Path] = None, reload: bool = False
) -> UniqueJobsSettings:
    """
    Get UniqueJobs settings with caching.

    Args:
        config_file: Optional path to config file
        reload: Force reload settings from environment

    Returns:
        UniqueJobsSettings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings(config_file=config_file)

    return _settings


def reload_settings(config_file: Optional[Path] = None) -> UniqueJobsSettings:
    """Force reload settings from environment/config file."""
    return get_settings(config_file=config_file, reload=True)
