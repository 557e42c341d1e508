"""Configuration management system using Pydantic v2 and YAML.

This module provides type-safe configuration loading with validation
for the lotd-library scraper.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .exceptions import ConfigFileNotFoundError, ConfigValidationError

CONFIG_ENV_VAR = "LOTD_LIBRARY_CONFIG"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ScraperConfig(BaseModel):
    """Configuration for the page fetcher and crawl fan-out."""

    base_url: str = Field(
        default="https://legacy-of-the-dragonborn.fandom.com",
        description="Wiki host that relative article links are resolved against",
    )
    timeout: int = Field(default=30, ge=1, description="Per-request timeout in seconds")
    max_concurrency: int = Field(default=8, ge=1, description="Maximum item pages fetched at once")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header")

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate URL scheme and drop any trailing slash."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip('/')


class RetryConfig(BaseModel):
    """Retry policy for item and floor fetches."""

    max_attempts: int = Field(default=5, ge=1, description="Attempts before giving up")
    backoff_base: float = Field(default=1.0, ge=0.0, description="Delay before the first retry, in seconds")
    backoff_factor: float = Field(default=2.0, ge=1.0, description="Multiplier applied per retry")
    max_backoff: float = Field(default=30.0, ge=0.0, description="Upper bound on a single delay")

    @model_validator(mode='after')
    def validate_backoff_bounds(self) -> 'RetryConfig':
        """Ensure the cap is not below the first delay."""
        if self.max_backoff < self.backoff_base:
            raise ValueError("max_backoff must be >= backoff_base")
        return self


class ExtractionConfig(BaseModel):
    """Item page extraction settings."""

    # Pages whose layout puts extra elements between the first h2 and the
    # real acquisition block: title -> number of extra siblings to skip.
    acquisition_overrides: dict[str, int] = Field(
        default_factory=lambda: {"Treasure Map XXI": 1},
        description="Extra siblings to skip after the first h2, keyed by page title",
    )

    @field_validator('acquisition_overrides')
    @classmethod
    def validate_overrides(cls, v: dict[str, int]) -> dict[str, int]:
        """Skip counts must be non-negative."""
        for title, skip in v.items():
            if skip < 0:
                raise ValueError(f"Skip count for {title!r} must be non-negative")
        return v


class AppConfig(BaseModel):
    """Root configuration model containing all sub-configurations."""

    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Choose from: {valid_levels}")
        return v_upper


_config: Optional[AppConfig] = None


def default_config_path() -> Path:
    """Return config/config.yaml at the project root."""
    project_root = Path(__file__).parent.parent.parent
    return project_root / "config" / "config.yaml"


def load_config(config_path: Optional[Path | str] = None) -> AppConfig:
    """Load and validate configuration from a YAML file.

    Resolution order: explicit ``config_path``, the LOTD_LIBRARY_CONFIG
    environment variable, then config/config.yaml at the project root.
    Only the last one is optional: when it does not exist the built-in
    defaults are used.

    Args:
        config_path: Path to configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigFileNotFoundError: If an explicitly requested file doesn't exist
        ConfigValidationError: If the file contents are invalid
    """
    required = True
    if config_path is None:
        env_config_path = os.environ.get(CONFIG_ENV_VAR)
        if env_config_path:
            config_path = Path(env_config_path)
        else:
            config_path = default_config_path()
            required = False
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        if required:
            raise ConfigFileNotFoundError(
                f"Configuration file not found: {config_path}",
                path=str(config_path),
            )
        return AppConfig()

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Configuration file is not valid YAML: {e}",
                context={"path": str(config_path)},
            ) from e

    try:
        return AppConfig.model_validate(config_dict)
    except ValidationError as e:
        first = e.errors()[0]
        raise ConfigValidationError(
            f"Invalid configuration: {first['msg']}",
            field=".".join(str(part) for part in first['loc']),
            context={"path": str(config_path)},
        ) from e


def get_config(config_path: Optional[Path | str] = None, reload: bool = False) -> AppConfig:
    """Get configuration instance (singleton pattern).

    Args:
        config_path: Path to configuration file (only used on first call or if reload=True)
        reload: Force reload of configuration

    Returns:
        Cached or newly loaded AppConfig instance
    """
    global _config

    if _config is None or reload:
        _config = load_config(config_path)

    return _config


def reset_config() -> None:
    """Reset cached configuration (useful for testing)."""
    global _config
    _config = None
