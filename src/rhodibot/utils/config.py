"""Configuration file support for rhodibot."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from rhodibot.utils.errors import ConfigurationError


class ScanConfig(BaseModel):
    """Scan execution settings."""

    model_config = {"frozen": True}

    timeout: float | None = Field(default=120.0, description="Per-repository scan timeout in seconds")
    retries: int = Field(default=2, ge=0, description="Retries for transient repository read errors")
    retry_delay: float = Field(default=1.0, ge=0, description="Initial delay between retries")
    max_workers: int = Field(default=4, ge=1, description="Concurrent repositories in a fleet scan")
    parallel: bool = Field(default=True, description="Run checkers concurrently")


class PolicySource(BaseModel):
    """Where the policy pack comes from."""

    model_config = {"frozen": True}

    path: str | None = Field(default=None, description="Policy pack YAML file")
    include_builtin: bool = Field(default=True, description="Merge the built-in RSR pack")


class OutputConfig(BaseModel):
    """Output configuration."""

    model_config = {"frozen": True}

    default_format: str = Field(default="terminal", description="Default output format")
    color: bool = Field(default=True, description="Enable color output")
    verbose: bool = Field(default=False, description="Verbose output")


class RhodibotConfig(BaseModel):
    """Main configuration for rhodibot."""

    model_config = {"frozen": True}

    scan: ScanConfig = Field(default_factory=ScanConfig)
    policy: PolicySource = Field(default_factory=PolicySource)
    output: OutputConfig = Field(default_factory=OutputConfig)


def get_config_paths() -> list[Path]:
    """Get possible configuration file paths.

    Returns:
        List of paths to check for configuration files
    """
    paths = []

    # Current directory
    paths.append(Path.cwd() / ".rhodibot.yaml")
    paths.append(Path.cwd() / ".rhodibot.yml")
    paths.append(Path.cwd() / "rhodibot.yaml")

    # Home directory
    home = Path.home()
    paths.append(home / ".rhodibot.yaml")
    paths.append(home / ".config" / "rhodibot" / "config.yaml")

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        paths.append(Path(xdg_config) / "rhodibot" / "config.yaml")

    return paths


def load_config(config_path: Path | str | None = None) -> RhodibotConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file. If None, searches default locations.

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If an explicit path is missing or any file is invalid
    """
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            return _load_config_file(path)
        raise ConfigurationError(f"Config file not found: {config_path}")

    for path in get_config_paths():
        if path.exists():
            return _load_config_file(path)

    return get_default_config()


def _load_config_file(path: Path) -> RhodibotConfig:
    """Load configuration from a specific file."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e

    if data is None:
        return get_default_config()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    try:
        return RhodibotConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e


def get_default_config() -> RhodibotConfig:
    """Get the default configuration.

    Returns:
        Default RhodibotConfig instance
    """
    return RhodibotConfig()
