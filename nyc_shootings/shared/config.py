"""
NYC Shootings - Configuration Loader

Pydantic-based configuration management with:
- Environment-based configuration (dev/prod)
- YAML file loading with inheritance
- Environment variable overrides
- Type validation via Pydantic

Usage:
    from nyc_shootings.shared.config import get_config

    config = get_config()  # Uses NS_ENVIRONMENT env var
    config = get_config("dev")  # Explicit environment

    # Access config values
    borough = config.analysis.borough
    output_dir = config.output.directory
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# Configuration Models
# =============================================================================


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = "nyc-shootings"
    version: str = "0.1.0"
    description: str = "Exploratory analysis of NYPD shooting incident data"


class SourceConfig(BaseModel):
    """Source CSV download configuration."""

    url: str = "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD"
    timeout_seconds: int = 120
    user_agent: str = "nyc-shootings/0.1"


class AnalysisConfig(BaseModel):
    """Aggregation and modeling configuration."""

    borough: str = "BROOKLYN"
    unknown_label: str = "UNKNOWN"
    # Observations required beyond the number of model parameters
    min_residual_dof: int = 1


class OutputConfig(BaseModel):
    """Rendered output configuration."""

    directory: str = "output"
    figures_subdir: str = "figures"
    figure_format: Literal["png", "pdf", "svg"] = "png"
    dpi: int = 300


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: str | None = "logs/analysis.log"


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """
    Main configuration class for the shootings analysis.

    Loads configuration from:
    1. YAML files in configs/environments/
    2. Environment variables (NS_ prefix, "__" for nesting)

    Environment variables take precedence over YAML values.
    """

    model_config = SettingsConfigDict(
        env_prefix="NS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "prod"] = "dev"

    # Configuration sections
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"dev", "prod"}
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _get_config_dir() -> Path:
    """Get the configuration directory path."""
    # Try relative path from the repository root
    config_dir = Path(__file__).parent.parent.parent / "configs"
    if config_dir.exists():
        return config_dir

    # Try from current working directory
    config_dir = Path.cwd() / "configs"
    if config_dir.exists():
        return config_dir

    raise FileNotFoundError(
        "Could not find configs directory. Ensure you're running from the project root."
    )


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_config_for_environment(environment: str) -> dict[str, Any]:
    """Load and merge configuration for a specific environment."""
    env_dir = _get_config_dir() / "environments"

    base_config = _load_yaml_file(env_dir / "base.yaml")
    env_config = _load_yaml_file(env_dir / f"{environment}.yaml")

    # Remove inheritance marker if present
    env_config.pop("_inherit", None)

    merged = _deep_merge(base_config, env_config)
    merged["environment"] = environment

    return merged


@lru_cache(maxsize=4)
def get_config(environment: str | None = None) -> Settings:
    """
    Get configuration for the specified environment.

    Args:
        environment: Environment name (dev, prod).
                    If None, uses NS_ENVIRONMENT env var, defaulting to "dev".

    Returns:
        Settings: Validated configuration object.
    """
    if environment is None:
        environment = os.getenv("NS_ENVIRONMENT", "dev")

    yaml_config = _load_config_for_environment(environment)

    # Environment variables override YAML values, so only pass the YAML
    # sections that were not overridden through NS_<SECTION>__<FIELD>.
    return Settings(**_strip_env_overrides(yaml_config))


def _strip_env_overrides(yaml_config: dict[str, Any]) -> dict[str, Any]:
    """Drop YAML keys that an NS_ environment variable sets explicitly."""
    result = {}
    for section, values in yaml_config.items():
        if section == "environment" or not isinstance(values, dict):
            result[section] = values
            continue
        prefix = f"NS_{section.upper()}__"
        overridden = {
            key[len(prefix) :].lower() for key in os.environ if key.upper().startswith(prefix)
        }
        result[section] = {k: v for k, v in values.items() if k.lower() not in overridden}
    return result


def reload_config(environment: str | None = None) -> Settings:
    """
    Reload configuration, clearing the cache.

    Useful for testing or when config files have changed.
    """
    get_config.cache_clear()
    return get_config(environment)


def get_dataset_config(dataset: str) -> dict[str, Any]:
    """
    Load the per-dataset settings from configs/datasets/<dataset>.yaml.

    Returns an empty dict when the file does not exist so callers can fall
    back to their own defaults.
    """
    return _load_yaml_file(_get_config_dir() / "datasets" / f"{dataset}.yaml")


# =============================================================================
# Convenience Functions
# =============================================================================


def get_output_path(*parts: str, config: Settings | None = None) -> Path:
    """
    Get a path under the configured output directory.

    Args:
        parts: Path components below the output directory
        config: Optional config object (uses default if not provided)

    Returns:
        Path like output/figures/incidents_by_month.png
    """
    if config is None:
        config = get_config()
    return Path(config.output.directory).joinpath(*parts)
