"""
Configuration management for cdxhistory.
Loads and validates settings from YAML files and environment variables.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field


class CdxConfig(BaseModel):
    """CDX index server configuration.

    Attributes:
        server_url: Base URL of the CDX endpoint (e.g. an OutbackCDX collection).
            Required before the history loader can start.
        query_limit: Maximum number of CDX lines requested per lookup.
        timeout_seconds: Read/write/pool timeout for a lookup request.
        connect_timeout_seconds: Timeout for establishing the connection.
        user_agent: User-Agent header sent to the index server.
    """

    model_config = ConfigDict(extra="forbid")

    server_url: str | None = None
    query_limit: int = Field(default=10, ge=1)
    timeout_seconds: float = Field(default=30.0, gt=0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    user_agent: str = "cdxhistory/0.1.0"


class GeneralConfig(BaseModel):
    """General configuration."""

    project_name: str = "cdxhistory"
    version: str = "0.1.0"
    log_level: str = "INFO"
    logs_dir: str = "logs"
    log_to_file: bool = False


class Settings(BaseModel):
    """Main settings container."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    cdx: CdxConfig = Field(default_factory=CdxConfig)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary.
        override: Override dictionary.

    Returns:
        Merged dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML mapping, returning an empty dict when the file is absent or empty."""
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _load_yaml_config(config_dir: Path) -> dict[str, Any]:
    """Load main settings configuration.

    Loads settings.yaml, then applies the ``settings`` section of local.yaml.

    Example local.yaml:
        settings:
          cdx:
            server_url: http://localhost:8080/mycollection

    Args:
        config_dir: Configuration directory path.

    Returns:
        Merged configuration dictionary.
    """
    config = _load_yaml_file(config_dir / "settings.yaml")

    local_overrides = _load_yaml_file(config_dir / "local.yaml")
    if "settings" in local_overrides:
        config = _deep_merge(config, local_overrides["settings"] or {})

    return config


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides.

    Environment variables should be prefixed with CDXHISTORY_ and use
    double underscores for nested keys.

    Example:
        CDXHISTORY_CDX__SERVER_URL=http://localhost:8080/web
        CDXHISTORY_GENERAL__LOG_LEVEL=DEBUG

    Args:
        config: Configuration dictionary.

    Returns:
        Configuration with environment overrides.
    """
    prefix = "CDXHISTORY_"

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        key_path = key[len(prefix) :].lower().split("__")
        # CDXHISTORY_CONFIG_DIR and similar flat variables are not settings
        if len(key_path) < 2:
            continue

        current = config
        for part in key_path[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        final_key = key_path[-1]
        try:
            if value.lower() in ("true", "false"):
                current[final_key] = value.lower() == "true"
            elif "." in value:
                current[final_key] = float(value)
            else:
                current[final_key] = int(value)
        except ValueError:
            current[final_key] = value

    return config


def get_config_dir() -> Path:
    """Get the configuration directory (CDXHISTORY_CONFIG_DIR, default ``config``)."""
    return Path(os.environ.get("CDXHISTORY_CONFIG_DIR", "config"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get application settings.

    Settings are loaded from:
    1. Default values
    2. YAML configuration files (settings.yaml, then local.yaml)
    3. Environment variables (highest priority)

    Returns:
        Settings instance.
    """
    config = _load_yaml_config(get_config_dir())
    config = _apply_env_overrides(config)
    return Settings(**config)


def get_project_root() -> Path:
    """Get the project root directory.

    Returns:
        Project root path.
    """
    # Assuming this file is at cdxhistory/utils/config.py
    return Path(__file__).parent.parent.parent
