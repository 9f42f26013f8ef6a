"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import SecretStr

from reportcast.config.models import ReportcastConfig
from reportcast.config.paths import get_config_path
from reportcast.errors import ConfigurationError


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("reportcast.toml"),  # Current directory
        get_config_path(),  # ~/.reportcast/config.toml (or REPORTCAST_HOME)
    ]


def _get_nested(config: dict[str, Any], *keys: str) -> dict[str, Any] | None:
    """Get nested dict by keys, returning None if any key is missing."""
    section = config
    for key in keys:
        if key not in section or section[key] is None:
            return None
        section = section[key]
    return section


def _set_secret_from_env(section: dict[str, Any], key: str, env_var: str) -> None:
    """Set a secret value from environment if not already set."""
    if section.get(key) is None:
        value = os.environ.get(env_var)
        if value:
            section[key] = SecretStr(value)


def _resolve_env_secrets(config: dict[str, Any]) -> dict[str, Any]:
    """Resolve tokens from environment variables where not set in config."""
    simple_mappings = [
        ("source", "basic_auth_token", "SOURCE_BASIC_AUTH_TOKEN"),
        ("gateway", "api_token", "GATEWAY_API_TOKEN"),
    ]
    for parent_key, secret_key, env_var in simple_mappings:
        if (section := _get_nested(config, parent_key)) is not None:
            _set_secret_from_env(section, secret_key, env_var)
    return config


def _resolve_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply scheduler overrides from the environment.

    Environment values win over the file so a deployment can retune
    thresholds without editing the config.
    """
    overrides = [
        ("ignore_threshold_minutes", "JOB_IGNORE_FREQUENCY_MINUTES"),
        ("catch_up_threshold_minutes", "RUN_JOB_PASSED_MINUTES"),
        ("max_retries", "DELIVERY_RETRY_COUNT"),
    ]
    for key, env_var in overrides:
        value = os.environ.get(env_var)
        if value is None or value == "":
            continue
        try:
            number = int(value)
        except ValueError as e:
            raise ConfigurationError(
                f"{env_var} must be an integer, got {value!r}"
            ) from e
        config.setdefault("scheduler", {})[key] = number
    return config


def load_config(path: Path | None = None) -> ReportcastConfig:
    """Load configuration from TOML file.

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Returns:
        Validated ReportcastConfig instance.

    Raises:
        FileNotFoundError: If no config file is found.
        ValueError: If config file is invalid.
    """
    config_path: Path | None = None

    default_paths = _get_default_config_paths()

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in default_paths:
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    if config_path is None:
        raise FileNotFoundError(
            f"No config file found. Searched: {', '.join(str(p) for p in default_paths)}"
        )

    with config_path.open("rb") as f:
        raw_config = tomllib.load(f)

    raw_config = _resolve_env_secrets(raw_config)
    raw_config = _resolve_env_overrides(raw_config)

    return ReportcastConfig.model_validate(raw_config)
