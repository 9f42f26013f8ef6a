"""Centralized path management for reportcast.

All state (config, logs, rendered documents) lives under a single base
directory. The base directory can be overridden with the REPORTCAST_HOME
environment variable.

Default locations:
- Linux/macOS: ~/.reportcast
- Windows: %USERPROFILE%\\.reportcast
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "REPORTCAST_HOME"


def get_system_timezone() -> str:
    """Detect system timezone, falling back to UTC.

    Resolution order:
    1. TZ environment variable (if set)
    2. /etc/timezone file (Debian/Ubuntu)
    3. /etc/localtime symlink target (most Linux distros)
    4. Fallback to UTC

    Returns:
        IANA timezone name (e.g., "Asia/Kolkata", "Europe/London", "UTC").
    """
    if tz := os.environ.get("TZ"):
        return tz

    try:
        tz = Path("/etc/timezone").read_text().strip()
        if tz:
            return tz
    except (FileNotFoundError, PermissionError):
        pass

    try:
        link = Path("/etc/localtime").resolve()
        parts = str(link).split("zoneinfo/")
        if len(parts) > 1:
            return parts[1]
    except (FileNotFoundError, PermissionError):
        pass

    return "UTC"


@lru_cache(maxsize=1)
def get_reportcast_home() -> Path:
    """Get the base directory for all reportcast data.

    Resolution order:
    1. REPORTCAST_HOME environment variable (if set)
    2. Platform default (~/.reportcast)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".reportcast"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_reportcast_home() / "config.toml"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_reportcast_home() / "logs"


def get_output_path() -> Path:
    """Get the default directory for rendered documents."""
    return get_reportcast_home() / "output"
