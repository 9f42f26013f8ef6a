"""Configuration module."""

from reportcast.config.loader import load_config
from reportcast.config.models import (
    GatewayConfig,
    ReportcastConfig,
    SchedulerConfig,
    SourceConfig,
)
from reportcast.config.paths import (
    get_config_path,
    get_logs_path,
    get_output_path,
    get_reportcast_home,
)

__all__ = [
    "GatewayConfig",
    "ReportcastConfig",
    "SchedulerConfig",
    "SourceConfig",
    "get_config_path",
    "get_logs_path",
    "get_output_path",
    "get_reportcast_home",
    "load_config",
]
