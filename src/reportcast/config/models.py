"""Configuration models using Pydantic.

Every model is frozen: the configuration is built once at startup and
passed explicitly to the components that need it.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from reportcast.config.paths import get_output_path, get_system_timezone
from reportcast.errors import ConfigurationError


class SchedulerConfig(BaseModel):
    """Thresholds for the scheduling decision engine and delivery retries."""

    model_config = ConfigDict(frozen=True)

    # Recurrence intervals below this are collapsed into a single daily run
    ignore_threshold_minutes: int = Field(default=30, ge=0)
    # Grace window in which a missed daily trigger still runs today
    catch_up_threshold_minutes: int = Field(default=15, ge=0)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    # False restricts catch-up to trigger times that already passed today
    catch_up_future_jobs: bool = True
    # True wraps the fetch step with the delivery retry policy
    retry_fetch: bool = False


class SourceConfig(BaseModel):
    """Configuration for the report data source."""

    model_config = ConfigDict(frozen=True)

    token_url: str
    api_url: str
    basic_auth_token: SecretStr | None = None
    timeout_seconds: float = 30.0


class GatewayConfig(BaseModel):
    """Configuration for the messaging gateway."""

    model_config = ConfigDict(frozen=True)

    url: str
    api_token: SecretStr | None = None
    timeout_seconds: float = 30.0


class ReportcastConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(frozen=True)

    timezone: str = Field(default_factory=get_system_timezone)
    output_dir: Path = Field(default_factory=get_output_path)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    source: SourceConfig | None = None
    gateway: GatewayConfig | None = None
    # Raw [[jobs]] entries, validated one at a time by the job registry
    jobs: list[dict[str, Any]] = Field(default_factory=list)

    def require_source(self) -> SourceConfig:
        """Get the data source config.

        Raises:
            ConfigurationError: If no [source] section is configured.
        """
        if self.source is None:
            raise ConfigurationError("No data source configured. Add a [source] section")
        return self.source

    def require_gateway(self) -> GatewayConfig:
        """Get the messaging gateway config.

        Raises:
            ConfigurationError: If no [gateway] section is configured.
        """
        if self.gateway is None:
            raise ConfigurationError("No gateway configured. Add a [gateway] section")
        return self.gateway
