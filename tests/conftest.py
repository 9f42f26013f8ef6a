"""Shared test fixtures and factories."""

from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from reportcast.config.models import SchedulerConfig
from reportcast.config.paths import ENV_VAR, get_reportcast_home
from reportcast.errors import GatewayError
from reportcast.reports.types import Artifact, Row
from reportcast.scheduling.types import JobCallback, JobDefinition

# Environment variables read by the config loader
_CONFIG_ENV_VARS = (
    "SOURCE_BASIC_AUTH_TOKEN",
    "GATEWAY_API_TOKEN",
    "JOB_IGNORE_FREQUENCY_MINUTES",
    "RUN_JOB_PASSED_MINUTES",
    "DELIVERY_RETRY_COUNT",
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point REPORTCAST_HOME at a temp dir and clear config env vars."""
    home = tmp_path / "home"
    monkeypatch.setenv(ENV_VAR, str(home))
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_reportcast_home.cache_clear()
    yield home
    get_reportcast_home.cache_clear()


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def settings() -> SchedulerConfig:
    """Scheduler settings matching the documented scenarios."""
    return SchedulerConfig(
        ignore_threshold_minutes=30,
        catch_up_threshold_minutes=15,
        max_retries=3,
    )


@pytest.fixture
def config_toml_content() -> str:
    """Valid TOML config content."""
    return """
timezone = "UTC"

[scheduler]
ignore_threshold_minutes = 30
catch_up_threshold_minutes = 15
max_retries = 2

[source]
token_url = "https://auth.example.com/token"
api_url = "https://reports.example.com/query"
basic_auth_token = "Basic dXNlcjpwYXNzd29yZA=="

[gateway]
url = "https://gateway.example.com/send"
api_token = "gateway-token-123456"

[[jobs]]
report_id = "daily_sales"
display_name = "Daily Sales"
delivery_target = "sales-team"
time = "09:00"

[[jobs]]
report_id = "stock_levels"
display_name = "Stock Levels"
delivery_target = "ops"
time = "07:30"
recurrence_minutes = 60
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_toml_content)
    return config_path


# =============================================================================
# Job Factories
# =============================================================================


def make_job(
    report_id: str = "daily_sales",
    *,
    hour: int = 9,
    minute: int = 0,
    recurrence: int | None = None,
    delivery_target: str = "sales-team",
    display_name: str | None = None,
) -> JobDefinition:
    """Factory for creating job definitions."""
    return JobDefinition(
        report_id=report_id,
        delivery_target=delivery_target,
        display_name=display_name or report_id.replace("_", " ").title(),
        hour=hour,
        minute=minute,
        recurrence_interval_minutes=recurrence,
    )


def at(hour: int, minute: int, *, day: int = 14) -> datetime:
    """A naive wall-clock time on a fixed date."""
    return datetime(2026, 3, day, hour, minute)


# =============================================================================
# Collaborator Fakes
# =============================================================================


class FakeTimerService:
    """Records registrations instead of running timers."""

    def __init__(self, now: datetime | None = None):
        self._now = now or at(12, 0)
        self.once: list[tuple[int, int, JobCallback, str | None]] = []
        self.recurring: list[tuple[int, JobCallback, str | None]] = []
        self.spawned: list[tuple[JobCallback, str | None]] = []

    def now(self) -> datetime:
        return self._now

    def schedule_once(self, hour, minute, callback, name=None):
        self.once.append((hour, minute, callback, name))

    def schedule_recurring(self, interval_minutes, callback, name=None):
        self.recurring.append((interval_minutes, callback, name))

    def spawn(self, callback, name=None):
        self.spawned.append((callback, name))


class FakeDataSource:
    """Returns canned rows, or raises the queued errors first."""

    def __init__(self, rows: list[Row] | None = None, errors: list[Exception] | None = None):
        self.rows = rows if rows is not None else [{"total": 42}]
        self.errors = list(errors or [])
        self.calls: list[str] = []

    async def fetch(self, report_id: str) -> list[Row]:
        self.calls.append(report_id)
        if self.errors:
            raise self.errors.pop(0)
        return self.rows


class FakeGateway:
    """Fails the first `failures` deliveries, then succeeds."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls: list[tuple[str, Artifact]] = []
        self.seen_files: list[bool] = []

    async def deliver(self, delivery_target: str, artifact: Artifact) -> None:
        self.calls.append((delivery_target, artifact))
        if artifact.path is not None:
            self.seen_files.append(artifact.path.exists())
        if len(self.calls) <= self.failures:
            raise GatewayError("503 Service Unavailable", status_code=503)


class RecordingSleep:
    """Async sleep stand-in that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_timers() -> FakeTimerService:
    return FakeTimerService()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# =============================================================================
# CLI Test Helpers
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})


@pytest.fixture
def wide_console(monkeypatch: pytest.MonkeyPatch):
    """Widen the shared console so table cells are not wrapped."""
    from reportcast.cli.console import console

    monkeypatch.setattr(console, "width", 200)
    return console


def job_entry(**overrides: Any) -> dict[str, Any]:
    """A raw [[jobs]] config entry."""
    entry: dict[str, Any] = {
        "report_id": "daily_sales",
        "display_name": "Daily Sales",
        "delivery_target": "sales-team",
        "time": "09:00",
    }
    entry.update(overrides)
    return entry
