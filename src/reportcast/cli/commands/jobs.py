"""Jobs command: show every job and the mode it would get right now."""

from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from reportcast.cli.console import console, dim, error, warning


def _format_delay(delay_minutes: float) -> str:
    """Format a signed delay as "12m late" / "in 1h 5m"."""
    minutes = int(abs(delay_minutes))
    hours, rest = divmod(minutes, 60)
    amount = f"{hours}h {rest}m" if hours else f"{rest}m"
    if delay_minutes < 0:
        return f"in {amount}"
    return f"{amount} ago"


def register(app: typer.Typer) -> None:
    """Register the jobs command."""

    @app.command()
    def jobs(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
    ) -> None:
        """List configured jobs and how they would be scheduled now."""
        from pydantic import ValidationError
        from rich.markup import escape
        from rich.table import Table

        from reportcast.config import load_config
        from reportcast.errors import ConfigurationError
        from reportcast.scheduling import JobRegistry, classify, compute_delay_minutes
        from reportcast.scheduling.timers import resolve_timezone

        try:
            config_obj = load_config(config)
        except (FileNotFoundError, ValidationError, ConfigurationError) as e:
            error(f"Error loading config: {e}")
            raise typer.Exit(1) from None

        registry = JobRegistry.from_entries(config_obj.jobs)
        if not len(registry) and not registry.rejected:
            warning("No jobs configured")
            return

        now = datetime.now(resolve_timezone(config_obj.timezone))
        settings = config_obj.scheduler

        table = Table(show_header=True)
        table.add_column("Report")
        table.add_column("Name")
        table.add_column("Target")
        table.add_column("Time")
        table.add_column("Recurrence")
        table.add_column("Trigger")
        table.add_column("Mode")

        for job in registry:
            recurrence = (
                f"{job.recurrence_interval_minutes}m"
                if job.recurrence_interval_minutes
                else dim("none")
            )
            try:
                delay = compute_delay_minutes(job, now)
                mode = classify(job, now, settings).describe()
                trigger = _format_delay(delay)
            except ConfigurationError as e:
                mode = f"[red]{escape(str(e))}[/red]"
                trigger = dim("?")
            table.add_row(
                job.report_id,
                job.display_name,
                job.delivery_target,
                job.time_of_day,
                recurrence,
                trigger,
                mode,
            )

        console.print(table)
        console.print(
            dim(
                f"Now: {now.strftime('%Y-%m-%d %H:%M')} {config_obj.timezone} | "
                f"ignore threshold {settings.ignore_threshold_minutes}m | "
                f"catch-up threshold {settings.catch_up_threshold_minutes}m"
            )
        )

        for rejected in registry.rejected:
            error(f"Job #{rejected.index + 1} rejected: {rejected.error}")
        if registry.rejected:
            raise typer.Exit(1)
