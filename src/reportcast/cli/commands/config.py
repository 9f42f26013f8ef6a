"""Configuration management commands."""

from pathlib import Path
from typing import Annotated

import click
import typer

from reportcast.cli.console import console, error, success


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: $REPORTCAST_HOME/config.toml)",
            ),
        ] = None,
    ) -> None:
        """Manage configuration."""
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        from pydantic import ValidationError
        from rich.syntax import Syntax
        from rich.table import Table

        from reportcast.config import load_config
        from reportcast.config.paths import get_config_path
        from reportcast.errors import ConfigurationError
        from reportcast.scheduling import JobRegistry

        expanded_path = path.expanduser() if path else get_config_path()

        if action == "show":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            content = expanded_path.read_text()
            syntax = Syntax(content, "toml", theme="monokai", line_numbers=True)
            console.print(f"[bold]Config file: {expanded_path}[/bold]\n")
            console.print(syntax)

        elif action == "validate":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            try:
                config_obj = load_config(expanded_path)
                config_obj.require_source()
                config_obj.require_gateway()
            except ValidationError as e:
                error("Configuration validation failed:")
                console.print()
                for err in e.errors():
                    loc = ".".join(str(x) for x in err["loc"])
                    console.print(f"  [yellow]{loc}[/yellow]: {err['msg']}")
                raise typer.Exit(1) from None
            except ConfigurationError as e:
                error(f"Configuration validation failed: {e}")
                raise typer.Exit(1) from None
            except Exception as e:
                error(f"Error loading config: {e}")
                raise typer.Exit(1) from None

            registry = JobRegistry.from_entries(config_obj.jobs)
            settings = config_obj.scheduler

            table = Table(title="Configuration Summary")
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="green")
            table.add_row("Timezone", config_obj.timezone)
            table.add_row("Output", str(config_obj.output_dir))
            table.add_row("Ignore threshold", f"{settings.ignore_threshold_minutes}m")
            table.add_row("Catch-up threshold", f"{settings.catch_up_threshold_minutes}m")
            table.add_row("Max retries", str(settings.max_retries))
            table.add_row("Source", config_obj.require_source().api_url)
            table.add_row("Gateway", config_obj.require_gateway().url)
            table.add_row("Jobs", f"{len(registry)} valid, {len(registry.rejected)} rejected")

            if registry.rejected:
                for rejected in registry.rejected:
                    error(f"Job #{rejected.index + 1} rejected: {rejected.error}")
                console.print(table)
                raise typer.Exit(1)

            success("Configuration is valid!")
            console.print()
            console.print(table)

        else:
            error(f"Unknown action: {action}")
            console.print("Valid actions: show, validate")
            raise typer.Exit(1)
