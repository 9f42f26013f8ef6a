"""Serve command: schedule every configured job and run until stopped."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
        log_file: Annotated[
            bool,
            typer.Option(
                "--log-file/--no-log-file",
                help="Also write JSONL logs under $REPORTCAST_HOME/logs",
            ),
        ] = True,
    ) -> None:
        """Start the scheduler."""
        try:
            asyncio.run(_run_scheduler(config, log_file))
        except KeyboardInterrupt:
            # Use print here since logging may not be configured yet
            print("\nScheduler stopped")


async def _run_scheduler(config_path: Path | None, log_file: bool) -> None:
    import signal as signal_module

    from pydantic import ValidationError

    from reportcast.cli.console import error
    from reportcast.config import load_config
    from reportcast.errors import ConfigurationError
    from reportcast.logging import configure_logging
    from reportcast.runtime import build_runtime

    configure_logging(use_rich=True, log_to_file=log_file)

    logger.info("config_loading", extra={"config.path": str(config_path or "default")})
    try:
        config = load_config(config_path)
        runtime = build_runtime(config)
    except (FileNotFoundError, ValidationError, ConfigurationError) as e:
        error(f"Cannot start: {e}")
        raise typer.Exit(1) from None

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal_module.SIGTERM, signal_module.SIGINT):
        loop.add_signal_handler(sig, stop_event.set)

    await runtime.run_forever(stop_event)
