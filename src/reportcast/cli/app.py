"""Main CLI application."""

import typer

from reportcast.cli.commands import config, jobs, serve

app = typer.Typer(
    name="reportcast",
    help="reportcast - scheduled report delivery",
    no_args_is_help=True,
)

serve.register(app)
jobs.register(app)
config.register(app)


if __name__ == "__main__":
    app()
