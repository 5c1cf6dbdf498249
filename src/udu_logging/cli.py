"""
udu-logging CLI.

    udu-logging test-logging --log-level debug --meta --timestamp
    udu-logging show-config
"""

from __future__ import annotations

from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from udu_logging.config import LoggingSettings, build_sink, configure_logging
from udu_logging.errors import ConfigurationError, UnknownSeverityError
from udu_logging.instance import configure, create_instance
from udu_logging.policy import Meta
from udu_logging.severity import Severity

app = typer.Typer(
    name="udu-logging",
    help="udu-logging - structured logging facade with syslog severities.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("udu-logging")
        except Exception:
            v = "0.1.0"
        typer.echo(f"udu-logging {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """udu-logging CLI."""
    configure_logging()


def _settings(**overrides: Any) -> LoggingSettings:
    # Explicit options win over environment values
    return LoggingSettings(**{key: value for key, value in overrides.items() if value is not None})


@app.command("test-logging")
def test_logging(
    log_level: str | None = typer.Option(None, "--log-level", "--logLevel", help="Lowest level shown."),
    meta: bool | None = typer.Option(None, "--meta/--no-meta", help="Show metadata under each line."),
    timestamp: bool | None = typer.Option(None, "--timestamp/--no-timestamp", help="Prefix lines with a timestamp."),
    format: str | None = typer.Option(None, "--format", help="console | json"),
    source: str = typer.Option("udu_logging/cli.py", "--source", help="Source identity of the test logger."),
) -> None:
    """Emit one record per severity level."""
    try:
        settings = _settings(
            log_level=log_level,
            display_meta=meta,
            display_timestamp=timestamp,
            log_format=format,
        )
        configure(build_sink(settings), settings)
    except (ValueError, ConfigurationError, UnknownSeverityError) as e:
        err_console.print(f"[red]Invalid logging configuration:[/red] {e}")
        raise typer.Exit(code=2) from e

    log = create_instance(source, {"organization": "udu-admin"})
    for level in Severity:
        log.log(level, level.value, Meta(user="cli"))


@app.command("show-config")
def show_config() -> None:
    """Print the logging settings resolved from the environment."""
    try:
        settings = LoggingSettings()
    except ValueError as e:
        err_console.print(f"[red]Invalid logging configuration:[/red] {e}")
        raise typer.Exit(code=2) from e

    table = Table(title="udu-logging settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        if key == "logsene_token" and value:
            value = "****"
        table.add_row(key, str(value.value if isinstance(value, Severity) else value))
    console.print(table)


if __name__ == "__main__":
    app()
