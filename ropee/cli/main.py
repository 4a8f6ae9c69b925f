"""Main CLI entry point for ropee."""

import sys
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ropee import __version__
from ropee.config import Settings, get_settings
from ropee.exceptions import ConfigurationError, RopeeError
from ropee.logging_config import get_logger, setup_logging

app = typer.Typer(
    name="ropee",
    help="ropee - Prometheus remote storage gateway for Splunk",
    add_completion=True,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()
console_err = Console(stderr=True)
logger = get_logger(__name__)

REDACTED = "***REDACTED***"


def config_option():
    return typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path (defaults to ~/.ropee/config.yaml)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    )


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"ropee version: {__version__}")
        console.print(f"Python: {sys.version.split()[0]}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version information and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    ropee - Prometheus remote storage gateway

    Accepts Prometheus remote write and remote read requests and
    translates them into Splunk HEC writes and searches.
    """


def load_settings(config: Optional[Path], **overrides: Any) -> Settings:
    """Load settings from the config file and environment, then apply CLI overrides.

    Raises:
        ConfigurationError: If the merged settings are invalid
    """
    overrides = {key: value for key, value in overrides.items() if value is not None}
    try:
        settings = get_settings(config_path=config, reload=True)
        if overrides:
            settings = Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e
    return settings


def handle_error(error: Exception) -> None:
    """Handle CLI errors with user-friendly messages.

    Args:
        error: Exception to handle
    """
    if isinstance(error, RopeeError):
        console_err.print(f"\n[red]Error:[/red] {error.message}")
    else:
        console_err.print(f"\n[red]Unexpected Error:[/red] {str(error)}")
    raise typer.Exit(1)


@app.command("serve")
def serve(
    splunk_url: Optional[str] = typer.Option(
        None, "--splunk-url", help="Splunk management URL used for searches"
    ),
    splunk_hec_url: Optional[str] = typer.Option(
        None, "--splunk-hec-url", help="Splunk HTTP event collector URL"
    ),
    splunk_hec_token: Optional[str] = typer.Option(
        None, "--splunk-hec-token", help="Splunk HTTP event collector token"
    ),
    splunk_metrics_index: Optional[str] = typer.Option(
        None, "--splunk-metrics-index", help="Index name"
    ),
    splunk_metrics_sourcetype: Optional[str] = typer.Option(
        None,
        "--splunk-metrics-sourcetype",
        help="Sourcetype label for Prometheus samples",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Backend call timeout in seconds"
    ),
    listen_addr: Optional[str] = typer.Option(
        None, "--listen-addr", "-l", help="Address to listen on (host:port)"
    ),
    log_file_path: Optional[str] = typer.Option(
        None, "--log-file-path", help="Log directory, or '-' for stdout"
    ),
    debug: Optional[bool] = typer.Option(
        None, "--debug/--no-debug", help="Debug mode"
    ),
    backend: Optional[str] = typer.Option(
        None, "--backend", "-b", help="Backend store: splunk, memory"
    ),
    config: Optional[Path] = config_option(),
) -> None:
    """Start the ropee gateway.

    Examples:
        ropee serve

        ropee serve --listen-addr 0.0.0.0:9970 --splunk-hec-token $TOKEN

        ropee serve --backend memory --log-file-path - --debug
    """
    import uvicorn

    from ropee.api.app import create_app

    try:
        settings = load_settings(
            config,
            splunk_url=splunk_url,
            splunk_hec_url=splunk_hec_url,
            splunk_hec_token=splunk_hec_token,
            splunk_metrics_index=splunk_metrics_index,
            splunk_metrics_sourcetype=splunk_metrics_sourcetype,
            timeout_seconds=timeout,
            listen_addr=listen_addr,
            log_file_path=log_file_path,
            debug=debug,
            backend=backend,
        )
        setup_logging(settings)
    except (RopeeError, OSError) as e:
        handle_error(e)

    console.print("\n[bold cyan]Starting ropee gateway[/bold cyan]\n")
    console.print(f"  Listen:      {settings.listen_addr}")
    console.print(f"  Backend:     {settings.backend}")
    console.print(f"  Splunk:      {settings.splunk_url}")
    console.print(f"  HEC:         {settings.splunk_hec_url}")
    console.print(f"  Timeout:     {settings.timeout_seconds:g}s")
    console.print(
        f"  Logs:        {'stdout' if settings.log_to_stdout else settings.log_file_path}"
    )
    console.print(f"  Debug:       {settings.debug}\n")

    try:
        uvicorn.run(
            create_app(settings),
            host=settings.listen_host,
            port=settings.listen_port,
            log_config=None,
            access_log=settings.debug,
        )
    except KeyboardInterrupt:
        console.print("\n[green]Server stopped gracefully[/green]\n")
    except Exception as e:
        logger.error("server_error", error=str(e), exc_info=True)
        console_err.print(f"\n[red]Server error: {e}[/red]\n")
        raise typer.Exit(1)


def settings_rows(settings: Settings) -> list[tuple[str, str]]:
    """Flatten settings for display, with the HEC token redacted."""
    rows = []
    for name, value in settings.model_dump().items():
        if name == "splunk_hec_token" and value:
            value = REDACTED
        rows.append((name, str(value)))
    return rows


@app.command("config")
def show_config(config: Optional[Path] = config_option()) -> None:
    """
    Show the effective configuration.

    Merges the config file, ROPEE_* environment variables and defaults.
    """
    try:
        settings = load_settings(config)
    except RopeeError as e:
        handle_error(e)

    table = Table(title="ropee Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    for name, value in settings_rows(settings):
        table.add_row(name, value)
    console.print(table)


def main_cli() -> None:
    """Entry point for CLI application with error handling."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main_cli()
