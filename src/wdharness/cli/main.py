"""wdharness CLI - check a WebDriver setup from the terminal."""

import os
from typing import Annotated

import click
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

import wdharness
from wdharness.config import get_settings
from wdharness.exceptions import HarnessError
from wdharness.handle import TerminationStatus
from wdharness.logging import configure_logging, get_logger
from wdharness.registry import create_session, default_driver, list_drivers

# Configure logging early using env vars directly; -v/-vv may reconfigure later.
configure_logging(
    level=os.environ.get("WDHARNESS_LOG_LEVEL", "WARNING"),
    json_output=os.environ.get("WDHARNESS_LOG_FORMAT", "console") == "json",
)

LOG = get_logger(__name__)

app = typer.Typer(
    name="wdharness",
    help="""
    Keep a WebDriver browser under control in integration tests.

    \b
    Quick start:
      wdharness config              Show effective settings
      wdharness smoke URL           Visit, reset and quit a browser
    """,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()

_OUTCOME_STYLES: dict[TerminationStatus, str] = {
    TerminationStatus.CLEAN: "[green]clean[/green]",
    TerminationStatus.BENIGN_ERROR: "[yellow]already gone[/yellow]",
    TerminationStatus.FATAL_ERROR: "[red]error[/red]",
}


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v for info, -vv for debug)",
        ),
    ] = 0,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            click_type=click.Choice(["console", "json"]),
            help="Log output format: console (human-readable) or json (structured)",
        ),
    ] = None,
) -> None:
    """wdharness - keep a WebDriver browser under control."""
    settings = get_settings()
    json_output = (log_format or settings.log_format) == "json"

    if verbose or log_format is not None:
        level = {0: settings.log_level, 1: "INFO"}.get(verbose, "DEBUG")
        # selenium's wire-level debug output is only wanted at -vv
        configure_logging(level=level, json_output=json_output, wire_debug=verbose >= 2)


@app.command("version")
def version() -> None:
    """Show wdharness version and the configured browser."""
    settings = get_settings()
    console.print(
        Panel(
            f"[bold cyan]wdharness[/bold cyan] v{wdharness.__version__}\n\n"
            f"[dim]Browser:[/dim] {settings.browser}\n"
            f"[dim]Drivers:[/dim] {', '.join(list_drivers())}",
            title="WebDriver harness",
            border_style="cyan",
        )
    )


@app.command("config")
def show_config() -> None:
    """Show effective settings (environment and .env applied)."""
    settings = get_settings()

    table = Table(
        title="wdharness settings",
        title_style="bold",
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_column("Environment variable", style="dim")

    for name, value in settings.model_dump().items():
        display = "[dim]—[/dim]" if value is None else str(value)
        table.add_row(name, display, f"WDHARNESS_{name.upper()}")

    console.print(table)


@app.command("smoke")
def smoke(
    url: Annotated[str, typer.Argument(help="Page to visit before resetting")],
    driver: Annotated[
        str | None,
        typer.Option(
            "--driver", "-d", help="Registered driver name [default: from WDHARNESS_BROWSER]"
        ),
    ] = None,
) -> None:
    """Start a browser, visit URL, reset the session and quit.

    Reports the cookies left on the page after the reset and how the
    browser shut down.
    """
    driver = driver or default_driver(get_settings())
    if driver not in list_drivers():
        available = ", ".join(list_drivers())
        console.print(f"[red]Unknown driver '{driver}'.[/red] Available: {available}")
        raise typer.Exit(1)

    session = create_session(driver)
    failure: HarnessError | None = None
    try:
        session.visit(url)
        cookies_before = len(session.connection.get_cookies())
        session.reset()
        session.visit(url)
        cookies_after = len(session.connection.get_cookies())
    except HarnessError as exc:
        LOG.error("smoke_failed", driver=driver, url=url, error=str(exc))
        failure = exc
    finally:
        outcome = session.quit()

    if failure is not None:
        console.print(f"[red]Smoke check failed:[/red] {failure}")
        console.print(f"[dim]Quit:[/dim] {_OUTCOME_STYLES[outcome.status]}")
        raise typer.Exit(1) from failure

    console.print(
        Panel(
            f"[dim]Driver:[/dim]          {driver}\n"
            f"[dim]Cookies before:[/dim]  {cookies_before}\n"
            f"[dim]Cookies after:[/dim]   {cookies_after}\n"
            f"[dim]Quit:[/dim]            {_OUTCOME_STYLES[outcome.status]}"
            + (f"\n[dim]Quit message:[/dim]    {outcome.message}" if outcome.message else ""),
            title=url,
            border_style="green" if outcome.is_clean else "yellow",
        )
    )


def main() -> None:
    """Console script entry point."""
    app()
