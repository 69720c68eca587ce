"""
ListingScope CLI - Main entry point.

Extracts normalized real-estate listings from listing pages, either
locally with the heuristic extractors or through the remote AI service.
"""

from __future__ import annotations

from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.traceback import install as install_rich_traceback

from listingscope import __app_name__, __version__

# Load environment variables from .env (if present)
load_dotenv()

# Install rich traceback for better error display
install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name=__app_name__,
    help="Real-estate listing extraction from listing pages",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """ListingScope - Real-estate listing extraction."""
    pass


# =============================================================================
# Register command modules
# =============================================================================

from .commands import extract, preprocess  # noqa: E402

app.command(name="extract")(extract.extract_command)
app.command(name="preprocess")(preprocess.preprocess_command)


# =============================================================================
# Adapters Command
# =============================================================================


@app.command()
def adapters() -> None:
    """List the registered site adapters in matching order."""
    from rich.table import Table

    from listingscope.core.sites import SITE_ADAPTERS

    table = Table(title="Site Adapters", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Hostname Pattern")

    for position, adapter in enumerate(SITE_ADAPTERS, start=1):
        table.add_row(str(position), adapter.name, adapter.pattern.pattern)

    console.print(table)
    console.print("[dim]Pages from other sites use the generic extractor.[/dim]")


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
