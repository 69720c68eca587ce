"""
Extract command - turn a listing page into a normalized listing.

Works on a live URL or a saved HTML file. The ``--ai`` mode sends the
slimmed page to the remote extraction service instead.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from listingscope.core.backends import FetchError
from listingscope.core.config import AppConfig, ConfigError, load_app_config
from listingscope.core.extract import DocumentError
from listingscope.core.logging import setup_logging
from listingscope.core.normalize import Listing
from listingscope.core.orchestrator import ExtractionPipeline
from listingscope.core.remote import (
    RemoteExtractionClient,
    format_size,
    html_size,
    preprocess_html,
)

from .source import PageSource, is_url, load_page

console = Console()
err_console = Console(stderr=True)


def extract_command(
    source: str = typer.Argument(..., help="Listing URL or path to a saved HTML file"),
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="Page URL of a saved file (used for site detection and links)",
    ),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Base URL for relative links"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save the listing to a JSON file"),
    ai: bool = typer.Option(False, "--ai", help="Use the remote AI extraction service"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to app.yaml"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Log level"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Write JSON logs to this file"),
) -> None:
    """Extract a listing from a page.

    Examples:

        # Live page
        listingscope extract https://www.zillow.com/homedetails/123

        # Saved page, with its original URL
        listingscope extract page.html --url https://www.rightmove.co.uk/properties/1

        # Remote AI extraction
        listingscope extract page.html --url https://example.com/ad/1 --ai
    """
    config = _load_config(config_path)
    setup_logging(
        level=log_level or config.log_level,
        log_file=log_file or config.log_file,
    )

    if not is_url(source) and not Path(source).is_file():
        err_console.print(f"[red]No such file:[/red] {source}")
        raise typer.Exit(1)

    if not is_url(source) and url is None:
        err_console.print("[yellow]No --url given; site adapters and relative links will not apply.[/yellow]")

    listing = asyncio.run(_run_extract(source, url, base_url, ai, config))

    data = listing.to_dict()
    _display_summary(listing)
    console.print_json(json.dumps(data, ensure_ascii=False))

    if output:
        output.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"\n[green]Saved listing to {output}[/green]")


def _load_config(config_path: Path | None) -> AppConfig:
    try:
        return load_app_config(config_path)
    except ConfigError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)


async def _run_extract(
    source: str,
    url: str | None,
    base_url: str | None,
    ai: bool,
    config: AppConfig,
) -> Listing:
    try:
        page = await load_page(source, url, config.fetch)
    except FetchError as e:
        err_console.print(f"[red]Fetch failed:[/red] {e}")
        raise typer.Exit(1)
    except OSError as e:
        err_console.print(f"[red]Cannot read {source}:[/red] {e}")
        raise typer.Exit(1)

    pipeline = ExtractionPipeline(settings=config.extraction)

    if ai:
        return await _run_remote(page, pipeline, config)

    try:
        return await pipeline.extract(page.html, page.url, base_url)
    except DocumentError as e:
        err_console.print(f"[red]Cannot parse page:[/red] {e}")
        raise typer.Exit(1)


async def _run_remote(page: PageSource, pipeline: ExtractionPipeline, config: AppConfig) -> Listing:
    try:
        cleaned = preprocess_html(page.html)
    except DocumentError as e:
        err_console.print(f"[red]Cannot parse page:[/red] {e}")
        raise typer.Exit(1)

    original_size = html_size(page.html)
    cleaned_size = html_size(cleaned)
    ratio = round(cleaned_size / original_size * 100) if original_size else 0
    err_console.print(
        f"[dim]HTML preprocessed: {format_size(original_size)} -> {format_size(cleaned_size)} ({ratio}%)[/dim]"
    )

    client = RemoteExtractionClient(config.remote)
    with err_console.status("[cyan]Waiting for the extraction service..."):
        result = await client.parse(cleaned, page.url)

    if not result.ok or result.listing is None:
        reason = result.error.value if result.error else "unknown"
        detail = f" (status {result.status})" if result.status else ""
        err_console.print(f"[red]Remote extraction failed:[/red] {reason}{detail}")
        if result.error and result.error.value.endswith("credential"):
            err_console.print("[dim]Set LISTINGSCOPE_TOKEN or remote.token in app.yaml[/dim]")
        elif result.body:
            err_console.print(f"[dim]{result.body[:500]}[/dim]")
        raise typer.Exit(1)

    return pipeline.stamp_remote(result.listing, page.url)


def _display_summary(listing: Listing) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    price = listing.price
    area = listing.area
    rows = [
        ("Title", listing.title),
        ("Price", f"{price.amount:,.0f} {price.currency or ''}".strip() if price and price.amount is not None else None),
        ("Area", f"{area.value:g} {area.unit or ''}".strip() if area and area.value is not None else None),
        ("Address", listing.address.display if listing.address else None),
        ("Deal", listing.transaction_type),
        ("Images", str(len(listing.images)) if listing.images else None),
        ("Method", listing.source.method.value if listing.source else None),
    ]
    for name, value in rows:
        table.add_row(name, value if value is not None else "[dim]-[/dim]")

    err_console.print(table)
    err_console.print()
