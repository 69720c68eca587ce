"""Preprocess command - show the slimmed page sent to the AI service."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from listingscope.core.backends import FetchError
from listingscope.core.config import FetchConfig
from listingscope.core.extract import DocumentError
from listingscope.core.remote import format_size, html_size, preprocess_html

from .source import is_url, load_page

console = Console()
err_console = Console(stderr=True)


def preprocess_command(
    source: str = typer.Argument(..., help="Listing URL or path to a saved HTML file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the cleaned HTML to a file"),
) -> None:
    """Print a page's cleaned HTML and the size reduction."""
    if not is_url(source) and not Path(source).is_file():
        err_console.print(f"[red]No such file:[/red] {source}")
        raise typer.Exit(1)

    try:
        page = asyncio.run(load_page(source, None, FetchConfig()))
    except (FetchError, OSError) as e:
        err_console.print(f"[red]Cannot load {source}:[/red] {e}")
        raise typer.Exit(1)

    try:
        cleaned = preprocess_html(page.html)
    except DocumentError as e:
        err_console.print(f"[red]Cannot parse page:[/red] {e}")
        raise typer.Exit(1)

    if output:
        output.write_text(cleaned, encoding="utf-8")
        console.print(f"[green]Saved cleaned HTML to {output}[/green]")
    else:
        console.print(cleaned, markup=False, highlight=False, soft_wrap=True)

    original_size = html_size(page.html)
    cleaned_size = html_size(cleaned)
    ratio = round(cleaned_size / original_size * 100) if original_size else 0
    err_console.print(
        f"[dim]{format_size(original_size)} -> {format_size(cleaned_size)} ({ratio}%)[/dim]"
    )
