"""Wikipedia scraper CLI entry-point.

Usage:
    python cli/main.py --help

Commands:
    scrape   → fetch articles from URLs, a URL file or a keyword search
    search   → list the articles a keyword search would scrape
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from wikiscraper.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import List, Optional

import typer

from wikiscraper.config import settings
from wikiscraper.scraper.errors import ScraperError
from wikiscraper.scraper.search import MAX_LIMIT, clamp_limit, search_titles
from wikiscraper.session.models import SessionConfig, SessionMode
from wikiscraper.session.runner import run_session

app = typer.Typer(
    name="wikiscraper",
    help="Scrape French Wikipedia articles over a hand-rolled HTTP client.",
    no_args_is_help=True,
)


def _split_urls(raw: str) -> List[str]:
    return [u.strip() for u in raw.split(",") if u.strip()]


def _interactive_config(nombre: int, output: Path) -> SessionConfig:
    """Ask the user for URLs or a keyword when no mode option was given."""
    typer.echo("\n=== Scraper Wikipedia (interactive mode) ===\n")
    typer.echo("1. Enter URLs")
    typer.echo("2. Search by keyword")
    choice = typer.prompt("Your choice (1-2)").strip()

    if choice == "1":
        urls = _split_urls(typer.prompt("Wikipedia URLs (comma separated)"))
        return SessionConfig(mode=SessionMode.URLS, urls=urls, output_dir=output)
    if choice == "2":
        keyword = typer.prompt("Keyword")
        count = typer.prompt(f"Number of results (max {MAX_LIMIT})", default=nombre, type=int)
        return SessionConfig(
            mode=SessionMode.KEYWORD, keyword=keyword, limit=clamp_limit(count), output_dir=output
        )

    typer.echo(f"[scrape] Invalid choice {choice!r}.")
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    urls: Optional[str] = typer.Option(None, "--urls", "-u", help="Comma-separated article URLs."),
    fichier: Optional[Path] = typer.Option(None, "--fichier", "-f", help="File with one URL per line."),
    mot_cle: Optional[str] = typer.Option(None, "--mot-cle", "-k", help="Keyword to search for."),
    nombre: int = typer.Option(5, "--nombre", "-n", help=f"Number of search results (1-{MAX_LIMIT})."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output root folder."),
) -> None:
    """Scrape articles and write them under a timestamped session folder."""
    output = output or settings.output_dir
    given = [name for name, value in (("urls", urls), ("fichier", fichier), ("mot-cle", mot_cle)) if value]
    if len(given) > 1:
        typer.echo(f"[scrape] Options {', '.join(given)} are mutually exclusive.")
        raise typer.Exit(1)

    if mot_cle:
        config = SessionConfig(
            mode=SessionMode.KEYWORD, keyword=mot_cle, limit=clamp_limit(nombre), output_dir=output
        )
    elif fichier:
        config = SessionConfig(mode=SessionMode.FILE, url_file=fichier, output_dir=output)
    elif urls:
        config = SessionConfig(mode=SessionMode.URLS, urls=_split_urls(urls), output_dir=output)
    else:
        config = _interactive_config(nombre, output)

    try:
        session = run_session(config)
    except ScraperError as exc:
        typer.echo(f"[scrape] ✗ {exc}")
        raise typer.Exit(1)

    typer.echo("")
    typer.echo(f"[scrape] Results in : {session.folder}")
    typer.echo(f"[scrape] Articles   : {len(session.records)}")
    if session.skipped:
        typer.echo(f"[scrape] Skipped    : {len(session.skipped)}")


@app.command("search")
def search(
    mot_cle: str = typer.Argument(..., help="Keyword to search for."),
    nombre: int = typer.Option(5, "--nombre", "-n", help=f"Number of results (1-{MAX_LIMIT})."),
) -> None:
    """Print the (title, URL) pairs returned by the search endpoint."""
    try:
        hits = search_titles(mot_cle, clamp_limit(nombre))
    except ScraperError as exc:
        typer.echo(f"[search] ✗ {exc}")
        raise typer.Exit(1)

    if not hits:
        typer.echo(f"[search] No results for {mot_cle!r}.")
        return
    for i, hit in enumerate(hits, start=1):
        typer.echo(f"  {i}. {hit.title}  {hit.url}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
