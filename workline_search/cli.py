"""
Command-line interface for Workline Search.

Runs a single query (or a cache refresh) against The Workline and prints the
ranked results. Loads a .env file so the external search credentials can be
kept out of the config file.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Callable, Coroutine, TypeVar

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from workline_search.config import Config, load_config
from workline_search.exceptions import ConfigError
from workline_search.logging_utils import setup_logging
from workline_search.render import error_message, format_results, help_blocks
from workline_search.search import WorklineSearch
from workline_search.types import ArticleRecord

app = typer.Typer(add_completion=False, help="Search The Workline articles.")
console = Console()
logger = logging.getLogger(__name__)

T = TypeVar("T")


def _load(config: Path | None, log_level: str | None) -> Config:
    load_dotenv()
    try:
        cfg = load_config(config)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)
    if log_level:
        cfg.raw["logging"]["level"] = log_level
    setup_logging(cfg.raw)
    return cfg


def _run_or_fail(run: Callable[[], Coroutine[Any, Any, T]], *, as_blocks: bool = False) -> T:
    """Run ``run`` to completion; any failure becomes the generic retry message and exit code 1."""

    try:
        return asyncio.run(run())
    except Exception:
        # traceback stays in the debug log, users only see the retry text
        logger.debug("Command failed", exc_info=True)
        logger.error("Command failed; rerun with --log-level DEBUG for details")
        payload: dict[str, Any] = error_message()
        if as_blocks:
            typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        else:
            typer.echo(payload["text"])
        raise typer.Exit(code=1)


def _results_table(results: list[ArticleRecord]) -> Table:
    table = Table(show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Source")
    table.add_column("Article")
    for i, r in enumerate(results, start=1):
        cell = f"[bold]{r.title}[/bold]\n{r.url}"
        if r.summary:
            cell += f"\n{r.summary}"
        if r.topics:
            cell += "\n[dim]" + ", ".join(r.topics) + "[/dim]"
        table.add_row(str(i), str(r.score), r.source, cell)
    return table


@app.command()
def search(
    query: list[str] = typer.Argument(None, help="Free-text query."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, help="YAML config file."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    blocks: bool = typer.Option(False, "--blocks", help="Print chat blocks as JSON instead of a table."),
):
    """Search cached and external results for QUERY."""

    text = " ".join(query or []).strip()
    if not text:
        typer.echo(json.dumps(help_blocks(), indent=2, ensure_ascii=False))
        raise typer.Exit(code=1)

    cfg = _load(config, log_level)

    async def _run() -> list[ArticleRecord]:
        async with WorklineSearch(cfg) as ws:
            return await ws.search(text)

    results = _run_or_fail(_run, as_blocks=blocks)

    if blocks:
        typer.echo(json.dumps(format_results(text, results), indent=2, ensure_ascii=False))
        return
    if not results:
        console.print(f'No articles found for "{text}".')
        return
    console.print(_results_table(results))


@app.command()
def refresh(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, help="YAML config file."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Scrape the index page and report what was cached."""

    cfg = _load(config, log_level)

    async def _run() -> int:
        async with WorklineSearch(cfg) as ws:
            await ws.refresh()
            return len(ws.cache)

    count = _run_or_fail(_run)
    console.print(f"Cached {count} articles.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
