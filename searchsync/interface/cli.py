# searchsync/interface/cli.py

import json
from typing import Any, Iterable, List, NoReturn, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from searchsync.container import Container, build_container
from searchsync.domain.errors import SearchSyncError
from searchsync.domain.interfaces import SearchEnginePort
from searchsync.domain.models import IndexInfo, SearchableRecord, validate_index_name


console = Console()

app = typer.Typer(
    name="searchsync",
    help="Keep Meilisearch indexes in sync with your models.",
    add_completion=False,
    no_args_is_help=True,
)


# ── Display helpers ──────────────────────────────────────────────────────────

def display_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def display_info(message: str) -> None:
    console.print(f"[cyan]{message}[/cyan]")


def display_error(message: str) -> None:
    console.print(f"\n[bold red]✗ Error:[/bold red] {escape(message)}\n")


def display_json(data: Any, pretty: bool = True) -> None:
    if pretty:
        console.print(Syntax(json.dumps(data, indent=2, default=str), "json", word_wrap=True))
    else:
        # Plain stdout so the output stays machine-readable.
        typer.echo(json.dumps(data, default=str))


def display_search_summary(index: str, result: dict[str, Any]) -> None:
    hits = result["hits"]
    console.print(Panel.fit(
        f"[bold]{len(hits)}[/bold] of ~[bold]{result['estimatedTotalHits']}[/bold] "
        f"results [dim](in {result['processingTimeMs']}ms)[/dim]",
        title=f"[bold cyan]{index}[/bold cyan]",
        border_style="cyan",
        box=box.ROUNDED,
    ))
    if not hits:
        console.print("[dim]No results found.[/dim]")
        return
    display_json(hits)


def display_indexes(indexes: List[IndexInfo]) -> None:
    if not indexes:
        display_info("No indexes found.")
        return

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Index", style="bold")
    table.add_column("Primary Key")
    table.add_column("Updated", style="dim")
    for info in indexes:
        table.add_row(
            info.uid,
            info.primary_key or "",
            info.updated_at.isoformat() if info.updated_at else "",
        )
    console.print(table)


def display_stats(uid: str, stats: dict[str, Any]) -> None:
    display_info(f"Index: {uid}")
    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Stat", style="bold")
    table.add_column("Value")
    for key, value in stats.items():
        table.add_row(key, json.dumps(value) if isinstance(value, (dict, list)) else str(value))
    console.print(table)


def _fail(message: str) -> NoReturn:
    display_error(message)
    raise typer.Exit(code=1)


def _split_ids(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _sync_chunk(engine: SearchEnginePort, records: Iterable[SearchableRecord]) -> int:
    """Index the searchable records of one chunk and remove the rest."""
    searchable, hidden = [], []
    for record in records:
        (searchable if record.is_searchable else hidden).append(record)
    engine.index_many(searchable)
    engine.remove_many(hidden)
    return len(searchable)


# ── Commands ─────────────────────────────────────────────────────────────────

@app.callback()
def main(ctx: typer.Context) -> None:
    """Wire the container once; tests pass their own through ``obj``."""
    if ctx.obj is None:
        try:
            ctx.obj = build_container()
        except SearchSyncError as error:
            _fail(str(error))


@app.command()
def index(
    ctx: typer.Context,
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Registered model name or 'package.module:attribute'"),
    ids: Optional[str] = typer.Option(None, "--id", help="Comma-separated keys to index"),
    fresh: bool = typer.Option(False, "--fresh", help="Flush the index before indexing"),
):
    """Index every record of a model, or only the given keys."""
    container: Container = ctx.obj
    if not model:
        _fail("You must provide --model")

    try:
        binding = container.resolve_model(model)
        engine = container.engine

        if fresh:
            container.require_index_manager().flush(binding.index_name)
            display_info(f"Flushed '{binding.index_name}'.")

        if ids:
            for key in _split_ids(ids):
                record = binding.repository.find(key)
                if record is not None:
                    engine.sync(record)
            display_success("Indexed selected IDs.")
            return

        chunks = binding.repository.chunks(container.settings.batch_size)
        if chunks is None:
            chunks = [list(binding.repository.all())]

        indexed = sum(_sync_chunk(engine, chunk) for chunk in chunks)
    except SearchSyncError as error:
        _fail(str(error))

    display_success(f"Indexing complete: {indexed} record(s) in '{binding.index_name}'.")


@app.command()
def flush(
    ctx: typer.Context,
    index_name: Optional[str] = typer.Argument(None, metavar="INDEX", help="Index name (without prefix)"),
    all_indexes: bool = typer.Option(False, "--all", help="Flush every index"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Delete every document of one index, or of all of them."""
    container: Container = ctx.obj

    try:
        manager = container.require_index_manager()

        if all_indexes:
            if not force and not typer.confirm("Flush all indexes?"):
                return
            indexes = manager.get_all_indexes()
            if not indexes:
                display_info("No indexes found.")
                return
            # uids from the listing already carry the prefix.
            for info in indexes:
                manager.flush_uid(info.uid)
                console.print(f"  Flushed: {info.uid}")
            display_success("All indexes flushed.")
            return

        if not index_name:
            _fail("Specify index name or use --all")

        if not force and not typer.confirm(f"Flush index {index_name}?"):
            return
        manager.flush(index_name)
    except SearchSyncError as error:
        _fail(f"Failed to flush index: {error}")

    display_success(f"Index '{index_name}' flushed.")


@app.command()
def sync(
    ctx: typer.Context,
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Registered model name or 'package.module:attribute'"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show settings without applying"),
):
    """Push a model's index settings (filterable, sortable, custom) to Meilisearch."""
    container: Container = ctx.obj
    if not model:
        _fail("Provide --model to sync settings")

    try:
        binding = container.resolve_model(model)
        manager = container.require_index_manager()

        if dry_run:
            display_info("Dry run only; no changes applied.")
            settings = manager.build_settings_for_model(binding.prototype)
            if not settings:
                display_info("No settings to apply for this model.")
                return
            display_json(settings)
            return

        manager.sync_settings_for_model(binding.prototype)
    except SearchSyncError as error:
        _fail(str(error))

    display_success("Index settings synced.")


@app.command()
def search(
    ctx: typer.Context,
    index_name: str = typer.Argument(..., metavar="INDEX", help="Index name (without prefix)"),
    query: str = typer.Argument("", help="Search query"),
    filter_expression: Optional[str] = typer.Option(None, "--filter", help="Filter expression"),
    limit: Optional[int] = typer.Option(None, "--limit", min=0, help="Maximum number of hits [default: MEILISEARCH_SEARCH_LIMIT]"),
    raw: bool = typer.Option(False, "--raw", help="Raw JSON output"),
):
    """Run a debug search against an index."""
    container: Container = ctx.obj
    params: dict[str, Any] = {
        "limit": limit if limit is not None else container.settings.search_limit
    }
    if filter_expression:
        params["filter"] = [filter_expression]

    try:
        validate_index_name(index_name)
        result = container.require_index_manager().search_index(
            index_name, query, params, create_missing=False
        )
    except SearchSyncError as error:
        _fail(f"Search failed: {error}")

    if raw:
        display_json(result, pretty=False)
        return
    display_search_summary(index_name, result)


@app.command()
def status(
    ctx: typer.Context,
    index_name: Optional[str] = typer.Argument(None, metavar="INDEX", help="Index name (without prefix)"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List indexes, or show the stats of one index."""
    container: Container = ctx.obj

    try:
        manager = container.require_index_manager()

        if index_name:
            validate_index_name(index_name)
            uid = manager.client.prefixed_index_name(index_name)
            stats = manager.get_stats(index_name, create_missing=False)
            if as_json:
                display_json(stats, pretty=False)
            else:
                display_stats(uid, stats)
            return

        indexes = manager.get_all_indexes()
    except SearchSyncError as error:
        _fail(str(error))

    if as_json:
        display_json([info.to_dict() for info in indexes], pretty=False)
        return
    display_indexes(indexes)
