"""Typer-based CLI entry point."""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .application.services import DatabaseTickSource, SqliteRecordSource
from .config import DB_FILE_NAME
from .cache.record_store import RecordRepository
from .domain.models import Filter, Level, MarkerKind, Row, WindowState
from .errors import (
    InvalidFilterError,
    RecordNotFoundError,
    RecordScopeError,
    SettingsError,
)
from .events import EventBus
from .gui.ui.flash import is_flash_active
from .gui.viewmodels import EventBusTickTransport, RecordWindowViewModel
from .settings import SettingsManager
from .utils.clock import format_timestamp, now_ms
from .utils.console_logger import ensure_console_logger
from .utils.jsonio import iter_json_lines
from .utils.logging import get_logger

app = typer.Typer(help="Inspect and follow a SQLite record log")
config_app = typer.Typer(help="Read and change settings")
app.add_typer(config_app, name="config")

console = Console()

LEVEL_STYLES = {
    Level.TRACE: "dim",
    Level.DEBUG: "cyan",
    Level.INFO: "green",
    Level.WARN: "yellow",
    Level.ERROR: "bold red",
}

INGEST_BATCH_SIZE = 500


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (InvalidFilterError, RecordNotFoundError, SettingsError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except RecordScopeError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _settings(ctx: typer.Context) -> SettingsManager:
    return ctx.obj["settings"]


@app.callback()
def main(
    ctx: typer.Context,
    settings_path: Optional[Path] = typer.Option(
        None, "--settings", help="Settings file (defaults to the per-user location)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine activity"),
) -> None:
    ensure_console_logger(
        get_logger(), "recordscope-cli", level=logging.DEBUG if verbose else logging.WARNING
    )
    manager = SettingsManager(settings_path)
    try:
        manager.load()
    except SettingsError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
    ctx.obj = {"settings": manager}


def _database_file(path: Path) -> Path:
    """A directory stands for the default database file inside it."""
    return path / DB_FILE_NAME if path.is_dir() else path


def _resolve_db(ctx: typer.Context, db: Optional[Path]) -> Path:
    path = db or _settings(ctx).db_path()
    if path is None:
        typer.echo("Error: no database given and db_path is not configured", err=True)
        raise typer.Exit(1)
    path = _database_file(path)
    if not path.exists():
        typer.echo(f"Error: {path} does not exist", err=True)
        raise typer.Exit(1)
    return path


def _render_rows(rows: List[Row], at_ms: Optional[int] = None, flash_ms: int = 0) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Id", justify="right")
    table.add_column("Timestamp")
    table.add_column("Level")
    table.add_column("Source")
    table.add_column("Message")
    for row in rows:
        level_style = LEVEL_STYLES.get(row.level, "") if row.level is not None else ""
        row_style = ""
        if at_ms is not None and is_flash_active(row, at_ms, flash_ms):
            row_style = "reverse"
        elif row.marker_kind is not None:
            row_style = "underline"
        table.add_row(
            str(row.id),
            format_timestamp(row.timestamp_ms),
            f"[{level_style}]{row.level_name}[/]" if level_style else row.level_name,
            row.source or "",
            row.message,
            style=row_style,
        )
    return table


def _build_view_model(
    ctx: typer.Context,
    db: Path,
    filters: List[str],
    transport: Any = None,
    clear_filters: bool = False,
) -> RecordWindowViewModel:
    """Window seeded with the saved filters; later changes are saved back."""
    settings = _settings(ctx)
    if clear_filters:
        settings.set_filters([])
    source = SqliteRecordSource(RecordRepository(db))
    view_model = RecordWindowViewModel(
        source,
        transport,
        page_size=settings.page_size(),
        overscan=settings.overscan(),
        filter_mode=settings.filter_mode(),
        initial_filters=settings.filters(),
    )
    view_model.filters_changed.connect(settings.set_filters)
    for text in filters:
        view_model.apply_filter(Filter.parse(text))
    return view_model


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@app.command()
@_handle_errors
def ingest(
    db: Path = typer.Argument(..., help="Records database or its directory (created if missing)"),
    source_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON Lines file"),
) -> None:
    """Append records from a JSON Lines file."""

    db = _database_file(db)
    repository = RecordRepository(db)
    batch: List[dict] = []
    inserted = 0
    try:
        for number, payload in iter_json_lines(source_file):
            if not isinstance(payload, dict):
                raise typer.BadParameter(f"line {number} is not a JSON object")
            batch.append(payload)
            if len(batch) >= INGEST_BATCH_SIZE:
                inserted += len(repository.append_records(batch))
                batch.clear()
        if batch:
            inserted += len(repository.append_records(batch))
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
    console.print(f"[green]Ingested {inserted} records into {db}")


@app.command()
@_handle_errors
def show(
    ctx: typer.Context,
    db: Optional[Path] = typer.Argument(None, help="Database file or the directory holding it"),
    filters: List[str] = typer.Option([], "--filter", "-f", help="column=value, repeatable"),
    clear_filters: bool = typer.Option(
        False, "--clear-filters", help="Forget the saved filters before applying --filter"
    ),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Rows to print"),
) -> None:
    """Print the newest records matching the filters."""

    path = _resolve_db(ctx, db)
    view_model = _build_view_model(ctx, path, filters, clear_filters=clear_filters)

    async def _collect() -> WindowState:
        view_model.start()
        await view_model.wait_idle()
        while len(view_model.state.rows) < limit and view_model.state.has_more:
            if view_model.load_more() is None:
                break
            await view_model.wait_idle()
        return view_model.state

    try:
        state = asyncio.run(_collect())
    finally:
        view_model.dispose()
    if state.error is not None:
        raise state.error
    rows = list(state.rows[:limit])
    console.print(_render_rows(rows))
    console.print(f"[dim]{len(rows)} of {view_model.total.value} records")


@app.command()
@_handle_errors
def tail(
    ctx: typer.Context,
    db: Optional[Path] = typer.Argument(None, help="Database file or the directory holding it"),
    filters: List[str] = typer.Option([], "--filter", "-f", help="column=value, repeatable"),
    clear_filters: bool = typer.Option(
        False, "--clear-filters", help="Forget the saved filters before applying --filter"
    ),
    seconds: Optional[float] = typer.Option(None, "--seconds", "-s", help="Stop after this long"),
) -> None:
    """Follow new records as they are written."""

    path = _resolve_db(ctx, db)
    settings = _settings(ctx)
    bus = EventBus(get_logger())
    view_model = _build_view_model(
        ctx, path, filters, EventBusTickTransport(bus), clear_filters=clear_filters
    )
    repository = RecordRepository(path)
    ticker = DatabaseTickSource(repository.max_id, bus, interval=settings.poll_interval())
    flash_ms = settings.flash_duration_ms()
    printed: set[int] = set()

    def _print_new(state: WindowState) -> None:
        if state.loading:
            return
        fresh = [row for row in reversed(state.rows) if row.id not in printed]
        if not fresh:
            return
        printed.update(row.id for row in fresh)
        console.print(_render_rows(fresh, at_ms=now_ms(), flash_ms=flash_ms))

    view_model.state_changed.connect(_print_new)
    view_model.error_occurred.connect(lambda message: console.print(f"[red]{message}"))

    async def _follow() -> None:
        await ticker.poll_once()
        view_model.start()
        await view_model.wait_idle()
        ticker.start()
        try:
            if seconds is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(seconds)
        finally:
            await ticker.stop()
            await view_model.wait_idle()

    try:
        asyncio.run(_follow())
    except KeyboardInterrupt:
        pass
    finally:
        view_model.dispose()
        bus.shutdown()


@app.command()
@_handle_errors
def mark(
    ctx: typer.Context,
    record_id: int = typer.Argument(..., help="Record id"),
    kind: Optional[str] = typer.Argument(None, help="info, warning, error, success or note"),
    note: Optional[str] = typer.Option(None, "--note", help="Free text shown with the marker"),
    db: Optional[Path] = typer.Option(None, "--db", help="Database file or the directory holding it"),
) -> None:
    """Set a marker on a record, or clear it when no kind is given."""

    path = _resolve_db(ctx, db)
    marker: Optional[MarkerKind] = None
    if kind is not None:
        try:
            marker = MarkerKind[kind.upper()]
        except KeyError as exc:
            raise typer.BadParameter(f"unknown marker kind {kind!r}", param_hint="KIND") from exc
    RecordRepository(path).set_marker(record_id, None if marker is None else int(marker), note)
    if marker is None:
        console.print(f"[green]Cleared marker on record {record_id}")
    else:
        console.print(f"[green]Marked record {record_id} as {marker.name.lower()}")


@config_app.command("get")
@_handle_errors
def config_get(ctx: typer.Context, key: str) -> None:
    """Print a setting (dotted keys such as ``records.page_size``)."""

    value = _settings(ctx).get(key)
    console.print_json(json.dumps(value))


@config_app.command("set")
@_handle_errors
def config_set(ctx: typer.Context, key: str, value: str) -> None:
    """Change a setting; *value* is parsed as JSON when possible."""

    try:
        parsed: Any = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    _settings(ctx).set(key, parsed)
    console.print(f"[green]Set {key} = {parsed!r}")


if __name__ == "__main__":  # pragma: no cover - manual invocation
    app()
