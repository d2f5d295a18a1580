"""CLI for dimscope."""

import json
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from dimscope.config import get_settings
from dimscope.granularity import parse_granularity
from dimscope.log_manager import configure_logger
from dimscope.service import DashboardService

app = typer.Typer(
    name="dimscope",
    help="dimscope - dashboard query orchestration CLI",
    no_args_is_help=True,
)
console = Console()

CollectionsDir = Annotated[
    Path | None, typer.Option("--dir", "-d", help="Collections directory")
]


@app.callback()
def main(
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Log level (default from settings)")
    ] = None,
) -> None:
    configure_logger(log_level or get_settings().log_level)


def get_service(collections_dir: Path | None, db_path: str | None = None) -> DashboardService:
    return DashboardService(collections_dir, db_path)


def _open_service(collections_dir: Path | None, db_path: str | None = None) -> DashboardService:
    try:
        return get_service(collections_dir, db_path)
    except Exception as e:
        console.print(f"[red]Error loading collections: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def dimensions(
    collection: Annotated[str, typer.Argument(help="Collection name")],
    collections_dir: CollectionsDir = None,
    filters: Annotated[
        str | None, typer.Option("--filter", "-f", help="Filter JSON, e.g. '{\"country\": [\"US\"]}'")
    ] = None,
) -> None:
    """List a collection's dimensions (only the groupable ones with --filter)."""
    service = _open_service(collections_dir)
    try:
        dims = service.group_by_dimensions(collection, filters)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        service.close()

    if not dims:
        console.print("[yellow]No dimensions[/yellow]")
        return
    table = Table(title=f"Dimensions of {collection}")
    table.add_column("Name", style="cyan")
    for dim in dims:
        table.add_row(dim)
    console.print(table)


@app.command()
def values(
    collection: Annotated[str, typer.Argument(help="Collection name")],
    metric: Annotated[str, typer.Option("--metric", "-m", help="Metric being viewed")] = "__COUNT",
    collections_dir: CollectionsDir = None,
    db_path: Annotated[str | None, typer.Option("--db", help="DuckDB database path")] = None,
    data: Annotated[
        Path | None, typer.Option("--data", help="CSV/Parquet file to load as the collection table")
    ] = None,
    filters: Annotated[str | None, typer.Option("--filter", "-f", help="Filter JSON")] = None,
    start: Annotated[str | None, typer.Option("--start", help="Window start (ISO datetime)")] = None,
    end: Annotated[str | None, typer.Option("--end", help="Window end, exclusive (ISO datetime)")] = None,
    window: Annotated[
        str | None, typer.Option("--window", "-w", help="Window length ending at --end, e.g. 7_DAYS")
    ] = None,
    timeout: Annotated[float | None, typer.Option("--timeout", help="Seconds to wait")] = None,
    output: Annotated[str, typer.Option("--output", "-o", help="Output format: table, json")] = "table",
) -> None:
    """Discover the values of every unfiltered dimension in a time window."""
    try:
        window_start, window_end = _resolve_window(start, end, window)
    except ValueError as e:
        console.print(f"[red]Invalid window: {e}[/red]")
        raise typer.Exit(1)

    service = _open_service(collections_dir, db_path)
    try:
        if data:
            service.load_table(collection, data)
        catalog = service.dimension_values(
            collection, metric, window_start, window_end, filter_json=filters, timeout=timeout
        )
    except Exception as e:
        console.print(f"[red]Query error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        service.close()

    if output == "json":
        console.print(json.dumps(catalog, indent=2, sort_keys=True), markup=False, highlight=False)
        return

    table = Table(title=f"Dimension values of {collection} [{window_start} - {window_end})")
    table.add_column("Dimension", style="cyan")
    table.add_column("Values")
    for dimension in sorted(catalog):
        table.add_row(dimension, ", ".join(catalog[dimension]) or "-")
    console.print(table)


def _resolve_window(
    start: str | None, end: str | None, window: str | None
) -> tuple[datetime, datetime]:
    window_end = datetime.fromisoformat(end) if end else datetime.now()
    if start:
        return datetime.fromisoformat(start), window_end
    if window:
        return window_end - parse_granularity(window).to_timedelta(), window_end
    raise ValueError("give --start or --window")


@app.command()
def dashboards(
    collection: Annotated[str, typer.Argument(help="Collection name")],
    collections_dir: CollectionsDir = None,
) -> None:
    """List the dashboards of a collection."""
    service = _open_service(collections_dir)
    try:
        names = service.list_dashboards(collection)
    finally:
        service.close()

    table = Table(title=f"Dashboards of {collection}")
    table.add_column("Name", style="cyan")
    for name in names:
        table.add_row(name)
    console.print(table)


@app.command()
def metrics(
    collection: Annotated[str, typer.Argument(help="Collection name")],
    collections_dir: CollectionsDir = None,
    dashboard: Annotated[str | None, typer.Option("--dashboard", help="Dashboard id")] = None,
    metrics_json: Annotated[
        str | None, typer.Option("--metrics", help="Metric names, JSON list or comma-separated")
    ] = None,
) -> None:
    """Show the metric functions and expressions a dashboard view resolves to."""
    service = _open_service(collections_dir)
    try:
        functions = service.metric_functions(collection, dashboard, metrics_json)
        stored = service.dashboard_expressions(collection, dashboard) if dashboard else []
    finally:
        service.close()

    table = Table(title="Metric functions")
    table.add_column("Aggregation", style="green")
    table.add_column("Metric", style="cyan")
    for function in functions:
        table.add_row(function.agg.value, function.metric_name)
    console.print(table)

    if stored:
        expr_table = Table(title=f"Expressions stored on {dashboard}")
        expr_table.add_column("Name", style="cyan")
        expr_table.add_column("Expression")
        for expression in stored:
            expr_table.add_row(expression.name, expression.expression)
        console.print(expr_table)


@app.command()
def granularity(
    token: Annotated[str, typer.Argument(help="Granularity token, e.g. 5_MINUTES or HOURS")],
) -> None:
    """Parse a time granularity token."""
    try:
        parsed = parse_granularity(token)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"size={parsed.size} unit={parsed.unit.name} ({parsed.to_timedelta()})")


@app.command()
def validate(collections_dir: CollectionsDir = None) -> None:
    """Validate collection and dashboard definitions."""
    service = _open_service(collections_dir)
    try:
        errors = service.validate()
        collection_count = len(service.registry.collections)
    finally:
        service.close()

    if errors:
        console.print("[red]Validation failed:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        raise typer.Exit(1)
    console.print(f"[green]Validated {collection_count} collections successfully![/green]")


if __name__ == "__main__":
    app()
