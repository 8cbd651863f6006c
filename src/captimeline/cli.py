"""CLI entry point for browsing grouped CAP alerts."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .errors import LoadError
from .filters import DateRange, FilterSpec
from .loader import AlertLoader
from .logging_utils import configure_logging
from .reporting import RunReporter
from .settings import get_settings
from .timeline import DisplayAlert
from .url_params import build_query, read_query

LOGGER = logging.getLogger(__name__)
CONSOLE = Console()


def load_groups(
    source: str | None, reporter: RunReporter | None = None
) -> AlertLoader:
    settings = get_settings()
    loader = AlertLoader(source=source, settings=settings)
    if reporter is not None:
        reporter.start_run(loader.source)
    try:
        asyncio.run(loader.load())
    except LoadError as exc:
        if reporter is not None:
            reporter.record_failure(str(exc))
        raise SystemExit(str(exc)) from exc
    finally:
        if reporter is not None:
            if loader.result is not None:
                reporter.record_processing(loader.result)
                reporter.record_grouping(loader.alerts)
    return loader


def build_spec(
    query: str | None,
    categories: tuple[str, ...],
    severities: tuple[str, ...],
    urgencies: tuple[str, ...],
    statuses: tuple[str, ...],
    message_types: tuple[str, ...],
    search: str | None,
    start: datetime | None,
    end: datetime | None,
) -> FilterSpec:
    base, _ = read_query(query) if query else (FilterSpec(), None)
    overrides: dict[str, object] = {}
    for name, values in (
        ("categories", categories),
        ("severities", severities),
        ("urgencies", urgencies),
        ("statuses", statuses),
        ("message_types", message_types),
    ):
        if values:
            overrides[name] = frozenset(values)
    if search:
        overrides["search_text"] = search.strip()
    if start or end:
        overrides["date_range"] = DateRange.for_days(
            start.date() if start else base.date_range.start,
            end.date() if end else base.date_range.end,
        )
    return base.model_copy(update=overrides) if overrides else base


def render_alerts(alerts: list[DisplayAlert], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Sent")
    table.add_column("ID")
    table.add_column("Type")
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Title")
    table.add_column("Area")
    table.add_column("Versions", justify="right")
    for alert in alerts:
        table.add_row(
            alert.sent.isoformat(),
            alert.id,
            alert.msg_type,
            alert.severity,
            alert.category,
            alert.title,
            alert.area_desc,
            str(alert.group_size),
        )
    return table


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
def main(log_level: str | None) -> None:
    """Inspect CAP alert exports as grouped timelines."""
    configure_logging(log_level.upper() if log_level else get_settings().log_level)


@main.command("list")
@click.option("--source", type=str, default=None, help="CSV path or URL (defaults to settings)")
@click.option("--query", type=str, default=None, help="Filter query string, e.g. 'severities=Extreme'")
@click.option("--category", "categories", multiple=True, help="Category filter (repeatable)")
@click.option("--severity", "severities", multiple=True, help="Severity filter (repeatable)")
@click.option("--urgency", "urgencies", multiple=True, help="Urgency filter (repeatable)")
@click.option("--status", "statuses", multiple=True, help="Status filter (repeatable)")
@click.option("--message-type", "message_types", multiple=True, help="Message type filter (repeatable)")
@click.option("--search", type=str, default=None, help="Case-insensitive text search")
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--limit", type=int, default=None, help="Show at most this many alerts")
@click.option(
    "--report-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for persisted run summaries",
)
def list_alerts(
    source: str | None,
    query: str | None,
    categories: tuple[str, ...],
    severities: tuple[str, ...],
    urgencies: tuple[str, ...],
    statuses: tuple[str, ...],
    message_types: tuple[str, ...],
    search: str | None,
    start: datetime | None,
    end: datetime | None,
    limit: int | None,
    report_dir: Path | None,
) -> None:
    """List grouped alerts matching the given filters, newest first."""
    settings = get_settings()
    reporter = RunReporter()
    spec = build_spec(
        query, categories, severities, urgencies, statuses, message_types, search, start, end
    )
    try:
        loader = load_groups(source, reporter)
        matches = loader.filtered(spec)
        reporter.record_filter(spec, len(matches))
    finally:
        reporter.finish_run()
        reporter.emit_metrics(Path(settings.metrics_path))
        target_dir = report_dir or (Path(settings.report_dir) if settings.report_dir else None)
        if target_dir is not None:
            report_path = reporter.persist(target_dir)
            CONSOLE.print(f"Saved run summary to [cyan]{report_path}[/cyan]")

    shown = matches[:limit] if limit else matches
    CONSOLE.print(render_alerts(shown, f"{len(matches)} of {len(loader.alerts)} alerts"))
    query_string = build_query(spec)
    if query_string:
        CONSOLE.print(f"Query: [cyan]?{query_string}[/cyan]")


@main.command("show")
@click.argument("alert_id")
@click.option("--source", type=str, default=None, help="CSV path or URL (defaults to settings)")
def show_alert(alert_id: str, source: str | None) -> None:
    """Show one grouped alert and its full timeline."""
    loader = load_groups(source)
    alert = loader.get(alert_id)
    if alert is None:
        raise SystemExit(f"Alert not found: {alert_id}")

    CONSOLE.print(f"[bold]{alert.title}[/bold]")
    CONSOLE.print(alert.description)
    CONSOLE.print(
        f"{alert.event} | {alert.severity} / {alert.urgency} / {alert.certainty} | {alert.area_desc}"
    )
    if alert.is_cancelled:
        CONSOLE.print("[red]Cancelled[/red]")
    elif alert.is_expired:
        CONSOLE.print("[yellow]Expired[/yellow]")

    table = Table(title="Timeline")
    table.add_column("Sent")
    table.add_column("ID")
    table.add_column("Type")
    table.add_column("Headline")
    table.add_column("Geometry")
    for entry in alert.timeline:
        table.add_row(
            entry.sent.isoformat(),
            entry.id,
            entry.msg_type,
            entry.title,
            "yes" if entry.has_geometry else "no",
        )
    CONSOLE.print(table)


@main.command("options")
@click.option("--source", type=str, default=None, help="CSV path or URL (defaults to settings)")
def show_options(source: str | None) -> None:
    """Print the filter values present in the data."""
    loader = load_groups(source)
    stats = loader.stats()
    options = stats.options

    table = Table(title="Filter Options")
    table.add_column("Filter")
    table.add_column("Values")
    table.add_row("categories", ", ".join(options.categories))
    table.add_row("severities", ", ".join(options.severities))
    table.add_row("urgencies", ", ".join(options.urgencies))
    table.add_row("statuses", ", ".join(options.statuses))
    table.add_row("messageTypes", ", ".join(options.message_types))
    if options.earliest and options.latest:
        table.add_row("sent", f"{options.earliest.isoformat()} - {options.latest.isoformat()}")
    CONSOLE.print(table)
    CONSOLE.print(
        f"{stats.total} alerts, {stats.with_geometry} with geometry, "
        f"{stats.expired} expired, {stats.cancelled} cancelled"
    )


if __name__ == "__main__":  # pragma: no cover
    main()
