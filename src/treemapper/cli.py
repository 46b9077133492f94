"""Command-line interface for treemapper."""

from __future__ import annotations

import json
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .colors import legend_items
from .exceptions import TreemapperError
from .filtering import Filter, FieldFilter, GroupMembershipFilter, filterable_fields
from .formatting import format_compact
from .layout import SquarifiedLayout
from .logger import setup_logger
from .models import Record, compute_data_range
from .polling import DEFAULT_CYCLE_INTERVAL, ColorCycler, DataPoller
from .schemas import FieldConfig, colorable_fields, groupable_fields
from .settings import Settings, discover_settings
from .sources import DataSource, load_config_schema, load_json, parse_records
from .stats import summarize
from .treemap import build_treemap
from .view import ViewState

app = typer.Typer(
    name="treemapper",
    help="Configuration-driven treemap engine for tabular records",
    add_completion=False,
)

NO_GROUPING = ("", "none")


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to settings file (default: treemapper.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for treemapper commands."""
    setup_logger(verbose)
    context.set_settings_path(config)


# ============================================================================
# Helpers
# ============================================================================


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _load_settings() -> Settings:
    try:
        return discover_settings()
    except TreemapperError as e:
        raise _fail(str(e)) from e


def _load_schema(schema: str | None, settings: Settings) -> dict[str, FieldConfig]:
    location = schema or settings.sources.schema_location
    try:
        return load_config_schema(location, timeout=settings.sources.timeout)
    except TreemapperError as e:
        raise _fail(str(e)) from e


def _load_records(data: str | None, settings: Settings) -> list[Record]:
    location = data or settings.sources.data
    try:
        return parse_records(load_json(location, timeout=settings.sources.timeout))
    except TreemapperError as e:
        raise _fail(str(e)) from e


def _parse_filters(
    field_filters: list[str] | None, group_filters: list[str] | None
) -> list[Filter]:
    """Parse 'key=value' field filters and 'field=a,b' group filters."""
    parsed: list[Filter] = []
    for spec in field_filters or []:
        key, sep, value = spec.partition("=")
        if not sep or not key:
            raise _fail(f"Invalid filter '{spec}'. Use key=value")
        parsed.append(FieldFilter(key, value))
    for spec in group_filters or []:
        key, sep, value = spec.partition("=")
        if not sep or not key:
            raise _fail(f"Invalid group filter '{spec}'. Use field=name1,name2")
        accepted = frozenset(name for name in value.split(",") if name)
        parsed.append(GroupMembershipFilter(key, accepted))
    return parsed


def _resolve_view(  # noqa: PLR0913 - merges CLI, query and settings sources
    schema: Mapping[str, FieldConfig],
    settings: Settings,
    query: str | None,
    group_by: str | None,
    color_by: str | None,
    filters: list[Filter],
    search: str | None,
) -> ViewState:
    """Build the view: CLI options > --query > settings > first eligible fields."""
    if query is not None:
        view = ViewState.from_query(query, schema)
    else:
        view = ViewState.default(schema)
        if settings.view.group_by is not None:
            view = ViewState(group_by=settings.view.group_by, color_by=view.color_by)
        if settings.view.color_by is not None:
            view = ViewState(group_by=view.group_by, color_by=settings.view.color_by)

    effective_group = view.group_by
    if group_by is not None:
        effective_group = None if group_by.lower() in NO_GROUPING else group_by
    if effective_group is not None and effective_group not in groupable_fields(schema):
        raise _fail(
            f"Cannot group by '{effective_group}'. "
            f"Groupable fields: {', '.join(groupable_fields(schema)) or '(none)'}"
        )

    effective_color = color_by if color_by is not None else view.color_by
    if effective_color is not None and effective_color not in schema:
        raise _fail(f"Unknown color field '{effective_color}'")

    return ViewState(
        group_by=effective_group,
        color_by=effective_color,
        filters=tuple(filters),
        search=search,
    )


# ============================================================================
# Commands
# ============================================================================


@app.command()
def fields(
    schema: Annotated[str | None, typer.Option("--schema", help="Schema path or URL")] = None,
    data: Annotated[str | None, typer.Option("--data", help="Data path or URL")] = None,
) -> None:
    """List groupable, colorable and filterable fields."""
    settings = _load_settings()
    field_configs = _load_schema(schema, settings)
    records = _load_records(data, settings)

    typer.echo("Groupable fields:")
    for name in groupable_fields(field_configs):
        typer.echo(f"  {name} ({field_configs[name].label})")

    typer.echo("Colorable fields:")
    for name in colorable_fields(field_configs):
        config = field_configs[name]
        mode = config.color_mode.value if config.color_mode else ""
        typer.echo(f"  {name} ({config.label}) [{mode}]")

    typer.echo("Filterable fields:")
    for option in filterable_fields(field_configs, records):
        line = f"  {option.field} ({option.label}) [{option.value_type.value}]"
        if option.options is not None:
            line += f": {', '.join(option.options)}"
        typer.echo(line)


@app.command()
def render(  # noqa: PLR0913 - CLI command needs multiple options
    schema: Annotated[str | None, typer.Option("--schema", help="Schema path or URL")] = None,
    data: Annotated[str | None, typer.Option("--data", help="Data path or URL")] = None,
    *,
    group_by: Annotated[
        str | None,
        typer.Option("--group-by", "-g", help="Grouping field ('none' for no grouping)"),
    ] = None,
    color_by: Annotated[str | None, typer.Option("--color-by", help="Coloring field")] = None,
    query: Annotated[
        str | None,
        typer.Option("--query", "-q", help="View query string or URL (group=...&color=...)"),
    ] = None,
    filter_specs: Annotated[
        list[str] | None,
        typer.Option("--filter", "-f", help="Field filter key=value (repeatable)"),
    ] = None,
    group_filter_specs: Annotated[
        list[str] | None,
        typer.Option("--group-filter", help="Group membership filter field=a,b (repeatable)"),
    ] = None,
    search: Annotated[
        str | None, typer.Option("--search", "-s", help="Search searchable fields")
    ] = None,
    width: Annotated[int | None, typer.Option("--width", min=1, help="Viewport width")] = None,
    height: Annotated[int | None, typer.Option("--height", min=1, help="Viewport height")] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
) -> None:
    """Lay out and color the records, printing the treemap as JSON."""
    settings = _load_settings()
    field_configs = _load_schema(schema, settings)
    records = _load_records(data, settings)
    filters = _parse_filters(filter_specs, group_filter_specs)
    view = _resolve_view(field_configs, settings, query, group_by, color_by, filters, search)

    result = build_treemap(
        field_configs,
        records,
        view,
        width or settings.layout.width,
        height or settings.layout.height,
        layout=SquarifiedLayout(padding=settings.layout.padding),
    )
    rendered = json.dumps(result.to_dict(), indent=2)

    if output:
        output.write_text(rendered, encoding="utf-8")
        typer.echo(f"Treemap written to {output}")
    else:
        typer.echo(rendered)


@app.command()
def legend(
    color_by: Annotated[str, typer.Argument(help="Coloring field")],
    schema: Annotated[str | None, typer.Option("--schema", help="Schema path or URL")] = None,
    data: Annotated[str | None, typer.Option("--data", help="Data path or URL")] = None,
) -> None:
    """Print the legend for a coloring field."""
    settings = _load_settings()
    field_configs = _load_schema(schema, settings)
    config = field_configs.get(color_by)
    if config is None or config.color_mode is None:
        raise _fail(f"'{color_by}' is not a colorable field")

    records = _load_records(data, settings)
    items = legend_items(config, compute_data_range(records, color_by))
    typer.echo(config.label)
    for item in items:
        typer.echo(f"  {item.color}  {item.label}")


@app.command()
def stats(
    schema: Annotated[str | None, typer.Option("--schema", help="Schema path or URL")] = None,
    data: Annotated[str | None, typer.Option("--data", help="Data path or URL")] = None,
) -> None:
    """Print summary statistics for the record set."""
    settings = _load_settings()
    field_configs = _load_schema(schema, settings)
    summary = summarize(_load_records(data, settings), field_configs)

    typer.echo(f"Records: {summary.count}")
    for name, count in summary.distinct_counts.items():
        typer.echo(f"{field_configs[name].label}: {count}")
    if summary.size_field is not None:
        typer.echo(f"Total {summary.size_field}: {format_compact(summary.total_size)}")
        typer.echo(f"Active {summary.size_field}: {format_compact(summary.active_size)}")
        typer.echo(f"Inactive {summary.size_field}: {format_compact(summary.inactive_size)}")


@app.command()
def watch(  # noqa: PLR0913 - CLI command needs multiple options
    schema: Annotated[str | None, typer.Option("--schema", help="Schema path or URL")] = None,
    data: Annotated[str | None, typer.Option("--data", help="Data path or URL")] = None,
    *,
    iterations: Annotated[
        int, typer.Option("--iterations", "-n", min=0, help="Stop after N refreshes (0 = forever)")
    ] = 0,
    interval: Annotated[
        float | None, typer.Option("--interval", min=0.001, help="Polling interval in seconds")
    ] = None,
    cycle_colors: Annotated[
        bool, typer.Option("--cycle-colors", help="Advance the color field after every refresh")
    ] = False,
    cycle_interval: Annotated[
        float | None,
        typer.Option("--cycle-interval", min=0.001, help="Advance the color field every N seconds"),
    ] = None,
) -> None:
    """Poll the data source and print a summary after every refresh."""
    settings = _load_settings()
    field_configs = _load_schema(schema, settings)
    source = DataSource(data or settings.sources.data, timeout=settings.sources.timeout)
    view = _resolve_view(field_configs, settings, None, None, None, [], None)

    cycle_every = cycle_interval or settings.view.color_cycle_interval
    cycler = ColorCycler(
        field_configs, current=view.color_by, interval=cycle_every or DEFAULT_CYCLE_INTERVAL
    )

    done = threading.Event()
    refreshes = 0

    def report(src: DataSource, ok: bool) -> None:
        nonlocal refreshes
        refreshes += 1
        color_by = cycler.current
        frame = build_treemap(
            field_configs,
            src.records,
            ViewState(group_by=view.group_by, color_by=color_by),
            settings.layout.width,
            settings.layout.height,
            layout=SquarifiedLayout(padding=settings.layout.padding),
        )
        line = (
            f"[{refreshes}] {len(frame.records)} records in {len(frame.groups)} groups, "
            f"colored by {color_by or '-'}"
        )
        if not ok:
            line += f" (refresh failed: {src.error})"
        typer.echo(line)
        if cycle_colors:
            cycler.advance()
        if iterations and refreshes >= iterations:
            done.set()

    poller = DataPoller(
        source, interval=interval or settings.sources.poll_interval, on_refresh=report
    )
    poller.poll_once()
    if done.is_set():
        return

    poller.start()
    if cycle_every:
        cycler.start()
    try:
        done.wait()
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop()
        cycler.stop()


def main() -> int:
    """Main entry point."""
    app()
    return 0


if __name__ == "__main__":
    main()
