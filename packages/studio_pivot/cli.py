# ruff: noqa: I001
"""CLI for the ``studio_pivot`` package.

Typer-based console interface over :mod:`studio_pivot.api`. Environment
variables are loaded from a local ``.env`` using ``python-dotenv`` before any
command runs. The ``pivot`` command writes the tab-separated export to stdout
so it can be piped into a clipboard tool or a file.
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from typer.models import OptionInfo

from .logging_setup import configure_logging

# Module-level option object to satisfy ruff B008 (no calls in parameter
# defaults).
INPUT_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a CSV (or .json array) export of records",
    dir_okay=False,
    file_okay=True,
    exists=False,  # reported by the handler with a friendlier message
    readable=True,
)


def _parse_anchor(raw: str | None) -> date | None:
    if raw is None:
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise typer.BadParameter(f"--anchor must be YYYY-MM-DD, got {raw!r}") from exc


def cmd_pivot(
    input_path: str,
    *,
    view_name: str,
    primary: str | None = None,
    secondary: str | None = None,
    metric: str | None = "revenue",
    months: int | None = None,
    sort_key: str | None = None,
    ascending: bool = False,
    collapse_all: bool = False,
    growth: bool = False,
    include_total: bool = False,
    anchor: date | None = None,
    mapping_path: str | None = None,
    net_of_vat: bool = False,
    plain: bool = False,
    with_group_rows: bool = False,
) -> int:
    """Build a pivot from ``input_path`` and print its TSV export.

    Errors are written to stderr and a non-zero status is returned; on
    success the export is printed and ``0`` returned.
    """

    import csv

    from .api import pivot_report
    from .ingest import load_field_mapping, load_records
    from .records import LEADS_FIELD_MAPPING, SALES_FIELD_MAPPING, dimension_value
    from .settings import anchor_date, field_mapping_path
    from .view_state import SORT_BY_TOTAL, ViewState
    from .views import get_view

    try:
        view = get_view(view_name)
        overrides: dict[str, object] = {}
        if primary is not None:
            overrides["primary"] = primary
        if secondary is not None:
            overrides["secondary"] = None if secondary == "none" else secondary
        if months is not None:
            overrides["months"] = months
        if overrides:
            # Re-validate so bad dimension names are reported, not ignored.
            view = type(view).model_validate({**view.model_dump(), **overrides})
    except (ValueError, ValidationError) as e:
        print(f"Error: invalid view configuration: {e}", file=sys.stderr)
        return 1

    try:
        resolved_mapping = mapping_path or field_mapping_path()
        if resolved_mapping is not None:
            mapping = load_field_mapping(resolved_mapping)
        elif view.primary in {"source", "stage"}:
            mapping = LEADS_FIELD_MAPPING
        else:
            mapping = SALES_FIELD_MAPPING
    except FileNotFoundError:
        print(f"Error: Mapping file not found: {resolved_mapping}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"Error: invalid field mapping: {e}", file=sys.stderr)
        return 1

    try:
        records = load_records(input_path, mapping)
    except FileNotFoundError:
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {input_path}", file=sys.stderr)
        return 1
    except (csv.Error, ValueError) as e:
        print(f"Error: Failed to read records: {e}", file=sys.stderr)
        return 1

    try:
        now = anchor_date(anchor)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    state = ViewState(
        sort_key=sort_key or SORT_BY_TOTAL,
        sort_direction="asc" if ascending else "desc",
    )
    if collapse_all:
        state = state.collapse_all(dimension_value(r, view.primary) for r in records)

    try:
        text = pivot_report(
            records,
            view,
            metric=metric,
            state=state,
            anchor=now,
            growth=view.growth_mode if growth else None,
            include_total=include_total,
            net_of_vat=net_of_vat,
            formatted=not plain,
            include_group_rows=with_group_rows,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sys.stdout.write(text)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Pivot sales and lead exports by dimension and month, and print the "
        "result as tab-separated text. Loads settings from a local .env."
    ),
)


@app.command("pivot")
def pivot_cmd(
    csv_path: Annotated[Path, INPUT_PATH_OPTION],
    *,
    view: str = typer.Option("month-on-month", help="Preset view name (see `views`)."),
    primary: str | None = typer.Option(None, help="Override the primary dimension."),
    secondary: str | None = typer.Option(
        None, help="Override the secondary dimension ('none' for a single level)."
    ),
    metric: str = typer.Option("revenue", help="Metric id (see `metrics`)."),
    all_metrics: bool = typer.Option(False, "--all-metrics", help="Export every metric."),
    months: int | None = typer.Option(None, min=1, help="Override the window length."),
    sort: str | None = typer.Option(None, help="Sort key: 'total' or a YYYY-MM bucket."),
    ascending: bool = typer.Option(False, "--ascending", help="Sort ascending."),
    collapse_all: bool = typer.Option(False, "--collapse-all", help="Hide subgroup rows."),
    growth: bool = typer.Option(False, "--growth", help="Show growth instead of values."),
    include_total: bool = typer.Option(False, "--include-total", help="Add a Total column."),
    net_of_vat: bool = typer.Option(
        False, "--net-of-vat", help="Subtract VAT from revenue-derived metrics."
    ),
    plain: bool = typer.Option(False, "--plain", help="Write plain numbers, no symbols."),
    with_group_rows: bool = typer.Option(
        False, "--with-group-rows", help="Also write group rows with their subtotals."
    ),
    anchor: str | None = typer.Option(None, help="Treat this YYYY-MM-DD date as today."),
    mapping: str | None = typer.Option(
        None, help="JSON field mapping (falls back to STUDIO_PIVOT_FIELD_MAPPING)."
    ),
) -> None:
    """Print a pivot of the given export as TSV."""

    code = cmd_pivot(
        str(csv_path),
        view_name=view,
        primary=primary,
        secondary=secondary,
        metric=None if all_metrics else metric,
        months=months,
        sort_key=sort,
        ascending=ascending,
        collapse_all=collapse_all,
        growth=growth,
        include_total=include_total,
        anchor=_parse_anchor(anchor),
        mapping_path=mapping,
        net_of_vat=net_of_vat,
        plain=plain,
        with_group_rows=with_group_rows,
    )
    if code:
        raise typer.Exit(code)


@app.command("metrics")
def metrics_cmd() -> None:
    """List the metric catalog as ``id<TAB>label<TAB>formatKind``."""

    from .api import metric_tabs

    for tab in metric_tabs():
        typer.echo(f"{tab['id']}\t{tab['label']}\t{tab['formatKind']}")


@app.command("views")
def views_cmd() -> None:
    """List preset views with their dimensions and window."""

    from .views import VIEWS

    for v in VIEWS.values():
        dims = v.primary if v.secondary is None else f"{v.primary}/{v.secondary}"
        typer.echo(f"{v.name}\t{dims}\t{v.window}")


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
