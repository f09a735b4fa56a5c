from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import orjson
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from adapters.filesystem.dataset_repository import (
    FileSystemLayoutResultRepository,
    FileSystemTimelineDatasetRepository,
)
from adapters.filesystem.json_utils import dump_json_bytes
from adapters.layout.timeline import TimelineLayoutEngine
from app.config import AppSettings, load_settings
from domain.models import LayoutResult, TimelineDataset
from domain.services.item_preparation import build_timeline_items, is_excluded

app = typer.Typer(no_args_is_help=True)
console = Console()
# Diagnostics and logs stay off stdout so the JSON result can be piped.
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_dataset(input_path: Path) -> TimelineDataset:
    try:
        return FileSystemTimelineDatasetRepository().load_by_path(input_path)
    except FileNotFoundError as exc:
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1) from exc
    except (orjson.JSONDecodeError, ValidationError) as exc:
        console.print(f"[red]Invalid dataset:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _load_app_settings(config_path: Path | None) -> AppSettings:
    try:
        return load_settings(config_path)
    except FileNotFoundError as exc:
        console.print(f"[red]{exc}[/]")
        raise typer.Exit(code=1) from exc
    except ValidationError as exc:
        console.print(f"[red]Invalid configuration:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _placement_table(result: LayoutResult) -> Table:
    table = Table(title=f"Layout ({result.total_rows} rows)")
    table.add_column("Item")
    table.add_column("Bar row", justify="right")
    table.add_column("Label row", justify="right")
    table.add_column("Label offset", justify="right")
    for record in result.placements:
        table.add_row(
            record.item_id,
            str(record.bar_row),
            "" if record.label_row is None else f"{record.label_row:g}",
            "" if record.label_offset is None else f"{record.label_offset:g}",
        )
    return table


@app.command("layout")
def layout(
    input_path: Path = typer.Argument(..., help="Timeline dataset JSON file."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the layout result JSON here instead of stdout.",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every placement step."),
) -> None:
    _configure_logging(verbose)
    settings = _load_app_settings(config)
    dataset = _load_dataset(input_path)

    items = build_timeline_items(
        dataset, settings.layout.to_thresholds(), current_year=settings.current_year
    )
    engine = TimelineLayoutEngine(settings.layout.to_layout_config())
    result = engine.compute_layout(items)

    if output is not None:
        FileSystemLayoutResultRepository().save(result, output)
        console.print(_placement_table(result))
        console.print(f"[green]Wrote[/] {output}")
    else:
        typer.echo(dump_json_bytes(result).decode("utf-8"), nl=False)

    for diagnostic in result.diagnostics:
        color = "cyan" if diagnostic.code == "label_overlap_resolved" else "yellow"
        err_console.print(f"[{color}]{diagnostic.code}[/] {diagnostic.message}")


@app.command("validate")
def validate(
    input_path: Path = typer.Argument(..., help="Timeline dataset JSON file to validate."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    settings = _load_app_settings(config)
    dataset = _load_dataset(input_path)
    thresholds = settings.layout.to_thresholds()

    excluded = [
        entity for entity in dataset.entities if is_excluded(entity, thresholds.exclusion_threshold)
    ]
    items = build_timeline_items(dataset, thresholds, current_year=settings.current_year)
    short_events = sum(1 for item in items if item.is_short_event)
    priority = sum(1 for item in items if item.priority)
    console.print(f"[green]Valid timeline dataset:[/] {input_path}")
    console.print(
        f"entities={len(dataset.entities)} excluded={len(excluded)} "
        f"short_events={short_events} priority={priority}"
    )


if __name__ == "__main__":
    app()
