from __future__ import annotations

import logging
import sys
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from src.chapter1.client import BLSClient
from src.chapter1.config import load_settings
from src.chapter1.ingest import fetch_series
from src.chapter1.ranges import split_year_range
from src.chapter1.series import DEFAULT_SERIES
from src.chapter1.validate import validate_observation_table
from src.chapter3.config import PipelineConfig
from src.chapter3.tasks import run_full_pipeline

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


def _strip_ipykernel_args(argv: list[str]) -> list[str]:
    """Jupyter/ipykernel injects `-f <connection_file>` into sys.argv."""
    out = [argv[0]]
    i = 1
    while i < len(argv):
        a = argv[i]
        if a in ("-f", "--f"):
            i += 2  # skip flag + value
            continue
        if a.startswith("--f="):
            i += 1
            continue
        out.append(a)
        i += 1
    return out


def _print_table(title: str, rows: dict) -> None:
    table = Table(title=title)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for k, v in rows.items():
        table.add_row(str(k), str(v))
    console.print(table)


@app.command()
def run(
    series: Optional[List[str]] = typer.Option(None, "--series", "-s", help="BLS series id (repeatable)"),
    start_year: int = 1982,
    end_year: int = 2021,
    window: int = 12,
    horizon: int = 12,
    decomposition: str = "x13",
    forecaster: str = "drift",
    data_dir: str = "data",
    artifacts_dir: str = "artifacts",
    no_figures: bool = False,
    overwrite: bool = False,
):
    """Fetch, tidy, smooth, decompose and forecast."""
    cfg = PipelineConfig(
        series_ids=tuple(series) if series else DEFAULT_SERIES,
        start_year=start_year,
        end_year=end_year,
        window=window,
        horizon=horizon,
        decomposition=decomposition,
        forecaster=forecaster,
        data_dir=data_dir,
        artifacts_dir=artifacts_dir,
        make_figures=not no_figures,
        overwrite=overwrite,
    )

    results = run_full_pipeline(cfg)
    _print_table("Pipeline Results", results)


@app.command()
def fetch(
    series: Optional[List[str]] = typer.Option(None, "--series", "-s", help="BLS series id (repeatable)"),
    start_year: int = 1982,
    end_year: int = 2021,
):
    """Fetch and validate only; prints the windows used."""
    settings = load_settings(series_ids=series, start_year=start_year, end_year=end_year)
    client = BLSClient.from_settings(settings)

    table = fetch_series(
        settings.series_ids,
        settings.start_year,
        settings.end_year,
        client.max_span,
        client,
    )
    result = validate_observation_table(table)

    windows = split_year_range(settings.start_year, settings.end_year, client.max_span)
    _print_table(
        "Fetch Results",
        {
            "api_version": client.api_version,
            "windows": ", ".join(str(w) for w in windows),
            "rows": result.n_rows,
            "series": result.n_series,
            "missing_months": result.n_missing_months,
            "null_values": result.n_nulls,
            "valid": result.is_valid,
        },
    )


@app.command()
def split(min_year: int, max_year: int, max_span: int = 20):
    """Print the year windows for a range."""
    table = Table(title=f"Windows for {min_year}-{max_year} (max {max_span} years)")
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Years", style="green")
    for sub in split_year_range(min_year, max_year, max_span):
        table.add_row(str(sub.start), str(sub.end), str(sub.span))
    console.print(table)


if __name__ == "__main__":
    sys.argv = _strip_ipykernel_args(sys.argv)
    app(standalone_mode=False)  # <-- prevents SystemExit in Jupyter
