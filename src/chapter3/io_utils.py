from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

import pandas as pd

from src.chapter0.objects import ObservationTable, SeriesObservation


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def atomic_write_parquet(df: pd.DataFrame, path: Path) -> None:
    """
    Atomic parquet write: write to temp in same directory, then replace.
    """
    ensure_dir(path.parent)
    tmp = path.with_suffix(path.suffix + ".tmp")
    df.to_parquet(tmp, index=False)
    os.replace(tmp, path)


def atomic_write_json(payload: Dict[str, Any], path: Path) -> None:
    ensure_dir(path.parent)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, default=str)
    os.replace(tmp, path)


def read_observation_table(path: Path) -> ObservationTable:
    """Load a raw.parquet written by ingest_bls back into records (order kept)."""
    df = pd.read_parquet(path)
    return ObservationTable(
        tuple(
            SeriesObservation(
                series_id=str(row.series_id),
                year=int(row.year),
                period=str(row.period),
                value=None if pd.isna(row.value) else float(row.value),
                footnotes=str(row.footnotes or ""),
            )
            for row in df.itertuples(index=False)
        )
    )
