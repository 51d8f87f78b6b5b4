"""
Chapter 2 Step 1: Reshape observations into a tidy table

Canonical columns (statsforecast-style):
- unique_id: series identifier
- ds: first day of the month (timezone-naive)
- y: numeric value (NaN when unreported)
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import pandas as pd

from src.chapter0.objects import ObservationTable, period_month

logger = logging.getLogger(__name__)

RAW_COLUMNS = ["series_id", "year", "period", "value", "footnotes"]


def observations_to_frame(table: ObservationTable) -> pd.DataFrame:
    """One row per observation, in table order."""
    rows = [
        {
            "series_id": obs.series_id,
            "year": obs.year,
            "period": obs.period,
            "value": obs.value,
            "footnotes": obs.footnotes,
        }
        for obs in table
    ]
    df = pd.DataFrame(rows, columns=RAW_COLUMNS)
    df["value"] = pd.to_numeric(df["value"], errors="raise").astype(float)
    return df


def to_tidy_frame(table: ObservationTable, monthly_only: bool = True) -> pd.DataFrame:
    """
    Convert observations to [unique_id, ds, y].

    Steps:
    1. Keep monthly periods (M01..M12); M13 annual averages, quarterly and
       annual rows are dropped
    2. Build ds as the first day of the month
    3. Sort by [unique_id, ds]

    Args:
        table: ObservationTable from fetch_series
        monthly_only: Must be True; only monthly data maps onto ds

    Returns:
        DataFrame with columns [unique_id, ds, y]
    """
    if not monthly_only:
        raise ValueError("Only monthly observations can be mapped to a ds timestamp")

    rows = []
    skipped = 0
    for obs in table:
        month = period_month(obs.period)
        if month is None:
            skipped += 1
            continue
        rows.append(
            {
                "unique_id": obs.series_id,
                "ds": pd.Timestamp(year=obs.year, month=month, day=1),
                "y": obs.value,
            }
        )

    tidy = pd.DataFrame(rows, columns=["unique_id", "ds", "y"])
    tidy["ds"] = pd.to_datetime(tidy["ds"], errors="raise")
    tidy["y"] = pd.to_numeric(tidy["y"], errors="raise").astype(float)
    tidy = tidy.sort_values(["unique_id", "ds"]).reset_index(drop=True)

    logger.info("Tidy: %d rows (%d non-monthly rows dropped)", len(tidy), skipped)
    return tidy


def to_wide_frame(
    tidy: pd.DataFrame,
    labels: Optional[Callable[[str], str]] = None,
) -> pd.DataFrame:
    """
    Wide format: ds | SERIES1 | SERIES2 | ...

    Args:
        tidy: DataFrame with [unique_id, ds, y]
        labels: Optional mapping from series id to column name
                (e.g. series_label for friendly names)
    """
    wide = (
        tidy.pivot(index="ds", columns="unique_id", values="y")
        .sort_index()
        .reset_index()
    )
    wide.columns.name = None
    if labels is not None:
        wide = wide.rename(columns={c: labels(c) for c in wide.columns if c != "ds"})
    return wide


def to_monthly_series(tidy: pd.DataFrame, unique_id: str) -> pd.Series:
    """
    Extract one series as a pd.Series with a monthly (MS) DatetimeIndex.

    Decomposition and forecasting services need a regular index with no
    holes, so gaps and unreported values fail loud here.
    """
    sub = tidy[tidy["unique_id"] == unique_id]
    if sub.empty:
        raise ValueError(f"Series {unique_id!r} not found in tidy frame")

    series = sub.set_index("ds")["y"].sort_index()
    if series.index.has_duplicates:
        raise ValueError(f"Series {unique_id!r} has duplicate timestamps")

    n_nulls = int(series.isna().sum())
    if n_nulls:
        first = series.index[series.isna()][0].strftime("%Y-%m")
        raise ValueError(
            f"Series {unique_id!r} has {n_nulls} unreported values (first: {first})"
        )

    expected = pd.date_range(series.index.min(), series.index.max(), freq="MS")
    n_missing = len(expected.difference(series.index))
    if n_missing:
        raise ValueError(f"Series {unique_id!r} has {n_missing} missing months")

    series = series.asfreq("MS")

    series.name = unique_id
    return series
