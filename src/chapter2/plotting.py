"""
Chapter 2 Step 3: Visualize

Thin matplotlib wrappers. Every function returns the Figure and optionally
saves it as a PNG.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Union

import matplotlib

matplotlib.use("Agg")  # Non-interactive backend for scripts and CI
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

if TYPE_CHECKING:
    from src.chapter3.services import DecompositionResult, ForecastOutput

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _finish(fig, path: Optional[PathLike]):
    fig.tight_layout()
    if path is not None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=150, bbox_inches="tight")
        logger.info("Saved figure: %s", path)
    return fig


def plot_series(
    tidy: pd.DataFrame,
    title: str = "BLS series",
    ylabel: str = "Value",
    labels: Optional[Callable[[str], str]] = None,
    path: Optional[PathLike] = None,
):
    """Line chart with one line per unique_id."""
    fig, ax = plt.subplots(figsize=(12, 5))
    for uid, sub in tidy.groupby("unique_id"):
        ax.plot(sub["ds"], sub["y"], label=labels(uid) if labels else uid)
    ax.set_title(title)
    ax.set_xlabel("Date")
    ax.set_ylabel(ylabel)
    ax.legend()
    ax.grid(True, alpha=0.3)
    return _finish(fig, path)


def plot_moving_average(
    smoothed: pd.DataFrame,
    unique_id: str,
    window: int,
    path: Optional[PathLike] = None,
):
    """Raw series with its moving average on top."""
    sub = smoothed[smoothed["unique_id"] == unique_id]
    if sub.empty:
        raise ValueError(f"Series {unique_id!r} not found")
    if "y_ma" not in sub.columns:
        raise ValueError("Expected a y_ma column; run moving_average first")

    fig, ax = plt.subplots(figsize=(12, 5))
    ax.plot(sub["ds"], sub["y"], color="grey", alpha=0.6, label="Observed")
    ax.plot(sub["ds"], sub["y_ma"], color="tab:blue", linewidth=2, label=f"{window}-month average")
    ax.set_title(f"{unique_id} - {window}-month moving average")
    ax.set_xlabel("Date")
    ax.legend()
    ax.grid(True, alpha=0.3)
    return _finish(fig, path)


def plot_decomposition(result: "DecompositionResult", path: Optional[PathLike] = None):
    """Four stacked panels: observed, trend, seasonal, irregular."""
    fig, axes = plt.subplots(4, 1, figsize=(12, 10), sharex=True)
    panels = [
        ("Observed", result.observed),
        ("Trend", result.trend),
        ("Seasonal", result.seasonal),
        ("Irregular", result.irregular),
    ]
    for ax, (name, component) in zip(axes, panels):
        component.plot(ax=ax)
        ax.set_ylabel(name)
        ax.grid(True, alpha=0.3)
    axes[0].set_title(f"{result.observed.name} - {result.method} decomposition")
    return _finish(fig, path)


def plot_forecast(
    history: pd.Series,
    output: "ForecastOutput",
    path: Optional[PathLike] = None,
):
    """History, point forecast and prediction interval."""
    fc = output.frame
    fig, ax = plt.subplots(figsize=(12, 5))
    ax.plot(history.index, history.values, color="black", label="Observed")
    ax.plot(fc["ds"], fc["forecast"], color="tab:red", label=output.model)
    if fc["lower"].notna().any():
        ax.fill_between(
            fc["ds"],
            fc["lower"],
            fc["upper"],
            color="tab:red",
            alpha=0.2,
            label=f"{output.level}% interval",
        )
    ax.set_title(f"{output.unique_id} - {output.horizon}-month forecast ({output.model})")
    ax.set_xlabel("Date")
    ax.legend()
    ax.grid(True, alpha=0.3)
    return _finish(fig, path)


def close(fig) -> None:
    plt.close(fig)
