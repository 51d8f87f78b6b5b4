"""
Chapter 2 Step 2: Moving-window average
"""

from typing import Optional

import pandas as pd


def moving_average(
    tidy: pd.DataFrame,
    window: int = 12,
    center: bool = False,
    min_periods: Optional[int] = None,
    y_col: str = "y",
) -> pd.DataFrame:
    """
    Add y_ma: rolling mean of y computed separately for each unique_id.

    With the default min_periods (= window), the first window-1 months of
    each series are NaN.
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")

    smoothed = tidy.sort_values(["unique_id", "ds"]).reset_index(drop=True)
    smoothed["y_ma"] = (
        smoothed.groupby("unique_id")[y_col]
        .transform(lambda s: s.rolling(window, center=center, min_periods=min_periods).mean())
    )
    return smoothed
