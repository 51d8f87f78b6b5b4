"""
Chapter 2: Tidy, Smooth, Visualize

- prepare - Observation records to tidy [unique_id, ds, y] / wide tables
- smoothing - Moving-window average per series
- plotting - Matplotlib charts (series, moving average, decomposition, forecast)
"""

from .prepare import (observations_to_frame, to_monthly_series, to_tidy_frame,
                      to_wide_frame)
from .smoothing import moving_average

__all__ = [
    "observations_to_frame",
    "to_tidy_frame",
    "to_wide_frame",
    "to_monthly_series",
    "moving_average",
]
