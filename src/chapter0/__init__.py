"""
Chapter 0: Observation Records and Contracts
"""

from .objects import (
    ObservationTable,
    SeriesObservation,
    dedupe_observations,
    merge_observations,
    normalize_period,
    period_month,
    period_order,
    sort_observations,
)

__all__ = [
    "ObservationTable",
    "SeriesObservation",
    "dedupe_observations",
    "merge_observations",
    "normalize_period",
    "period_month",
    "period_order",
    "sort_observations",
]
