"""
Chapter 0: Observation records and contracts.

A BLS observation is one (series, year, period, value) data point. Everything
downstream (fetch, tidy, decompose, forecast) passes these records around
instead of a shared "current dataframe".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

_MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

_CODE_RE = re.compile(r"^([MQSA])(\d{1,2})$")


def period_order(period: str) -> int:
    """
    Calendar position of a BLS period label within its year.

    M01..M12 (or M1..M12) and month names map to 1..12, M13 (annual
    average) and A01 to 13, quarters to their closing month, S01/S02 to 6/12.
    """
    if not isinstance(period, str) or not period.strip():
        raise ValueError(f"Invalid period label: {period!r}")

    label = period.strip()
    match = _CODE_RE.match(label.upper())
    if match:
        kind, num = match.group(1), int(match.group(2))
        if kind == "M" and 1 <= num <= 13:
            return num
        if kind == "Q" and 1 <= num <= 4:
            return num * 3
        if kind == "S" and 1 <= num <= 2:
            return num * 6
        if kind == "A" and num == 1:
            return 13
        raise ValueError(f"Invalid period label: {period!r}")

    lowered = label.lower()
    for idx, name in enumerate(_MONTH_NAMES, start=1):
        if lowered == name or lowered == name[:3]:
            return idx

    raise ValueError(f"Invalid period label: {period!r}")


def period_month(period: str) -> Optional[int]:
    """Month number for monthly labels (M01..M12 or month names), else None."""
    order = period_order(period)
    match = _CODE_RE.match(period.strip().upper())
    if match and match.group(1) != "M":
        return None
    return order if order <= 12 else None


def normalize_period(period: str) -> str:
    """
    Canonical form of a period label: zero-padded codes, month names as Mnn.

    "M1", "M01", "January" and "jan" all normalize to "M01".
    """
    order = period_order(period)
    match = _CODE_RE.match(period.strip().upper())
    if match:
        return f"{match.group(1)}{int(match.group(2)):02d}"
    return f"M{order:02d}"


@dataclass(frozen=True)
class SeriesObservation:
    """One data point as returned by the statistics API"""
    series_id: str
    year: int
    period: str
    value: Optional[float]
    footnotes: str = ""

    @property
    def key(self) -> Tuple[str, int, str]:
        return (self.series_id, self.year, normalize_period(self.period))

    @property
    def sort_key(self) -> Tuple[int, int, str]:
        return (self.year, period_order(self.period), self.series_id)


@dataclass(frozen=True)
class ObservationTable:
    """Ordered, deduplicated observations handed back by the fetcher."""
    observations: Tuple[SeriesObservation, ...] = ()

    def __len__(self) -> int:
        return len(self.observations)

    def __iter__(self) -> Iterator[SeriesObservation]:
        return iter(self.observations)

    def __getitem__(self, idx: int) -> SeriesObservation:
        return self.observations[idx]

    def series_ids(self) -> List[str]:
        return sorted({obs.series_id for obs in self.observations})

    def years(self) -> Tuple[Optional[int], Optional[int]]:
        if not self.observations:
            return (None, None)
        years = [obs.year for obs in self.observations]
        return (min(years), max(years))

    def filter_series(self, series_id: str) -> "ObservationTable":
        return ObservationTable(
            tuple(obs for obs in self.observations if obs.series_id == series_id)
        )


def dedupe_observations(observations: Iterable[SeriesObservation]) -> List[SeriesObservation]:
    """Drop repeated (series_id, year, period) keys, keeping the first seen."""
    seen = set()
    unique = []
    for obs in observations:
        if obs.key in seen:
            continue
        seen.add(obs.key)
        unique.append(obs)
    return unique


def sort_observations(observations: Iterable[SeriesObservation]) -> List[SeriesObservation]:
    return sorted(observations, key=lambda obs: obs.sort_key)


def merge_observations(*batches: Iterable[SeriesObservation]) -> ObservationTable:
    """
    Concatenate batches, drop duplicate keys and sort by (year, period).

    Merging two overlapping fetches gives the same table as fetching the
    union range once.
    """
    combined: List[SeriesObservation] = []
    for batch in batches:
        combined.extend(batch)
    return ObservationTable(tuple(sort_observations(dedupe_observations(combined))))
