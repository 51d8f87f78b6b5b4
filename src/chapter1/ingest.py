"""
Chapter 1 Step 4: Fetch a long history window by window

The API caps each request to a span of years, so a long history is pulled as:
1. Split [min_year, max_year] into windows of <= max_span years
2. Call the client once per window, in order (no parallel calls: rate limits)
3. Concatenate, drop duplicate (series_id, year, period) rows
4. Sort by year, then by calendar position of the period

If any window fails, the whole fetch fails: a table silently missing years
is worse than an error.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Protocol, Sequence

from src.chapter0.objects import ObservationTable, SeriesObservation, merge_observations

from .errors import ClientError, RangeTooLargeError
from .ranges import split_year_range

logger = logging.getLogger(__name__)


class SeriesRetrievalClient(Protocol):
    """Anything that can return raw observations for one year window"""

    def retrieve(
        self,
        series_ids: Iterable[str],
        start_year: int,
        end_year: int,
    ) -> Sequence[SeriesObservation]:
        ...


def fetch_series(
    series_ids: Iterable[str],
    min_year: int,
    max_year: int,
    max_span: int,
    client: SeriesRetrievalClient,
) -> ObservationTable:
    """
    Pull [min_year, max_year] for every series, one client call per window.

    Args:
        series_ids: BLS series IDs
        min_year, max_year: Inclusive year bounds
        max_span: Maximum years per client call (20 for BLS v2)
        client: Series retrieval client

    Returns:
        ObservationTable, unique on (series_id, year, period), sorted by
        (year, period calendar order)

    Raises:
        InvalidRangeError: bad year bounds or max_span
        ClientError: the first failing window, tagged with exc.sub_range
    """
    # A bare string is one series id, not an iterable of characters
    ids = {series_ids} if isinstance(series_ids, str) else set(series_ids)
    if not ids:
        raise ValueError("series_ids must not be empty")

    sub_ranges = split_year_range(min_year, max_year, max_span)
    logger.info(
        "[fetch] %d series, %d-%d in %d window(s) of <= %d years",
        len(ids), min_year, max_year, len(sub_ranges), max_span,
    )

    accumulated: List[SeriesObservation] = []
    for sub_range in sub_ranges:
        try:
            if sub_range.span > max_span:
                raise RangeTooLargeError(
                    f"Window spans {sub_range.span} years, cap is {max_span}"
                )
            rows = client.retrieve(ids, sub_range.start, sub_range.end)
        except ClientError as e:
            e.sub_range = sub_range
            logger.error("[fetch] %s failed: %s", sub_range, e.message)
            raise

        accumulated.extend(rows)
        logger.info("[fetch] %s: %d rows", sub_range, len(rows))

    table = merge_observations(accumulated)
    dropped = len(accumulated) - len(table)
    if dropped:
        logger.info("[fetch] dropped %d duplicate rows", dropped)
    logger.info("[fetch] total: %d rows", len(table))

    return table
