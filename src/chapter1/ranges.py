"""
Chapter 1 Step 2: Split a year range into API-sized windows

The BLS API caps each request to a bounded span of years (20 with a
registration key, 10 without). Long histories are pulled as consecutive
inclusive windows, e.g. 1982-2001, 2002-2021, 2022-2022.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .errors import InvalidRangeError


@dataclass(frozen=True)
class SubRange:
    """Closed interval of years [start, end]"""
    start: int
    end: int

    @property
    def span(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


def split_year_range(min_year: int, max_year: int, max_span: int) -> List[SubRange]:
    """
    Partition [min_year, max_year] into ascending windows of <= max_span years.

    Windows never overlap, leave no gaps, and only the last one can be
    shorter than max_span.

    Raises:
        InvalidRangeError: min_year > max_year or max_span < 1
    """
    if max_span < 1:
        raise InvalidRangeError(f"max_span must be >= 1, got {max_span}")
    if min_year > max_year:
        raise InvalidRangeError(
            f"min_year must be <= max_year, got {min_year} > {max_year}"
        )

    ranges = []
    for start in range(min_year, max_year + 1, max_span):
        end = min(max_year, start + max_span - 1)
        ranges.append(SubRange(start, end))
    return ranges
