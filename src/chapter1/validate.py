"""
Chapter 1 Step 5: Validate the fetched table

Hard gates for data quality:
- Uniqueness: no duplicates on (series_id, year, period)
- Order: non-decreasing (year, period calendar order) for every adjacent pair
Reported, not fatal:
- Missing months between a series' first and last monthly observation
- Null values (unreported observations)
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from src.chapter0.objects import ObservationTable, period_month, period_order


@dataclass
class ValidationResult:
    """Results of observation table validation"""
    is_valid: bool
    n_rows: int
    n_series: int
    n_duplicates: int
    is_sorted: bool
    n_nulls: int
    n_missing_months: int
    missing_months: List[Tuple[str, int, int]] = field(default_factory=list)
    year_min: Optional[int] = None
    year_max: Optional[int] = None


def validate_observation_table(table: ObservationTable) -> ValidationResult:
    """
    Validate a fetched table before it is reshaped.

    Args:
        table: ObservationTable from fetch_series

    Returns:
        ValidationResult with detailed findings
    """
    # Check 1: Duplicates
    seen = set()
    n_duplicates = 0
    for obs in table:
        if obs.key in seen:
            n_duplicates += 1
        seen.add(obs.key)

    # Check 2: Sort order on (year, period)
    order = [(obs.year, period_order(obs.period)) for obs in table]
    is_sorted = all(a <= b for a, b in zip(order, order[1:]))

    # Check 3: Nulls
    n_nulls = sum(1 for obs in table if obs.value is None)

    # Check 4: Missing months per series
    missing: List[Tuple[str, int, int]] = []
    for series_id in table.series_ids():
        months = set()
        for obs in table.filter_series(series_id):
            month = period_month(obs.period)
            if month is not None:
                months.add(obs.year * 12 + (month - 1))
        if not months:
            continue
        for idx in range(min(months), max(months) + 1):
            if idx not in months:
                missing.append((series_id, idx // 12, idx % 12 + 1))

    year_min, year_max = table.years()

    return ValidationResult(
        is_valid=(n_duplicates == 0) and is_sorted,
        n_rows=len(table),
        n_series=len(table.series_ids()),
        n_duplicates=n_duplicates,
        is_sorted=is_sorted,
        n_nulls=n_nulls,
        n_missing_months=len(missing),
        missing_months=missing[:10],  # First 10 only
        year_min=year_min,
        year_max=year_max,
    )


def print_validation_report(result: ValidationResult) -> None:
    """Print a human-readable validation report"""
    status = "PASS" if result.is_valid else "FAIL"
    print(f"\n=== Validation Report: {status} ===")
    print(f"Rows: {result.n_rows} ({result.n_series} series)")
    print(f"Years: {result.year_min} to {result.year_max}")
    print(f"Duplicates: {result.n_duplicates}")
    print(f"Sorted: {result.is_sorted}")
    print(f"Missing months: {result.n_missing_months}")
    if result.missing_months:
        print(f"  First missing: {result.missing_months[:5]}")
    print(f"Null values: {result.n_nulls}")
