"""
Chapter 1: Series catalogue

Series IDs are exactly as defined by BLS:
- "CES..." series come from the Establishment Survey (payroll jobs, earnings, hours)
- "LNS..." series come from the Household Survey (unemployment, participation)
"""

from typing import Dict

SERIES_META: Dict[str, Dict[str, str]] = {
    "LNS14000000": {
        "name": "Unemployment rate",
        "unit": "Percent",
        "kind": "rate",
        "source": "CPS",
    },
    "LNS11300000": {
        "name": "Labor force participation rate",
        "unit": "Percent",
        "kind": "rate",
        "source": "CPS",
    },
    "LNS12300000": {
        "name": "Employment-population ratio",
        "unit": "Percent",
        "kind": "rate",
        "source": "CPS",
    },
    "LNS13327709": {
        "name": "Underutilization rate (U-6)",
        "unit": "Percent",
        "kind": "rate",
        "source": "CPS",
    },
    "CES0000000001": {
        "name": "Total nonfarm employment",
        "unit": "Thousands of jobs",
        "kind": "level",
        "source": "CES",
    },
    "CES0500000003": {
        "name": "Average hourly earnings, total private",
        "unit": "Dollars per hour",
        "kind": "level",
        "source": "CES",
    },
}

# Unemployment rate + participation rate
DEFAULT_SERIES = ("LNS14000000", "LNS11300000")


def series_label(series_id: str) -> str:
    """Friendly name for a series id (falls back to the id itself)."""
    meta = SERIES_META.get(series_id)
    if meta is None:
        return series_id
    return meta["name"]
