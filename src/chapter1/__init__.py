"""
Chapter 1: Fetching from the BLS API

Simple, step-by-step functions for learning:
1. config - Load API key and settings
2. ranges - Split a long year range into API-sized windows
3. client - One BLS request per window, errors mapped to a small taxonomy
4. ingest - Fetch window by window, dedupe and sort
5. validate - Check the fetched table
"""

from .client import BLSClient
from .config import Settings, load_settings
from .errors import (APIResponseError, AuthError, BLSError, ClientError,
                     InvalidRangeError, NetworkError, RangeTooLargeError,
                     RateLimitError)
from .ingest import SeriesRetrievalClient, fetch_series
from .ranges import SubRange, split_year_range
from .series import DEFAULT_SERIES, SERIES_META, series_label
from .validate import ValidationResult, print_validation_report, validate_observation_table

__all__ = [
    "Settings",
    "load_settings",
    "SubRange",
    "split_year_range",
    "BLSClient",
    "SeriesRetrievalClient",
    "fetch_series",
    "ValidationResult",
    "validate_observation_table",
    "print_validation_report",
    "DEFAULT_SERIES",
    "SERIES_META",
    "series_label",
    # Errors
    "BLSError",
    "InvalidRangeError",
    "ClientError",
    "AuthError",
    "RateLimitError",
    "NetworkError",
    "RangeTooLargeError",
    "APIResponseError",
]
