"""
Chapter 1 Step 1: Configuration + Secrets

Keep BLS_API_KEY in env (prod) / .env (local).
Without a key the v1 API still works, but with a 10-year window per request.
Use a Settings object so every run logs the same config.
"""

import os
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Tuple

from dotenv import load_dotenv

from .series import DEFAULT_SERIES

BLS_ENDPOINTS = {
    "v2": "https://api.bls.gov/publicAPI/v2/timeseries/data/",
    "v1": "https://api.bls.gov/publicAPI/v1/timeseries/data/",
}

# Years per request
MAX_SPAN = {"v2": 20, "v1": 10}

# Series per request
MAX_SERIES = {"v2": 50, "v1": 25}


def resolve_api_version(api_key: Optional[str], api_version: Optional[str] = None) -> str:
    """v2 when a registration key is available, v1 otherwise."""
    if api_version is None:
        return "v2" if api_key else "v1"
    if api_version not in BLS_ENDPOINTS:
        raise ValueError(f"api_version must be one of {list(BLS_ENDPOINTS)}, got {api_version!r}")
    return api_version


@dataclass
class Settings:
    """Configuration for the BLS data pull"""
    api_key: Optional[str] = None
    series_ids: Tuple[str, ...] = DEFAULT_SERIES
    start_year: int = 1982
    end_year: int = 2021
    api_version: Optional[str] = None
    timeout: int = 30

    @property
    def resolved_version(self) -> str:
        return resolve_api_version(self.api_key, self.api_version)

    @property
    def max_span(self) -> int:
        return MAX_SPAN[self.resolved_version]


def load_settings(
    series_ids: Optional[Iterable[str]] = None,
    start_year: int = 1982,
    end_year: Optional[int] = None,
) -> Settings:
    """
    Load settings from environment.

    Reads BLS_API_KEY (optional) and BLS_API_VERSION (optional) from .env
    file or environment variables.
    """
    load_dotenv()

    api_key = os.getenv("BLS_API_KEY") or None
    api_version = os.getenv("BLS_API_VERSION") or None
    # Fail early on a typo in BLS_API_VERSION
    resolve_api_version(api_key, api_version)

    return Settings(
        api_key=api_key,
        series_ids=tuple(series_ids) if series_ids else DEFAULT_SERIES,
        start_year=start_year,
        end_year=end_year if end_year is not None else date.today().year,
        api_version=api_version,
    )
