"""
Chapter 1 Step 3: BLS Public Data API client

One POST per (series batch, year window):
- v2 (registration key): 20 years and 50 series per request
- v1 (no key): 10 years and 25 series per request
- Uses requests.Session with retries for transient server errors
- Maps failures onto AuthError / RateLimitError / NetworkError / RangeTooLargeError
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from src.chapter0.objects import SeriesObservation

from .config import BLS_ENDPOINTS, MAX_SERIES, MAX_SPAN, Settings, resolve_api_version
from .errors import (APIResponseError, AuthError, ClientError, InvalidRangeError,
                     NetworkError, RangeTooLargeError, RateLimitError)

logger = logging.getLogger(__name__)

_RATE_LIMIT_HINTS = ("threshold", "too many requests", "rate limit")
_AUTH_HINTS = ("registration key", "key provided", "invalid key", "unauthorized", "not authorized")
_RANGE_HINTS = ("year range", "system-allowed limit")


def _mask(api_key: Optional[str]) -> str:
    if not api_key:
        return "<none>"
    return api_key[:4] + "..." + api_key[-4:] if len(api_key) >= 8 else "***"


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(str(value).replace(",", ""))
    except ValueError:
        return None


def _join_footnotes(notes: Any) -> str:
    if not notes:
        return ""
    texts = [n.get("text") for n in notes if isinstance(n, dict) and n.get("text")]
    return "; ".join(texts)


def _classify_messages(messages: List[str]) -> ClientError:
    text = " ".join(messages)
    lowered = text.lower()
    if any(hint in lowered for hint in _RATE_LIMIT_HINTS):
        return RateLimitError(text)
    if any(hint in lowered for hint in _AUTH_HINTS):
        return AuthError(text)
    if any(hint in lowered for hint in _RANGE_HINTS):
        return RangeTooLargeError(text)
    return APIResponseError(text or "BLS request failed without a message")


class BLSClient:
    """Series retrieval client for the BLS timeseries endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        api_version: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.api_version = resolve_api_version(api_key, api_version)
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.session = session or self._create_session()

        logger.info(
            "BLS client: api=%s key=%s max_span=%d",
            self.api_version,
            _mask(self.api_key),
            self.max_span,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "BLSClient":
        return cls(
            settings.api_key,
            api_version=settings.api_version,
            timeout=settings.timeout,
        )

    @property
    def url(self) -> str:
        return BLS_ENDPOINTS[self.api_version]

    @property
    def max_span(self) -> int:
        return MAX_SPAN[self.api_version]

    @property
    def max_series(self) -> int:
        return MAX_SERIES[self.api_version]

    def _create_session(self) -> requests.Session:
        """Create session with retry logic"""
        session = requests.Session()
        retries = Retry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=frozenset(["GET", "POST"]),
        )
        session.mount("https://", HTTPAdapter(max_retries=retries))
        return session

    def retrieve(
        self,
        series_ids: Iterable[str],
        start_year: int,
        end_year: int,
    ) -> List[SeriesObservation]:
        """
        Fetch raw observations for every series in [start_year, end_year].

        The span is checked before any request: BLS silently truncates an
        oversized range instead of rejecting it.
        """
        if isinstance(series_ids, str):
            series_ids = [series_ids]
        ids = sorted(set(series_ids))
        if not ids:
            raise ValueError("series_ids must not be empty")
        if start_year > end_year:
            raise InvalidRangeError(f"start_year {start_year} > end_year {end_year}")

        span = end_year - start_year + 1
        if span > self.max_span:
            raise RangeTooLargeError(
                f"Requested {span} years ({start_year}-{end_year}); "
                f"BLS {self.api_version} allows at most {self.max_span}"
            )

        observations: List[SeriesObservation] = []
        for i in range(0, len(ids), self.max_series):
            batch = ids[i:i + self.max_series]
            payload: Dict[str, Any] = {
                "seriesid": batch,
                "startyear": str(start_year),
                "endyear": str(end_year),
            }
            if self.api_key:
                payload["registrationkey"] = self.api_key

            data = self._post(payload)
            try:
                rows = self._parse_series(self._extract_series_list(data))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise APIResponseError(f"Malformed BLS series payload: {e!r}") from e
            logger.debug(
                "BLS %s-%s batch %d: %d observations",
                start_year, end_year, i // self.max_series + 1, len(rows),
            )
            observations.extend(rows)

        return observations

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(
                self.url,
                json=payload,
                headers={"Content-type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"BLS request failed: {e!r}") from e

        if response.status_code in (401, 403):
            raise AuthError(f"BLS rejected credentials (HTTP {response.status_code})")
        if response.status_code == 429:
            raise RateLimitError("BLS rate limit hit (HTTP 429)")

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise APIResponseError(f"HTTP error {response.status_code}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise APIResponseError("BLS response is not valid JSON") from e
        if not isinstance(data, dict):
            raise APIResponseError(f"BLS response is not a JSON object: {type(data).__name__}")

        messages = [str(m) for m in (data.get("message") or [])]
        status = data.get("status")
        if status != "REQUEST_SUCCEEDED":
            raise _classify_messages(messages)

        # BLS answers an oversized range with success + a "reduced" message
        if any(hint in " ".join(messages).lower() for hint in _RANGE_HINTS):
            raise RangeTooLargeError(" ".join(messages))

        return data

    @staticmethod
    def _extract_series_list(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Results come back as either {"Results": {"series": [...]}} or
        {"Results": [{"series": [...]}]} depending on endpoint version.
        """
        results = payload.get("Results")
        if isinstance(results, dict):
            return list(results.get("series", []) or [])
        if isinstance(results, list) and results and isinstance(results[0], dict):
            return list(results[0].get("series", []) or [])
        return []

    @staticmethod
    def _parse_series(series_list: List[Dict[str, Any]]) -> List[SeriesObservation]:
        rows = []
        for series in series_list:
            sid = series.get("seriesID")
            for item in series.get("data", []) or []:
                rows.append(
                    SeriesObservation(
                        series_id=sid,
                        year=int(item["year"]),
                        period=item["period"],
                        value=_to_float(item.get("value")),
                        footnotes=_join_footnotes(item.get("footnotes")),
                    )
                )
        return rows
