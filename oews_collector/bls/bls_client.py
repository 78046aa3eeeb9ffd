# bls_client.py
from __future__ import annotations
import json
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Generator, Iterable, List, Optional

import requests

from oews_collector.bls.schemas import IndustriesResponse, TimeseriesResponse, TimeseriesSeries
from oews_collector.bls.schema_validator import validate_model
from oews_collector.config import MAX_SERIES_PER_REQUEST, MAX_YEARS_PER_REQUEST
from oews_collector.exceptions import ResponseValidationError, TransportError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class WageObservation:
    """One annual data point of a resolved series"""
    year: int
    period: str
    value: Optional[float]


class RateLimiter:
    """
    Sliding-window throttle: no more than max_requests in any window_seconds.

    Thread-safe so one instance can sit in front of every crawl worker.
    """

    def __init__(self, max_requests: int, window_seconds: float):
        self._max_req = max_requests
        self._window_sec = window_seconds
        self._req_timestamps: List[float] = []
        self._lock = threading.Lock()

    def acquire(self):
        with self._lock:
            now = time.monotonic()
            window_start = now - self._window_sec
            self._req_timestamps = [t for t in self._req_timestamps if t >= window_start]

            if len(self._req_timestamps) >= self._max_req:
                # Sleep until we fall below the threshold
                sleep_for = self._req_timestamps[0] + self._window_sec - now
                if sleep_for > 0:
                    log.debug(f"Throttling BLS requests for {sleep_for:.2f}s")
                    time.sleep(sleep_for + 0.01)
            self._req_timestamps.append(time.monotonic())


class BLSClient:
    """
    Client for the BLS Public Data API v2.
    Docs: https://www.bls.gov/developers/api_signature_v2.htm

    Key points handled:
      - Batch series in chunks of <= 50, sent sequentially.
      - Year spans of <= 20 years per request.
      - Throttle bursts to <= 50 requests / 10 seconds (shared across threads).
      - Non-2xx responses, network errors and REQUEST_FAILED bodies raise
        TransportError; bodies that fail shape validation raise
        ResponseValidationError. Optional retry of 429/5xx when retries > 0.

    Usage:
      client = BLSClient(api_key="YOUR_KEY")
      resolved = client.resolve_batch(["OEUN000000011000011101103"], 2023, 2023)
    """

    BASE_URL = "https://api.bls.gov/publicAPI/v2"
    TIMESERIES_ENDPOINT = "/timeseries/data/"
    INDUSTRIES_ENDPOINT = "/surveys/OEWS/industries/"

    # Default rate limit (documented burst guidance)
    MAX_REQUESTS_PER_WINDOW = 50
    WINDOW_SECONDS = 10

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        base_url: str = BASE_URL,
        batch_size: int = MAX_SERIES_PER_REQUEST,
        timeout: int = 60,
        retries: int = 0,
        backoff: float = 1.0,
        rate_limiter: Optional[RateLimiter] = None,
        user_agent: str = "OEWSCollector/1.0",
        logger: Optional[logging.Logger] = None,
    ):
        if not api_key:
            raise ValueError("api_key is required")
        if not 1 <= batch_size <= MAX_SERIES_PER_REQUEST:
            raise ValueError(f"batch_size must be between 1 and {MAX_SERIES_PER_REQUEST}")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.batch_size = batch_size
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        self.rate_limiter = rate_limiter or RateLimiter(self.MAX_REQUESTS_PER_WINDOW, self.WINDOW_SECONDS)
        self.log = logger or log
        self.requests_made = 0
        self._count_lock = threading.Lock()

    @classmethod
    def from_settings(cls, bls_settings, batch_size: int = MAX_SERIES_PER_REQUEST, **kwargs) -> "BLSClient":
        return cls(
            api_key=bls_settings.api_key,
            base_url=bls_settings.api_base_url,
            batch_size=batch_size,
            timeout=bls_settings.timeout,
            retries=bls_settings.retries,
            backoff=bls_settings.backoff,
            user_agent=bls_settings.user_agent,
            **kwargs,
        )

    # ---------------------- Public methods ---------------------- #
    def resolve_batch(
        self,
        series_ids: Iterable[str],
        start_year: int,
        end_year: int,
    ) -> Dict[str, Optional[List[WageObservation]]]:
        """
        Check which series have data in [start_year, end_year].

        Returns a mapping for every requested id: a list of observations when
        the API returned data for it, or None when the response has no entry
        (or an entry without data points) for it.
        """
        _validate_range(start_year, end_year, MAX_YEARS_PER_REQUEST)
        series_ids = list(dict.fromkeys(series_ids))
        resolved: Dict[str, Optional[List[WageObservation]]] = {}

        for chunk in _chunks(series_ids, self.batch_size):
            response = self._fetch_timeseries(chunk, start_year, end_year)
            by_id = {s.seriesID: s for s in response.Results.series}

            unexpected = set(by_id) - set(chunk)
            if unexpected:
                self.log.warning(f"Ignoring {len(unexpected)} unrequested series in response: {sorted(unexpected)[:5]}")

            for sid in chunk:
                resolved[sid] = _observations(by_id.get(sid))

        return resolved

    def get_industries(self) -> IndustriesResponse:
        """NAICS industries published by the OEWS survey"""
        url = f"{self.base_url}{self.INDUSTRIES_ENDPOINT}"
        data = self._request_json("GET", url, context="NAICS industries")
        return validate_model(data, IndustriesResponse, "NAICS industries", error_cls=ResponseValidationError)

    # ---------------------- Internals ---------------------- #
    def _fetch_timeseries(self, chunk: List[str], start_year: int, end_year: int) -> TimeseriesResponse:
        context = f"timeseries batch of {len(chunk)} series for {start_year}-{end_year}"
        body = {
            "seriesid": chunk,
            "startyear": str(start_year),
            "endyear": str(end_year),
            "registrationkey": self.api_key,
        }
        url = f"{self.base_url}{self.TIMESERIES_ENDPOINT}"
        data = self._request_json("POST", url, context=context, json=body)

        response = validate_model(data, TimeseriesResponse, context, error_cls=ResponseValidationError)
        if response.status != "REQUEST_SUCCEEDED":
            msg = "; ".join(response.message) or response.status
            raise TransportError(f"BLS error for {context}: {msg}")
        return response

    def _request_json(self, method: str, url: str, context: str, **kwargs) -> Any:
        """
        Throttled request. 429/5xx are retried with exponential backoff + jitter
        only when self.retries > 0; everything else surfaces immediately.
        """
        backoff = self.backoff
        max_backoff = 32.0
        max_tries = self.retries + 1

        for attempt in range(1, max_tries + 1):
            self.rate_limiter.acquire()
            with self._count_lock:
                self.requests_made += 1

            try:
                resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.RequestException as e:
                if attempt == max_tries:
                    raise TransportError(f"Network error for {context}: {e}") from e
                self._sleep_before_retry(f"Network error {e}", backoff, attempt, max_tries)
                backoff = min(max_backoff, backoff * 2)
                continue

            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt == max_tries:
                    raise TransportError(
                        f"HTTP {resp.status_code} for {context}: {resp.text[:500]}", status_code=resp.status_code
                    )
                self._sleep_before_retry(f"HTTP {resp.status_code}", backoff, attempt, max_tries)
                backoff = min(max_backoff, backoff * 2)
                continue

            if not 200 <= resp.status_code < 300:
                raise TransportError(
                    f"HTTP {resp.status_code} for {context}: {resp.text[:500]}", status_code=resp.status_code
                )

            try:
                return resp.json()
            except (ValueError, json.JSONDecodeError) as e:
                raise ResponseValidationError(
                    f"Validation failed for {context}", [f"<root>: body is not JSON ({resp.text[:200]!r})"],
                    context=context,
                ) from e

        raise TransportError(f"Exhausted retries for {context}")

    def _sleep_before_retry(self, reason: str, backoff: float, attempt: int, max_tries: int):
        sleep_for = backoff + random.uniform(0.2, 0.8)
        self.log.warning(f"{reason}; retrying in {sleep_for:.2f}s (attempt {attempt}/{max_tries})")
        time.sleep(sleep_for)


# ---------------------- Helpers & utilities ---------------------- #
def _observations(series: Optional[TimeseriesSeries]) -> Optional[List[WageObservation]]:
    if series is None or not series.data:
        return None
    return [
        WageObservation(year=int(d.year), period=d.period, value=_to_float(d.value))
        for d in series.data
    ]


def _chunks(seq: Iterable[Any], size: int) -> Generator[List[Any], None, None]:
    buf: List[Any] = []
    for x in seq:
        buf.append(x)
        if len(buf) >= size:
            yield buf
            buf = []
    if buf:
        yield buf


def _validate_range(start: int, end: int, max_years: int):
    if end < start:
        raise ValueError("end_year must be >= start_year")
    if (end - start + 1) > max_years:
        raise ValueError(f"Year span exceeds {max_years}")


def _to_float(value: str) -> Optional[float]:
    """Values are shape-checked by TimeseriesDataPoint; '-' is a suppressed estimate"""
    if value == "-":
        return None
    return float(value.replace(",", ""))
