"""
Durable record of which occupation x industry series exist.

Every series the crawl asks the API about is written to oews_series exactly
once, together with its annual wages when found. A series present in the
table is never requested again, which is what makes an interrupted crawl
resumable.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from oews_collector.bls.bls_client import WageObservation
from oews_collector.database.connection import get_session
from oews_collector.database.models import OEWSSeries, Wage
from oews_collector.database.upsert import insert_do_nothing

log = logging.getLogger(__name__)

ANNUAL_PERIOD = 'A01'


@dataclass(frozen=True)
class SeriesResolution:
    """Outcome of asking the API about one series"""
    series_id: str
    soc_code: str
    naics_code: str
    found: bool
    observations: Tuple[WageObservation, ...] = ()
    checked_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def series_row(self) -> Dict:
        return {
            'series_id': self.series_id,
            'soc_code': self.soc_code,
            'naics_code': self.naics_code,
            'does_exist': self.found,
            'last_checked': self.checked_at,
        }

    def wage_rows(self) -> List[Dict]:
        """One row per year, preferring the annual period when several are returned"""
        by_year: Dict[int, WageObservation] = {}
        for obs in self.observations:
            current = by_year.get(obs.year)
            if current is None or (obs.period == ANNUAL_PERIOD and current.period != ANNUAL_PERIOD):
                by_year[obs.year] = obs

        return [
            {
                'series_id': self.series_id,
                'year': year,
                'mean_annual_wage': None if obs.value is None else int(round(obs.value)),
            }
            for year, obs in sorted(by_year.items())
        ]


class SeriesExistenceCache:
    """
    Reads and writes series resolutions.

    Lookups go through a process-local memo first; the memo is shared by all
    crawl workers and guarded by a lock. Sessions are opened per operation so
    the cache can be used from several threads.
    """

    def __init__(self, session_factory: sessionmaker, logger: Optional[logging.Logger] = None):
        self.session_factory = session_factory
        self.log = logger or log
        self._known: Dict[str, bool] = {}
        self._lock = threading.Lock()

    def lookup(self, series_id: str) -> Optional[bool]:
        """
        Stored outcome for a series: True (has data), False (checked, no data)
        or None when it has never been checked.
        """
        with self._lock:
            if series_id in self._known:
                return self._known[series_id]

        with get_session(self.session_factory) as session:
            exists = session.execute(
                select(OEWSSeries.does_exist).where(OEWSSeries.series_id == series_id)
            ).scalar_one_or_none()

        if exists is not None:
            with self._lock:
                self._known.setdefault(series_id, exists)
        return exists

    def has(self, series_id: str) -> bool:
        return self.lookup(series_id) is not None

    def preload(self, soc_code: str) -> int:
        """Pull every stored resolution of one occupation into the memo"""
        with get_session(self.session_factory) as session:
            rows = session.execute(
                select(OEWSSeries.series_id, OEWSSeries.does_exist).where(OEWSSeries.soc_code == soc_code)
            ).all()

        with self._lock:
            for series_id, exists in rows:
                self._known.setdefault(series_id, exists)
        if rows:
            self.log.debug(f"{soc_code}: {len(rows)} series already resolved")
        return len(rows)

    def record(self, resolution: SeriesResolution) -> int:
        return self.record_batch([resolution])

    def record_batch(self, resolutions: Iterable[SeriesResolution]) -> int:
        """
        Persist a batch of resolutions and their wages in one transaction.

        Series already present keep their first recorded outcome. Returns the
        number of new oews_series rows.
        """
        unique: Dict[str, SeriesResolution] = {}
        for resolution in resolutions:
            unique.setdefault(resolution.series_id, resolution)
        if not unique:
            return 0

        with get_session(self.session_factory) as session:
            existing = set(session.execute(
                select(OEWSSeries.series_id).where(OEWSSeries.series_id.in_(list(unique)))
            ).scalars())
            # Wages only ever attach to the first recorded outcome of a series
            fresh = [unique[sid] for sid in sorted(unique) if sid not in existing]

            inserted = insert_do_nothing(session, OEWSSeries, [r.series_row() for r in fresh], ['series_id'])
            wage_rows = [row for r in fresh if r.found for row in r.wage_rows()]
            insert_do_nothing(session, Wage, wage_rows, ['series_id', 'year'])

        with self._lock:
            for r in fresh:
                self._known.setdefault(r.series_id, r.found)
        return inserted

    def clear_memo(self):
        with self._lock:
            self._known.clear()
