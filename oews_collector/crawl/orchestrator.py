"""
Hierarchy-pruned wage crawl.

For each occupation the crawl walks the NAICS tree top-down: a sector is
asked about first, and an industry's children are only asked about when the
industry itself has a mean annual wage series. Outcomes are written to the
existence cache before any child is queued, so a crawl stopped at any point
resumes where it left off without repeating a request.
"""
import logging
import math
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, fields
from typing import Iterable, List, Optional, Tuple

from oews_collector.config import MAX_SERIES_PER_REQUEST
from oews_collector.crawl.existence_cache import SeriesExistenceCache, SeriesResolution
from oews_collector.crawl.frontier import CrawlFrontier
from oews_collector.crawl.hierarchy import ClassificationHierarchy, ClassificationNode
from oews_collector.crawl.series_identity import SeriesIdentity
from oews_collector.exceptions import CrawlCancelled

log = logging.getLogger(__name__)


@dataclass
class CrawlStats:
    occupations: int = 0
    requests: int = 0
    series_checked: int = 0
    series_found: int = 0
    series_skipped: int = 0
    observations: int = 0

    def merge(self, other: 'CrawlStats'):
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))


class CrawlOrchestrator:
    """
    Drives one frontier per occupation against the batched API client.

    Occupations are independent, so with max_workers > 1 they are crawled in
    parallel; the client's rate limiter is shared by all workers. The first
    failure sets stop_event, the other workers stop at their next batch
    boundary and the failure is re-raised from run().
    """

    def __init__(
        self,
        cache: SeriesExistenceCache,
        client,
        hierarchy: ClassificationHierarchy,
        start_year: int,
        end_year: int,
        batch_size: int = MAX_SERIES_PER_REQUEST,
        max_workers: int = 1,
        stop_event: Optional[threading.Event] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if not 1 <= batch_size <= MAX_SERIES_PER_REQUEST:
            raise ValueError(f"batch_size must be between 1 and {MAX_SERIES_PER_REQUEST}")
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if end_year < start_year:
            raise ValueError("end_year must be >= start_year")

        self.cache = cache
        self.client = client
        self.hierarchy = hierarchy
        self.start_year = start_year
        self.end_year = end_year
        self.batch_size = batch_size
        self.max_workers = max_workers
        self.stop_event = stop_event or threading.Event()
        self.log = logger or log

    def run(self, occupation_codes: Iterable[str]) -> CrawlStats:
        codes = list(dict.fromkeys(occupation_codes))
        total = CrawlStats()
        if not codes:
            self.log.warning("No occupations to crawl")
            return total
        if not self.hierarchy.roots():
            self.log.warning("NAICS hierarchy is empty; nothing to crawl")
            return total

        self.log.info(
            f"Crawling {len(codes)} occupations over {len(self.hierarchy)} NAICS codes "
            f"({self.start_year}-{self.end_year}, {self.max_workers} worker(s))"
        )

        if self.max_workers == 1:
            for i, soc_code in enumerate(codes, start=1):
                total.merge(self.crawl_occupation(soc_code))
                self.log.info(f"[{i}/{len(codes)}] {soc_code} done")
        else:
            self._run_parallel(codes, total)

        self.log.info(
            f"Crawl complete: {total.occupations} occupations, {total.requests} requests, "
            f"{total.series_found}/{total.series_checked} series found, {total.series_skipped} already known"
        )
        return total

    def _run_parallel(self, codes: List[str], total: CrawlStats):
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix='crawl') as executor:
            futures = {executor.submit(self.crawl_occupation, code): code for code in codes}
            try:
                done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            except KeyboardInterrupt:
                self.stop_event.set()
                for future in futures:
                    future.cancel()
                raise

            failed = [f for f in done if f.exception() is not None]
            # Report a real failure ahead of the cancellations it triggered
            failed.sort(key=lambda f: isinstance(f.exception(), CrawlCancelled))
            if failed:
                self.stop_event.set()
                for future in pending:
                    future.cancel()
                wait(pending)
                error = failed[0].exception()
                if not isinstance(error, CrawlCancelled):
                    self.log.error(f"Crawl of {futures[failed[0]]} failed: {error}")
                raise error

            for future in done:
                total.merge(future.result())

    def crawl_occupation(self, soc_code: str) -> CrawlStats:
        """Walk the hierarchy for one occupation until its frontier is empty"""
        stats = CrawlStats(occupations=1)
        self.cache.preload(soc_code)

        frontier = CrawlFrontier(soc_code)
        frontier.seed(self.hierarchy.roots())

        while frontier:
            self._check_cancelled(soc_code)

            batch = self._next_batch(frontier, soc_code, stats)
            if not batch:
                continue

            series_ids = [identity.series_id for _, identity in batch]
            resolved = self.client.resolve_batch(series_ids, self.start_year, self.end_year)
            stats.requests += math.ceil(len(series_ids) / self.client.batch_size)

            resolutions = []
            for node, identity in batch:
                observations = resolved.get(identity.series_id)
                resolutions.append(SeriesResolution(
                    series_id=identity.series_id,
                    soc_code=soc_code,
                    naics_code=node.code,
                    found=observations is not None,
                    observations=tuple(observations or ()),
                ))
            self.cache.record_batch(resolutions)

            found = 0
            for (node, _), resolution in zip(batch, resolutions):
                stats.series_checked += 1
                if resolution.found:
                    found += 1
                    stats.series_found += 1
                    stats.observations += len(resolution.observations)
                self._settle(frontier, node, resolution.found)

            self.log.info(
                f"{soc_code}: {found}/{len(batch)} series found, {len(frontier)} codes queued"
            )

        return stats

    def _next_batch(
        self,
        frontier: CrawlFrontier,
        soc_code: str,
        stats: CrawlStats,
    ) -> List[Tuple[ClassificationNode, SeriesIdentity]]:
        """
        Pop up to batch_size unresolved nodes. Nodes already in the cache do
        not take a slot; those recorded as found still have their children
        queued so a resumed crawl continues below them.
        """
        batch: List[Tuple[ClassificationNode, SeriesIdentity]] = []
        while frontier and len(batch) < self.batch_size:
            node = frontier.pop()
            identity = SeriesIdentity(soc_code, node.code)

            known = self.cache.lookup(identity.series_id)
            if known is not None:
                stats.series_skipped += 1
                self.log.debug(f"{identity.series_id} already resolved (exists={known})")
                self._settle(frontier, node, known)
                continue

            batch.append((node, identity))
        return batch

    def _settle(self, frontier: CrawlFrontier, node: ClassificationNode, found: bool):
        if frontier.mark_resolved(node, found):
            frontier.expand(node, self.hierarchy.children(node.code))

    def _check_cancelled(self, soc_code: str):
        if self.stop_event.is_set():
            raise CrawlCancelled(f"Crawl of {soc_code} cancelled")
