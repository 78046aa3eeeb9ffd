#!/usr/bin/env python3
"""
Crawl national mean annual wages for every occupation x NAICS industry.

Requires naics_codes and soc_codes to be loaded first. Every series checked is
recorded in oews_series, so the crawl can be stopped (Ctrl+C) and re-run; it
resumes without repeating requests.

Usage:
    # All occupations, years from CRAWL_START_YEAR..CRAWL_END_YEAR
    python scripts/bls/crawl_wages.py

    # Selected occupations and years
    python scripts/bls/crawl_wages.py --soc 11-1011,15-1252 --start-year 2021 --end-year 2024

    # Four occupations at a time
    python scripts/bls/crawl_wages.py --workers 4
"""
import argparse
import logging
import sys
import threading

from oews_collector.bls.bls_client import BLSClient
from oews_collector.config import MAX_SERIES_PER_REQUEST, MAX_YEARS_PER_REQUEST, settings
from oews_collector.crawl.existence_cache import SeriesExistenceCache
from oews_collector.crawl.hierarchy import ClassificationHierarchy
from oews_collector.crawl.occupations import load_soc_codes
from oews_collector.crawl.orchestrator import CrawlOrchestrator
from oews_collector.database.connection import DatabaseConnection, get_session
from oews_collector.exceptions import CrawlCancelled, OEWSError
from oews_collector.logging_config import setup_logging

log = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Crawl OEWS wages through the BLS API")
    parser.add_argument('--soc', help='Comma-separated SOC codes (default: all loaded codes)')
    parser.add_argument('--start-year', type=int, help='First year (default: CRAWL_START_YEAR)')
    parser.add_argument('--end-year', type=int, help='Last year (default: CRAWL_END_YEAR)')
    parser.add_argument('--batch-size', type=int, help='Series per API request (default: CRAWL_BATCH_SIZE)')
    parser.add_argument('--workers', type=int, help='Occupations crawled in parallel (default: CRAWL_MAX_WORKERS)')
    args = parser.parse_args(argv)

    stop_event = threading.Event()
    try:
        setup_logging(settings.app.log_level, settings.app.log_file_path)
        crawl = settings.crawl
        start_year = args.start_year or crawl.start_year
        end_year = args.end_year or crawl.end_year
        if end_year < start_year or end_year - start_year + 1 > MAX_YEARS_PER_REQUEST:
            parser.error(f"year range must be ascending and span at most {MAX_YEARS_PER_REQUEST} years")
        batch_size = args.batch_size if args.batch_size is not None else crawl.batch_size
        if not 1 <= batch_size <= MAX_SERIES_PER_REQUEST:
            parser.error(f"--batch-size must be between 1 and {MAX_SERIES_PER_REQUEST}")
        max_workers = args.workers if args.workers is not None else crawl.max_workers
        if max_workers < 1:
            parser.error("--workers must be >= 1")

        session_factory = DatabaseConnection.get_session_factory()
        with get_session(session_factory) as session:
            hierarchy = ClassificationHierarchy.from_session(session)
            known_socs = load_soc_codes(session)

        if args.soc:
            requested = [s.strip() for s in args.soc.split(',') if s.strip()]
            unknown = sorted(set(requested) - set(known_socs))
            if unknown:
                parser.error(f"unknown SOC codes (load them first): {', '.join(unknown)}")
            soc_codes = requested
        else:
            soc_codes = known_socs

        orchestrator = CrawlOrchestrator(
            cache=SeriesExistenceCache(session_factory),
            client=BLSClient.from_settings(settings.bls, batch_size=batch_size),
            hierarchy=hierarchy,
            start_year=start_year,
            end_year=end_year,
            batch_size=batch_size,
            max_workers=max_workers,
            stop_event=stop_event,
        )
        stats = orchestrator.run(soc_codes)

        print()
        print(f"Occupations:     {stats.occupations:,}")
        print(f"API requests:    {stats.requests:,}")
        print(f"Series checked:  {stats.series_checked:,}")
        print(f"Series found:    {stats.series_found:,}")
        print(f"Already known:   {stats.series_skipped:,}")
        print(f"Observations:    {stats.observations:,}")

    except KeyboardInterrupt:
        stop_event.set()
        log.warning("Interrupted; completed batches are saved, re-run to resume")
        sys.exit(1)
    except CrawlCancelled as e:
        log.warning(f"{e}; re-run to resume")
        sys.exit(1)
    except OEWSError as e:
        log.error(f"Crawl failed: {e}")
        sys.exit(1)
    finally:
        DatabaseConnection.dispose()


if __name__ == '__main__':
    main()
