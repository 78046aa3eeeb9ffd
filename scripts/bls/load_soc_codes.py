#!/usr/bin/env python3
"""
Load the occupation list used by the wage crawl.

Usage:
    # Fetch oe.occupation from download.bls.gov
    python scripts/bls/load_soc_codes.py

    # Use an already downloaded copy
    python scripts/bls/load_soc_codes.py --file data/bulk/oe/oe.occupation
"""
import argparse
import logging
import sys

from oews_collector.config import settings
from oews_collector.crawl.occupations import fetch_occupation_file, read_occupation_file, save_soc_codes
from oews_collector.database.connection import DatabaseConnection
from oews_collector.exceptions import OEWSError
from oews_collector.logging_config import setup_logging

log = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Load SOC occupation codes")
    parser.add_argument('--file', help='Local oe.occupation file instead of downloading it')
    args = parser.parse_args(argv)

    try:
        setup_logging(settings.app.log_level, settings.app.log_file_path)
        if args.file:
            rows = read_occupation_file(args.file)
        else:
            download = settings.download
            rows = fetch_occupation_file(download.bulk_base_url, download.user_agent, download.timeout)

        inserted = save_soc_codes(DatabaseConnection.get_session_factory(), rows)
        print(f"✓ SOC codes loaded: {len(rows)} codes, {inserted} new")
    except (OEWSError, OSError) as e:
        log.error(f"Loading SOC codes failed: {e}")
        sys.exit(1)
    finally:
        DatabaseConnection.dispose()


if __name__ == '__main__':
    main()
