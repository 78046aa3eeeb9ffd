#!/usr/bin/env python3
"""
Load the NAICS hierarchy used by the wage crawl.

Fetches the OEWS industry list from the BLS API and stores every 2-6 digit
code in naics_codes with its level and parent.

Usage:
    python scripts/bls/load_naics_codes.py
"""
import logging
import sys

from oews_collector.bls.bls_client import BLSClient
from oews_collector.config import settings
from oews_collector.crawl.hierarchy import fetch_naics_nodes, save_naics_nodes
from oews_collector.database.connection import DatabaseConnection
from oews_collector.exceptions import OEWSError
from oews_collector.logging_config import setup_logging

log = logging.getLogger(__name__)


def main():
    try:
        setup_logging(settings.app.log_level, settings.app.log_file_path)
        client = BLSClient.from_settings(settings.bls)
        nodes = fetch_naics_nodes(client)
        inserted = save_naics_nodes(DatabaseConnection.get_session_factory(), nodes)
        print(f"✓ NAICS codes loaded: {len(nodes)} codes, {inserted} new")
    except OEWSError as e:
        log.error(f"Loading NAICS codes failed: {e}")
        sys.exit(1)
    finally:
        DatabaseConnection.dispose()


if __name__ == '__main__':
    main()
