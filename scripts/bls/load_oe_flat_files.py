#!/usr/bin/env python3
"""
Load BLS OE (Occupational Employment and Wage Statistics) flat files.

This script loads OEWS data from flat files downloaded from:
https://download.bls.gov/pub/time.series/oe/

Loading is idempotent: rows whose key already exists are skipped, so an
interrupted load can simply be run again.

Usage:
    # Load reference tables, series and current data
    python scripts/bls/load_oe_flat_files.py

    # Load only reference tables
    python scripts/bls/load_oe_flat_files.py --skip-data

    # Load only data files (reference tables already loaded)
    python scripts/bls/load_oe_flat_files.py --skip-reference \\
        --data-files oe.data.0.Current

    # Load all available data files
    python scripts/bls/load_oe_flat_files.py --skip-reference --load-all
"""
import argparse
import logging
import sys

from oews_collector.bls.bulk_loader import BulkFileLoader, get_all_data_files
from oews_collector.config import settings
from oews_collector.database.connection import DatabaseConnection
from oews_collector.exceptions import OEWSError
from oews_collector.logging_config import setup_logging

log = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Load OE flat files into database")
    parser.add_argument('--data-dir', help='Directory containing OE flat files (default: BULK_DATA_PATH)')
    parser.add_argument('--data-files', help='Comma-separated list of data files to load')
    parser.add_argument('--load-all', action='store_true', help='Load ALL data files')
    parser.add_argument('--skip-reference', action='store_true', help='Skip loading reference tables and series')
    parser.add_argument('--skip-data', action='store_true', help='Skip loading time series data')
    parser.add_argument('--batch-size', type=int, help='Records per batch (default: LOADER_BATCH_SIZE, else per file kind)')
    parser.add_argument('--skip-invalid', action='store_true', help='Count and skip lines with unusable values')
    parser.add_argument('--keep-unknown-series', action='store_true',
                        help='Do not filter data rows against the loaded series catalog')
    parser.add_argument('--max-workers', type=int, help='Parallel loads for lookup files (default: LOADER_MAX_WORKERS)')
    args = parser.parse_args(argv)

    try:
        setup_logging(settings.app.log_level, settings.app.log_file_path)
        loader_settings = settings.loader
        data_dir = args.data_dir or loader_settings.bulk_data_path

        print("=" * 80)
        print("LOADING BLS OE (OCCUPATIONAL EMPLOYMENT AND WAGE STATISTICS) DATA")
        print("=" * 80)

        data_files = None
        if not args.skip_data:
            if args.data_files:
                data_files = [f.strip() for f in args.data_files.split(',')]
            elif args.load_all:
                data_files = get_all_data_files(data_dir)
            if data_files:
                print(f"Data files to load: {', '.join(data_files)}")

        loader = BulkFileLoader(DatabaseConnection.get_session_factory(), batch_size=args.batch_size or loader_settings.batch_size)
        results = loader.load_directory(
            data_dir,
            data_files=data_files,
            skip_reference=args.skip_reference,
            skip_data=args.skip_data,
            filter_unknown_series=not args.keep_unknown_series,
            skip_invalid=args.skip_invalid,
            max_workers=args.max_workers or loader_settings.max_workers,
        )

        print()
        print(f"{'file':<24}{'lines':>12}{'loaded':>12}{'new':>12}{'filtered':>10}{'invalid':>9}")
        for r in results:
            print(f"{r.file_name:<24}{r.lines_read:>12,}{r.records_loaded:>12,}"
                  f"{r.rows_inserted:>12,}{r.skipped:>10,}{r.invalid:>9,}")
        print()
        print("SUCCESS! OE data loaded into database")

    except FileNotFoundError as e:
        log.error(f"{e}")
        print("Please download OE flat files first:")
        print("  python scripts/bls/download_oe_flat_files.py")
        sys.exit(1)
    except OEWSError as e:
        log.error(f"Load failed: {e}")
        sys.exit(1)
    finally:
        DatabaseConnection.dispose()


if __name__ == '__main__':
    main()
