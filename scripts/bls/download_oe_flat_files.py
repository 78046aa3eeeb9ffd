#!/usr/bin/env python3
"""
Download BLS OE flat files from download.bls.gov

Usage:
    # Lookup tables, series catalog and current data
    python scripts/bls/download_oe_flat_files.py

    # Every oe.* file in the directory listing (includes historical data)
    python scripts/bls/download_oe_flat_files.py --all

    # Specific files, replacing local copies
    python scripts/bls/download_oe_flat_files.py --files oe.series,oe.data.0.Current --force

    # Show what would be downloaded
    python scripts/bls/download_oe_flat_files.py --all --dry-run
"""
import argparse
import logging
import sys

from oews_collector.bls.bulk_download import BULK_FILES, BulkDownloader
from oews_collector.config import settings
from oews_collector.exceptions import OEWSError
from oews_collector.logging_config import setup_logging

log = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Download OE flat files")
    parser.add_argument('--data-dir', help='Destination directory (default: BULK_DATA_PATH)')
    parser.add_argument('--files', help='Comma-separated list of files to download')
    parser.add_argument('--all', action='store_true', help='Download every oe.* file in the listing')
    parser.add_argument('--force', action='store_true', help='Re-download files already present')
    parser.add_argument('--dry-run', action='store_true', help='List files without downloading')
    args = parser.parse_args(argv)

    try:
        setup_logging(settings.app.log_level, settings.app.log_file_path)
        download = settings.download
        downloader = BulkDownloader(
            base_url=download.bulk_base_url,
            dest_dir=args.data_dir or settings.loader.bulk_data_path,
            user_agent=download.user_agent,
            timeout=download.timeout,
        )

        names = [f.strip() for f in args.files.split(',')] if args.files else BULK_FILES

        if args.dry_run:
            if args.all:
                names = [name for name, _ in downloader.list_remote_files()]
            print(f"Files to download ({len(names)}):")
            for name in names:
                print(f"  - {name}")
            return

        if args.all:
            paths = downloader.download_all(force=args.force)
        else:
            paths = downloader.download_files(names, force=args.force)

        print(f"\n✓ {len(paths)} files in {downloader.dest_dir}")
    except OEWSError as e:
        log.error(f"Download failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
