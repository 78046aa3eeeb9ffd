"""
Download BLS OE flat files from download.bls.gov

BLS rejects anonymous scripted downloads, so every request carries a
User-Agent with contact information (BLS_USER_AGENT).
"""
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import requests
from bs4 import BeautifulSoup

from oews_collector.exceptions import TransportError

log = logging.getLogger(__name__)

# Lookup tables, series catalog and current-year data
BULK_FILES = [
    "oe.area",
    "oe.areatype",
    "oe.datatype",
    "oe.footnote",
    "oe.industry",
    "oe.occupation",
    "oe.release",
    "oe.seasonal",
    "oe.sector",
    "oe.series",
    "oe.data.0.Current",
]


class BulkDownloader:
    """Streams OE flat files from the BLS time.series directory to disk"""

    CHUNK_SIZE = 1024 * 1024

    def __init__(
        self,
        base_url: str,
        dest_dir: Union[str, Path],
        user_agent: str,
        timeout: int = 60,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.dest_dir = Path(dest_dir)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': user_agent})
        self.log = logger or log

    def list_remote_files(self) -> List[Tuple[str, str]]:
        """
        Parse the HTML directory listing.

        Returns:
            List of (filename, url) tuples
        """
        listing_url = f"{self.base_url}/"
        try:
            response = self.session.get(listing_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"Failed to list {listing_url}: {e}") from e

        soup = BeautifulSoup(response.text, 'html.parser')

        files = []
        for link in soup.find_all('a'):
            href = link.get('href')
            if not href or href.startswith('?') or href.endswith('/'):
                continue

            filename = href.split('/')[-1]
            if not filename.startswith('oe.'):
                continue

            if href.startswith('http'):
                file_url = href
            elif href.startswith('/'):
                scheme_host = '/'.join(self.base_url.split('/')[:3])
                file_url = scheme_host + href
            else:
                file_url = f"{self.base_url}/{href}"

            files.append((filename, file_url))

        return files

    def download_file(self, filename: str, url: Optional[str] = None, force: bool = False) -> Path:
        """Download one file, skipping it when already present unless force is set"""
        self.dest_dir.mkdir(parents=True, exist_ok=True)
        dest_path = self.dest_dir / filename
        if dest_path.exists() and not force:
            self.log.info(f"  {filename} already present, skipping")
            return dest_path

        url = url or f"{self.base_url}/{filename}"
        tmp_path = dest_path.with_suffix(dest_path.suffix + '.part')
        self.log.info(f"  Downloading {url}")

        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                if not response.ok:
                    raise TransportError(
                        f"Failed to download {filename}: HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                downloaded = 0
                with open(tmp_path, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            downloaded += len(chunk)
        except requests.RequestException as e:
            tmp_path.unlink(missing_ok=True)
            raise TransportError(f"Failed to download {filename}: {e}") from e
        except TransportError:
            tmp_path.unlink(missing_ok=True)
            raise

        tmp_path.replace(dest_path)
        self.log.info(f"  ✓ {filename} ({downloaded / (1024 * 1024):.1f} MB)")
        return dest_path

    def download_files(self, files: Optional[Iterable[str]] = None, force: bool = False) -> List[Path]:
        return [self.download_file(name, force=force) for name in (files or BULK_FILES)]

    def download_all(self, force: bool = False) -> List[Path]:
        """Download every oe.* file in the remote listing (includes all historical data files)"""
        return [self.download_file(name, url, force=force) for name, url in self.list_remote_files()]
