"""Public sources downloader.

Fetches public_sources.tbz2 from NVIDIA, reusing a local copy when one
is already present in the working directory.
"""

import logging
import os
from dataclasses import dataclass
from email.utils import formatdate, parsedate_to_datetime
from pathlib import Path
from typing import Callable, List, Optional

import requests

from jetson_sources.config.paths import ARCHIVE_PAGE_URL, GIT_ALTERNATIVE_URL
from jetson_sources.exceptions import DownloadError
from jetson_sources.system.version import DownloadTarget

logger = logging.getLogger("jetson_sources.downloader")


# Request timeout in seconds
REQUEST_TIMEOUT = 30
CHUNK_SIZE = 8192
USER_AGENT = "jetson-kernel-sources/1.0"


@dataclass
class DownloadProgress:
    """Progress information for a download operation."""
    file_name: str
    bytes_downloaded: int
    total_bytes: int

    @property
    def percentage(self) -> float:
        """Download progress as percentage."""
        if self.total_bytes == 0:
            return 0.0
        return (self.bytes_downloaded / self.total_bytes) * 100


# Progress callback type
ProgressCallback = Callable[[DownloadProgress], None]


@dataclass
class DownloadResult:
    """Outcome of acquiring the archive."""
    path: Path
    reused: bool = False       # Local file used without any request
    not_modified: bool = False  # Server answered 304
    bytes_downloaded: int = 0


def remediation_lines(
    file_name: str,
    version_label: str,
    work_dir: Path
) -> List[str]:
    """
    Manual recovery steps shown when the download fails.

    Args:
        file_name: Archive the user should fetch by hand
        version_label: L4T version, e.g. R36.4.3
        work_dir: Directory the archive should be placed in

    Returns:
        Lines to print after the error
    """
    return [
        "",
        "This may be due to:",
        f"1. Incorrect URL mapping for your L4T version ({version_label})",
        "2. NVIDIA changed their download URL structure",
        "",
        "To resolve:",
        f"1. Visit: {ARCHIVE_PAGE_URL}",
        f"2. Find your L4T version: {version_label}",
        f"3. Download '{file_name}' manually",
        f"4. Place it in the current directory: {work_dir}",
        "5. Re-run this script - it will use the existing file",
        "",
        "Alternative: Use git clone method from NVIDIA documentation:",
        f"  git clone {GIT_ALTERNATIVE_URL}",
    ]


class SourceDownloader:
    """Downloads the public sources archive over HTTP."""

    def __init__(
        self,
        timeout: int = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the downloader.

        Args:
            timeout: Connect and read timeout in seconds
            session: Optional preconfigured session
        """
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    def acquire(
        self,
        target: DownloadTarget,
        work_dir: Path,
        version_label: str = "",
        progress_callback: Optional[ProgressCallback] = None
    ) -> DownloadResult:
        """
        Make the archive available in the working directory.

        An existing file with the expected name is used as-is, with no
        request and no integrity check.

        Args:
            target: What to download
            work_dir: Directory to download into
            version_label: L4T version for error reporting
            progress_callback: Optional callback for progress updates

        Returns:
            DownloadResult pointing at the local archive

        Raises:
            DownloadError: If the request fails
        """
        destination = work_dir / target.file_name
        logger.info(f"Downloading kernel sources from: {target.url}")

        if destination.is_file():
            logger.info(f"Found existing {target.file_name}, skipping download")
            logger.info("Using existing file. Delete it first if you want to re-download.")
            return DownloadResult(path=destination, reused=True)

        return self.fetch(target, destination, version_label, progress_callback)

    def fetch(
        self,
        target: DownloadTarget,
        destination: Path,
        version_label: str = "",
        progress_callback: Optional[ProgressCallback] = None
    ) -> DownloadResult:
        """
        Conditionally download a file.

        Only transfers when the remote file is newer than a local copy
        of the same name. The local mtime follows Last-Modified.

        Raises:
            DownloadError: On network failure or an error status
        """
        headers = {}
        if destination.exists():
            headers["If-Modified-Since"] = formatdate(
                destination.stat().st_mtime, usegmt=True
            )

        partial = destination.with_name(destination.name + ".part")
        try:
            logger.debug(f"Requesting {target.url}")
            response = self._session.get(
                target.url,
                headers=headers,
                stream=True,
                timeout=self._timeout
            )
            try:
                if response.status_code == 304:
                    logger.info(f"{destination.name} is up to date")
                    return DownloadResult(path=destination, not_modified=True)
                response.raise_for_status()

                total_size = int(response.headers.get("content-length", 0) or 0)
                downloaded = 0
                with open(partial, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            downloaded += len(chunk)
                            if progress_callback:
                                progress_callback(DownloadProgress(
                                    file_name=target.file_name,
                                    bytes_downloaded=downloaded,
                                    total_bytes=total_size,
                                ))
                last_modified = response.headers.get("last-modified")
            finally:
                response.close()

            partial.replace(destination)
            self._apply_last_modified(destination, last_modified)
            logger.info(f"Downloaded {downloaded} bytes to {destination}")
            return DownloadResult(path=destination, bytes_downloaded=downloaded)

        except requests.exceptions.Timeout as e:
            logger.error("Download timed out")
            self._discard(partial)
            raise DownloadError(target.url, version_label, e)
        except (requests.exceptions.RequestException, OSError) as e:
            logger.error(f"Download failed: {e}")
            self._discard(partial)
            raise DownloadError(target.url, version_label, e)

    @staticmethod
    def _apply_last_modified(path: Path, header: Optional[str]) -> None:
        if not header:
            return
        try:
            stamp = parsedate_to_datetime(header).timestamp()
        except (TypeError, ValueError):
            logger.debug(f"Ignoring unparsable Last-Modified: {header}")
            return
        os.utime(path, (stamp, stamp))

    @staticmethod
    def _discard(partial: Path) -> None:
        try:
            partial.unlink()
        except FileNotFoundError:
            pass

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()

    def __enter__(self) -> "SourceDownloader":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
