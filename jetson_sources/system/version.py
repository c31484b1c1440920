"""L4T version detection and download URL templating.

Parses /etc/nv_tegra_release, which looks like:

    # R36 (release), REVISION: 4.3, GCID: 38968081, BOARD: generic, EABI: aarch64, ...
"""

import logging
import platform
import re
from dataclasses import dataclass
from pathlib import Path

from jetson_sources.config.paths import DOWNLOAD_BASE, RELEASE_PATH_FORMAT, SOURCE_FILE
from jetson_sources.exceptions import VersionDetectionError

logger = logging.getLogger("jetson_sources.version")


MAJOR_PATTERN = re.compile(r"R(\d+)")
REVISION_PATTERN = re.compile(r"REVISION: (\d+(?:\.\d+)*)")


@dataclass(frozen=True)
class PlatformVersion:
    """Installed Jetson Linux release."""
    major: int
    minor_full: str

    @property
    def minor(self) -> int:
        """First component of the revision (4.4.4 -> 4)."""
        return int(self.minor_full.split(".")[0])

    @property
    def label(self) -> str:
        """Display form, e.g. R36.4.3."""
        return f"R{self.major}.{self.minor_full}"

    @classmethod
    def parse(cls, text: str) -> "PlatformVersion":
        """
        Parse release descriptor contents.

        Raises:
            ValueError: If the major release or revision is missing
        """
        major = None
        minor_full = None
        for line in text.splitlines():
            if major is None:
                match = MAJOR_PATTERN.search(line)
                if match:
                    major = int(match.group(1))
            if minor_full is None:
                match = REVISION_PATTERN.search(line)
                if match:
                    minor_full = match.group(1)

        if major is None:
            raise ValueError("no release number found")
        if minor_full is None:
            raise ValueError("no REVISION found")
        return cls(major=major, minor_full=minor_full)


@dataclass(frozen=True)
class DownloadTarget:
    """Where to fetch the public sources archive from."""
    base_url: str
    file_name: str = SOURCE_FILE

    @property
    def url(self) -> str:
        """Full download URL."""
        return f"{self.base_url}/{self.file_name}"

    @classmethod
    def for_version(
        cls,
        version: PlatformVersion,
        download_base: str = DOWNLOAD_BASE,
        file_name: str = SOURCE_FILE
    ) -> "DownloadTarget":
        """Build the target for a release; the URL always uses <minor>.0."""
        release_path = RELEASE_PATH_FORMAT.format(major=version.major, minor=version.minor)
        return cls(base_url=f"{download_base.rstrip('/')}/{release_path}", file_name=file_name)


def detect_platform_version(release_file: Path) -> PlatformVersion:
    """
    Read the installed L4T version.

    Args:
        release_file: Path to nv_tegra_release

    Returns:
        PlatformVersion

    Raises:
        VersionDetectionError: If the file is missing or unparsable
    """
    try:
        text = release_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise VersionDetectionError(release_file, "file not readable", e)

    try:
        version = PlatformVersion.parse(text)
    except ValueError as e:
        raise VersionDetectionError(release_file, str(e))

    logger.debug(f"Parsed {release_file}: {version.label}")
    return version


def get_kernel_release() -> str:
    """Running kernel release, as printed by `uname -r`."""
    return platform.release()


def local_version_suffix(kernel_release: str) -> str:
    """
    Derive the LOCALVERSION suffix from a kernel release.

    Drops the first hyphen-delimited token and re-adds a leading hyphen:
    5.15.0-custom-tegra -> -custom-tegra. A release without a hyphen is
    kept whole, as `cut -d- -f2-` does.
    """
    release = kernel_release.strip()
    _, sep, rest = release.partition("-")
    return f"-{rest if sep else release}"
