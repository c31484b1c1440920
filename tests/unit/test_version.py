"""Unit tests for L4T version detection and URL templating."""

import pytest
from pathlib import Path
from unittest.mock import patch

from jetson_sources.exceptions import VersionDetectionError
from jetson_sources.system.version import (
    DownloadTarget,
    PlatformVersion,
    detect_platform_version,
    get_kernel_release,
    local_version_suffix,
)


class TestPlatformVersionParse:
    """Tests for PlatformVersion.parse()."""

    def test_parses_major_and_revision(self):
        """Should read the release number and full revision."""
        version = PlatformVersion.parse(
            "# R36 (release), REVISION: 4.3, GCID: 38968081, BOARD: generic, EABI: aarch64"
        )

        assert version.major == 36
        assert version.minor_full == "4.3"
        assert version.minor == 4

    def test_multi_component_revision(self):
        """Minor should be the first component of a long revision."""
        version = PlatformVersion.parse("# R36 (release), REVISION: 4.4.4, GCID: 1")

        assert version.minor_full == "4.4.4"
        assert version.minor == 4

    def test_single_component_revision(self):
        """A bare revision number should parse."""
        version = PlatformVersion.parse("# R35 (release), REVISION: 5, GCID: 1")

        assert version.minor_full == "5"
        assert version.minor == 5

    def test_label(self):
        """Label should combine major and full revision."""
        version = PlatformVersion(major=36, minor_full="4.4.4")
        assert version.label == "R36.4.4"

    def test_missing_revision(self):
        """Should raise ValueError without a REVISION field."""
        with pytest.raises(ValueError, match="REVISION"):
            PlatformVersion.parse("# R36 (release), GCID: 1")

    def test_missing_major(self):
        """Should raise ValueError without a release number."""
        with pytest.raises(ValueError, match="release number"):
            PlatformVersion.parse("garbage\n")

    def test_empty_text(self):
        """Should raise ValueError for empty input."""
        with pytest.raises(ValueError):
            PlatformVersion.parse("")


class TestDetectPlatformVersion:
    """Tests for detect_platform_version()."""

    def test_reads_release_file(self, release_file: Path):
        """Should parse the release file on disk."""
        version = detect_platform_version(release_file)

        assert version == PlatformVersion(major=36, minor_full="4.3")

    def test_missing_file(self, tmp_path: Path):
        """Should raise VersionDetectionError for a missing file."""
        with pytest.raises(VersionDetectionError) as exc_info:
            detect_platform_version(tmp_path / "missing")

        assert exc_info.value.reason == "file not readable"
        assert exc_info.value.original_error is not None

    def test_unparsable_file(self, tmp_path: Path):
        """Should raise VersionDetectionError for unparsable content."""
        path = tmp_path / "nv_tegra_release"
        path.write_text("not a tegra release\n")

        with pytest.raises(VersionDetectionError) as exc_info:
            detect_platform_version(path)

        assert str(path) in str(exc_info.value)


class TestDownloadTarget:
    """Tests for DownloadTarget."""

    @pytest.mark.parametrize("minor_full,expected", [
        ("4.3", "v4.0"),
        ("4.4.4", "v4.0"),
        ("3.0", "v3.0"),
        ("12.1.7", "v12.0"),
    ])
    def test_url_uses_first_minor_component(self, minor_full, expected):
        """URL minor should be the first dotted token of the revision."""
        target = DownloadTarget.for_version(PlatformVersion(36, minor_full))

        assert f"r36_release_{expected}/sources" in target.base_url

    def test_default_url(self):
        """Should build the NVIDIA download URL."""
        target = DownloadTarget.for_version(PlatformVersion(36, "4.3"))

        assert target.url == (
            "https://developer.nvidia.com/downloads/embedded/l4t/"
            "r36_release_v4.0/sources/public_sources.tbz2"
        )
        assert target.file_name == "public_sources.tbz2"

    def test_custom_base_trailing_slash(self):
        """Should not double the slash after a custom base."""
        target = DownloadTarget.for_version(
            PlatformVersion(35, "6.0"),
            download_base="https://mirror.example.com/l4t/",
            file_name="sources.tbz2",
        )

        assert target.url == "https://mirror.example.com/l4t/r35_release_v6.0/sources/sources.tbz2"


class TestLocalVersionSuffix:
    """Tests for local_version_suffix()."""

    @pytest.mark.parametrize("release,expected", [
        ("5.15.0-custom-tegra", "-custom-tegra"),
        ("5.15.148-tegra", "-tegra"),
        ("5.15.136-rt-tegra", "-rt-tegra"),
        ("5.15.148-tegra\n", "-tegra"),
    ])
    def test_drops_first_token(self, release, expected):
        """Should drop the version token and keep a leading hyphen."""
        assert local_version_suffix(release) == expected

    def test_release_without_hyphen(self):
        """A release without hyphens should be kept whole."""
        assert local_version_suffix("6.1.0") == "-6.1.0"

    def test_get_kernel_release_uses_platform(self):
        """Should report platform.release()."""
        with patch("jetson_sources.system.version.platform.release", return_value="5.15.148-tegra"):
            assert get_kernel_release() == "5.15.148-tegra"
