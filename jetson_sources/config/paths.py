"""Path constants and discovery for Jetson kernel source provisioning.

Defines the fixed system locations the tool reads and writes, the
NVIDIA download layout, and per-run log locations.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import List


# Application name for config directories
APP_NAME = "jetson-kernel-sources"

# Environment variable pointing at an alternative settings file
SETTINGS_ENV_VAR = "JETSON_SOURCES_CONFIG"


# System locations
NV_TEGRA_RELEASE = Path("/etc/nv_tegra_release")
PROC_CONFIG_GZ = Path("/proc/config.gz")
KERNEL_SRC_ROOT = Path("/usr/src")

# Directory under KERNEL_SRC_ROOT holding extracted kernel sources
KERNEL_DIR_NAME = "kernel"
# Kernel tree inside KERNEL_DIR_NAME that receives the .config
KERNEL_TREE_SUBDIR = "kernel/kernel-jammy-src"
BACKUP_NAME_FORMAT = "kernel_backup_{timestamp}"


# NVIDIA download layout
# NVIDIA's URLs use r36_release_v4.0 even for R36.4.4
DOWNLOAD_BASE = "https://developer.nvidia.com/downloads/embedded/l4t"
RELEASE_PATH_FORMAT = "r{major}_release_v{minor}.0/sources"
SOURCE_FILE = "public_sources.tbz2"

# Nested archives inside public_sources.tbz2, in extraction order
NESTED_ARCHIVES: List[str] = [
    "Linux_for_Tegra/source/kernel_src.tbz2",
    "Linux_for_Tegra/source/kernel_oot_modules_src.tbz2",
    "Linux_for_Tegra/source/nvidia_kernel_display_driver_source.tbz2",
]
STRIP_COMPONENTS = 2

# Manual remediation sources
ARCHIVE_PAGE_URL = "https://developer.nvidia.com/embedded/jetson-linux-archive"
GIT_ALTERNATIVE_URL = "https://nv-tegra.nvidia.com/3rdparty/canonical/linux-jammy.git"

# Packages required to build the kernel
BUILD_DEPENDENCIES: List[str] = ["libssl-dev"]


# Logging
LOG_DIR_NAME = "logs"
LOG_FILE_FORMAT = "get_kernel_sources_{timestamp}.log"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def format_timestamp(moment: datetime) -> str:
    """Format a timestamp for file and directory names."""
    return moment.strftime(TIMESTAMP_FORMAT)


def get_config_dir() -> Path:
    """
    Get the user configuration directory.

    Returns:
        Path to ~/.config/jetson-kernel-sources (not created)
    """
    base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / APP_NAME


def get_settings_path() -> Path:
    """
    Get the path to the settings JSON file.

    Honours $JETSON_SOURCES_CONFIG when set.

    Returns:
        Path to settings.json
    """
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override)
    return get_config_dir() / "settings.json"


def get_log_dir(work_dir: Path) -> Path:
    """
    Get the directory for log files.

    Args:
        work_dir: Directory the tool was invoked from

    Returns:
        Path to logs directory (created if not exists)
    """
    log_dir = work_dir / LOG_DIR_NAME
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def get_log_file_path(work_dir: Path, moment: datetime) -> Path:
    """
    Get the path to this run's log file.

    Args:
        work_dir: Directory the tool was invoked from
        moment: Run start time

    Returns:
        Path to logs/get_kernel_sources_<timestamp>.log
    """
    return get_log_dir(work_dir) / LOG_FILE_FORMAT.format(
        timestamp=format_timestamp(moment)
    )
