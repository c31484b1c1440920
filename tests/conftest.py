"""Pytest configuration and shared fixtures for Jetson kernel source tests."""

import gzip
import io
import tarfile
from pathlib import Path
from typing import Dict, List

import pytest

from jetson_sources.config.settings import ProvisionerSettings
from jetson_sources.system.commands import CommandRunner


# Test constants
SAMPLE_RELEASE = (
    "# R36 (release), REVISION: 4.3, GCID: 38968081, BOARD: generic, "
    "EABI: aarch64, DATE: Wed Jan  8 01:49:37 UTC 2025\n"
    "# KERNEL_VARIANT: oot\n"
    "TARGET_USERSPACE_LIB_DIR=nvidia\n"
    "TARGET_USERSPACE_LIB_DIR_PATH=usr/lib/aarch64-linux-gnu/nvidia\n"
)
SAMPLE_CONFIG = b'CONFIG_LOCALVERSION=""\nCONFIG_ARM64=y\nCONFIG_TEGRA_OOT=y\n'

# Files inside each nested archive, keyed by nested archive name
NESTED_CONTENTS: Dict[str, Dict[str, bytes]] = {
    "kernel_src.tbz2": {
        "kernel/kernel-jammy-src/Makefile": b"VERSION = 5\nPATCHLEVEL = 15\n",
        "kernel/kernel-jammy-src/scripts/config": b"#!/bin/bash\n",
    },
    "kernel_oot_modules_src.tbz2": {
        "nvidia-oot/Makefile": b"obj-m += drivers/\n",
        "hwpm/Makefile": b"obj-m += hwpm.o\n",
    },
    "nvidia_kernel_display_driver_source.tbz2": {
        "nvdisplay/README.md": b"NVIDIA display driver\n",
    },
}


def build_tar(path: Path, files: Dict[str, bytes], mode: str = "w") -> Path:
    """Write a tar archive containing the given files."""
    with tarfile.open(path, mode) as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return path


def build_public_sources(
    path: Path,
    nested_names: List[str] = None,
    mode: str = "w:bz2"
) -> Path:
    """
    Build a small public_sources.tbz2.

    Nested archives are plain tar under their .tbz2 names; tar detects the
    format from content, so no bzip2 binary is needed to unpack them.
    """
    names = nested_names if nested_names is not None else list(NESTED_CONTENTS)
    staging = path.parent / "staging"
    staging.mkdir(parents=True, exist_ok=True)

    top_files: Dict[str, bytes] = {
        "Linux_for_Tegra/source/source_sync.sh": b"#!/bin/sh\n",
    }
    for name in names:
        nested = build_tar(staging / name, NESTED_CONTENTS[name])
        top_files[f"Linux_for_Tegra/source/{name}"] = nested.read_bytes()
        nested.unlink()
    staging.rmdir()

    return build_tar(path, top_files, mode=mode)


@pytest.fixture
def release_file(tmp_path: Path) -> Path:
    """Provide an nv_tegra_release file for R36.4.3."""
    path = tmp_path / "nv_tegra_release"
    path.write_text(SAMPLE_RELEASE)
    return path


@pytest.fixture
def proc_config(tmp_path: Path) -> Path:
    """Provide a gzip-compressed running kernel config."""
    path = tmp_path / "config.gz"
    with gzip.open(path, "wb") as f:
        f.write(SAMPLE_CONFIG)
    return path


@pytest.fixture
def kernel_root(tmp_path: Path) -> Path:
    """Provide an empty kernel source root."""
    root = tmp_path / "usr_src"
    root.mkdir()
    return root


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Provide an empty invocation directory."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def runner() -> CommandRunner:
    """Command runner that never uses sudo."""
    return CommandRunner(use_sudo=False)


@pytest.fixture
def settings(release_file: Path, proc_config: Path, kernel_root: Path) -> ProvisionerSettings:
    """Settings pointing every system location into tmp_path."""
    return ProvisionerSettings(
        release_file=str(release_file),
        proc_config=str(proc_config),
        kernel_src_root=str(kernel_root),
        dependencies=[],
    )


@pytest.fixture
def existing_installation(kernel_root: Path) -> Path:
    """Create a previously extracted kernel directory."""
    installation = kernel_root / "kernel"
    tree = installation / "kernel-jammy-src"
    tree.mkdir(parents=True)
    (tree / "Makefile").write_text("old sources\n")
    (tree / ".config").write_text("CONFIG_OLD=y\n")
    return installation


class RecordingPatcher:
    """ConfigPatcher that records calls instead of running scripts/config."""

    def __init__(self):
        self.calls = []

    def patch_config(self, file_path: Path, key: str, value: str) -> None:
        self.calls.append((file_path, key, value))


@pytest.fixture
def patcher() -> RecordingPatcher:
    """Provide a recording config patcher."""
    return RecordingPatcher()


@pytest.fixture
def make_public_sources():
    """Provide the public_sources.tbz2 builder."""
    return build_public_sources


@pytest.fixture
def nested_contents() -> Dict[str, Dict[str, bytes]]:
    """Files expected inside each nested archive."""
    return NESTED_CONTENTS
