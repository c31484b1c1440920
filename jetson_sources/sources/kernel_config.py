"""Kernel configuration setup.

Seeds the extracted kernel tree with the running kernel's configuration
and stamps LOCALVERSION so the build matches the running kernel.
"""

import gzip
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from jetson_sources.exceptions import CommandError, ConfigPatchError
from jetson_sources.system.commands import CommandRunner
from jetson_sources.system.version import get_kernel_release, local_version_suffix

logger = logging.getLogger("jetson_sources.kernel_config")


CONFIG_NAME = ".config"
ORIGINAL_CONFIG_NAME = ".config.orig"
LOCALVERSION_KEY = "LOCALVERSION"


class ConfigPatcher(Protocol):
    """Sets a string option in a kernel .config file."""

    def patch_config(self, file_path: Path, key: str, value: str) -> None:
        ...


class ScriptsConfigPatcher:
    """Uses the kernel tree's own scripts/config helper."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def patch_config(self, file_path: Path, key: str, value: str) -> None:
        """
        Run scripts/config --set-str inside the kernel tree.

        Raises:
            ConfigPatchError: If the helper is missing or fails
        """
        tree = file_path.parent
        script = tree / "scripts" / "config"
        if not script.is_file():
            raise ConfigPatchError(file_path, f"{script} not found")
        try:
            self._runner.run(
                ["bash", "scripts/config", "--file", file_path.name, "--set-str", key, value],
                privileged=True,
                cwd=tree,
            )
        except CommandError as e:
            raise ConfigPatchError(file_path, f"could not set {key}", e)


@dataclass
class KernelConfigResult:
    """Files written while configuring the kernel tree."""
    config_path: Path
    original_path: Path
    local_version: str


class KernelConfigurator:
    """Copies the running config into a kernel tree and sets LOCALVERSION."""

    def __init__(
        self,
        runner: CommandRunner,
        patcher: Optional[ConfigPatcher] = None
    ):
        """
        Initialize the configurator.

        Args:
            runner: Command runner for privileged writes
            patcher: Config editing collaborator (default: scripts/config)
        """
        self._runner = runner
        self._patcher = patcher or ScriptsConfigPatcher(runner)

    def read_running_config(self, proc_config: Path) -> bytes:
        """
        Decompress the running kernel's config.

        Raises:
            ConfigPatchError: If the file is missing or not gzip data
        """
        try:
            with gzip.open(proc_config, "rb") as f:
                return f.read()
        except (OSError, EOFError) as e:
            raise ConfigPatchError(proc_config, "unable to read running kernel config", e)

    def configure(
        self,
        kernel_tree: Path,
        proc_config: Path,
        kernel_release: Optional[str] = None
    ) -> KernelConfigResult:
        """
        Set up .config in the kernel tree.

        Args:
            kernel_tree: Extracted kernel source tree
            proc_config: Compressed running config (/proc/config.gz)
            kernel_release: Running kernel release (default: uname -r)

        Returns:
            KernelConfigResult

        Raises:
            ConfigPatchError: If any step fails
        """
        config_path = kernel_tree / CONFIG_NAME
        original_path = kernel_tree / ORIGINAL_CONFIG_NAME

        if not kernel_tree.is_dir():
            raise ConfigPatchError(config_path, f"kernel tree {kernel_tree} does not exist")

        logger.info("Copying current kernel config...")
        content = self.read_running_config(proc_config)

        try:
            self._runner.write_file(config_path, content)
            self._runner.copy_file(config_path, original_path)
        except CommandError as e:
            raise ConfigPatchError(config_path, "unable to write config", e)

        release = kernel_release if kernel_release is not None else get_kernel_release()
        suffix = local_version_suffix(release)
        logger.info(f"Setting {LOCALVERSION_KEY} to {suffix}")
        self._patcher.patch_config(config_path, LOCALVERSION_KEY, suffix)

        return KernelConfigResult(
            config_path=config_path,
            original_path=original_path,
            local_version=suffix,
        )
