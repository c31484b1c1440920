"""System command execution for Jetson kernel source provisioning.

Wraps subprocess so privileged operations against the kernel source
root pick up a sudo prefix when the tool is not already running as root.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

from jetson_sources.exceptions import CommandError

logger = logging.getLogger("jetson_sources.commands")

PathLike = Union[str, Path]


def is_root() -> bool:
    """True if the effective user is root."""
    return os.geteuid() == 0


class CommandRunner:
    """Runs system commands, optionally elevated through sudo."""

    def __init__(self, use_sudo: Optional[bool] = None):
        """
        Initialize the runner.

        Args:
            use_sudo: Prefix privileged commands with sudo
                (default: only when not running as root)
        """
        self._use_sudo = (not is_root()) if use_sudo is None else use_sudo

    @property
    def use_sudo(self) -> bool:
        """True if privileged commands are prefixed with sudo."""
        return self._use_sudo

    def _build(self, command: Sequence[PathLike], privileged: bool) -> List[str]:
        args = [str(part) for part in command]
        if privileged and self._use_sudo:
            return ["sudo"] + args
        return args

    def run(
        self,
        command: Sequence[PathLike],
        privileged: bool = False,
        cwd: Optional[PathLike] = None,
        input_data: Optional[bytes] = None,
    ) -> subprocess.CompletedProcess:
        """
        Run a command and wait for it to finish.

        Args:
            command: Program and arguments
            privileged: Run through sudo when not root
            cwd: Working directory for the command
            input_data: Bytes fed to the command's stdin

        Returns:
            CompletedProcess with captured stdout and stderr

        Raises:
            CommandError: If the command is missing or exits non-zero
        """
        args = self._build(command, privileged)
        logger.debug(f"Running: {' '.join(args)}")
        try:
            completed = subprocess.run(
                args,
                cwd=str(cwd) if cwd is not None else None,
                input=input_data,
                capture_output=True,
            )
        except OSError as e:
            raise CommandError(args, 127, str(e))

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace")
            raise CommandError(args, completed.returncode, stderr)
        return completed

    def succeeds(self, command: Sequence[PathLike], privileged: bool = False) -> bool:
        """Run a command and report whether it exited cleanly."""
        try:
            self.run(command, privileged=privileged)
        except CommandError as e:
            logger.debug(f"Command failed: {e}")
            return False
        return True

    # Privileged filesystem helpers

    def remove_tree(self, path: PathLike) -> None:
        """Delete a directory tree."""
        self.run(["rm", "-rf", path], privileged=True)

    def move(self, source: PathLike, destination: PathLike) -> None:
        """Rename a file or directory."""
        self.run(["mv", source, destination], privileged=True)

    def copy_file(self, source: PathLike, destination: PathLike) -> None:
        """Copy a single file."""
        self.run(["cp", source, destination], privileged=True)

    def write_file(self, path: PathLike, content: bytes) -> None:
        """Write bytes to a file through tee."""
        self.run(["tee", path], privileged=True, input_data=content)

    def extract_tarball(self, archive: PathLike, destination: PathLike) -> None:
        """Extract a whole tarball into a directory."""
        self.run(["tar", "-xf", archive, "-C", destination], privileged=True)
