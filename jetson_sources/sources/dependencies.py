"""Build dependency checks via dpkg and apt-get."""

import logging

from jetson_sources.exceptions import CommandError, DependencyInstallError
from jetson_sources.system.commands import CommandRunner

logger = logging.getLogger("jetson_sources.dependencies")


class DependencyInstaller:
    """Installs missing Debian packages."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def is_installed(self, package: str) -> bool:
        """True if dpkg reports the package as installed."""
        return self._runner.succeeds(["dpkg", "-s", package])

    def ensure(self, package: str) -> bool:
        """
        Install a package if it is missing.

        Args:
            package: Debian package name

        Returns:
            True if the package had to be installed

        Raises:
            DependencyInstallError: If apt-get fails
        """
        if self.is_installed(package):
            logger.info(f"{package} is already installed.")
            return False

        logger.info(f"{package} is not installed. Installing...")
        try:
            self._runner.run(["apt-get", "install", "-y", package], privileged=True)
        except CommandError as e:
            logger.error(f"Failed to install {package}. Please install it manually.")
            raise DependencyInstallError(package, e)

        logger.info(f"{package} installed successfully.")
        return True

