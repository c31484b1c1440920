"""Exceptions for Jetson kernel source provisioning.

Custom exception hierarchy for every fatal pipeline step so the CLI
can print a clear diagnosis before exiting.
"""

from typing import Optional, Sequence


class ProvisionError(Exception):
    """Base exception for all provisioning errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class PrivilegeError(ProvisionError):
    """Elevated privileges are required but could not be obtained."""

    def __init__(self, original_error: Exception = None):
        message = "This script requires sudo privileges. Please run with sudo access."
        super().__init__(message, original_error)


class InvalidArgumentError(ProvisionError):
    """Unrecognised command line argument."""

    def __init__(self, argument: str):
        self.argument = argument
        super().__init__(f"Invalid option: {argument}")


class VersionDetectionError(ProvisionError):
    """The L4T release descriptor is missing or unparsable."""

    def __init__(self, path, reason: str, original_error: Exception = None):
        self.path = path
        self.reason = reason
        message = f"Unable to detect L4T version from {path} ({reason})"
        super().__init__(message, original_error)


class DownloadError(ProvisionError):
    """Fetching the public sources archive failed."""

    def __init__(
        self,
        url: str,
        version_label: str = "",
        original_error: Exception = None
    ):
        self.url = url
        self.version_label = version_label
        message = f"Failed to download kernel sources from {url}"
        super().__init__(message, original_error)

    @property
    def file_name(self) -> str:
        """Archive name at the end of the URL."""
        return self.url.rstrip("/").rsplit("/", 1)[-1]


class ExtractionError(ProvisionError):
    """An archive could not be extracted."""

    def __init__(self, archive, detail: str, original_error: Exception = None):
        self.archive = archive
        self.detail = detail
        message = f"Failed to extract {archive}: {detail}"
        super().__init__(message, original_error)


class ConfigPatchError(ProvisionError):
    """The kernel configuration could not be copied or patched."""

    def __init__(self, config_path, detail: str, original_error: Exception = None):
        self.config_path = config_path
        self.detail = detail
        message = f"Failed to configure {config_path}: {detail}"
        super().__init__(message, original_error)


class DependencyInstallError(ProvisionError):
    """A required system package could not be installed."""

    def __init__(self, package: str, original_error: Exception = None):
        self.package = package
        message = f"Failed to install {package}. Please install it manually"
        super().__init__(message, original_error)


class CommandError(ProvisionError):
    """A system command exited with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stderr: Optional[str] = None
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command '{' '.join(self.command)}' exited with status {returncode}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
