"""Provisioning pipeline for Jetson kernel sources.

Runs version detection, existing-installation handling, download,
extraction, kernel configuration and dependency checks in order.
Every failure propagates and aborts the run.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from jetson_sources.config.settings import ProvisionerSettings
from jetson_sources.sources.dependencies import DependencyInstaller
from jetson_sources.sources.downloader import (
    DownloadResult,
    ProgressCallback,
    SourceDownloader,
)
from jetson_sources.sources.extractor import ArchiveExtractor, ExtractionResult
from jetson_sources.sources.installation import (
    InstallationOutcome,
    InstallationResolver,
    PromptCallback,
)
from jetson_sources.sources.kernel_config import (
    ConfigPatcher,
    KernelConfigResult,
    KernelConfigurator,
)
from jetson_sources.system.commands import CommandRunner
from jetson_sources.system.version import (
    DownloadTarget,
    PlatformVersion,
    detect_platform_version,
)

logger = logging.getLogger("jetson_sources.provisioner")


@dataclass(frozen=True)
class RunContext:
    """Per-run state: invocation directory and start time."""
    work_dir: Path
    timestamp: datetime

    @classmethod
    def current(cls) -> "RunContext":
        """Context for the current process."""
        return cls(work_dir=Path.cwd(), timestamp=datetime.now())


class ProvisionStatus(Enum):
    """How a run ended."""
    COMPLETED = "completed"
    KEPT_EXISTING = "kept_existing"


@dataclass
class ProvisionResult:
    """Summary of a provisioning run."""
    status: ProvisionStatus
    version: PlatformVersion
    installation: InstallationOutcome
    download: Optional[DownloadResult] = None
    extraction: Optional[ExtractionResult] = None
    kernel_config: Optional[KernelConfigResult] = None
    installed_packages: List[str] = field(default_factory=list)


class SourceProvisioner:
    """Orchestrates the kernel source provisioning pipeline."""

    def __init__(
        self,
        settings: ProvisionerSettings,
        context: RunContext,
        runner: Optional[CommandRunner] = None,
        downloader: Optional[SourceDownloader] = None,
        patcher: Optional[ConfigPatcher] = None,
        prompt: Optional[PromptCallback] = None,
        kernel_release: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """
        Initialize the provisioner.

        Args:
            settings: Locations and tunables
            context: Working directory and run timestamp
            runner: Command runner (default: sudo when not root)
            downloader: HTTP downloader (default: new SourceDownloader)
            patcher: Config editing collaborator (default: scripts/config)
            prompt: Callback used for the keep/replace/backup question
            kernel_release: Running kernel release (default: uname -r)
            progress_callback: Optional download progress callback
        """
        self._settings = settings
        self._context = context
        self._runner = runner or CommandRunner()
        self._downloader = downloader or SourceDownloader(timeout=settings.timeout)
        self._resolver = InstallationResolver(self._runner, prompt)
        self._extractor = ArchiveExtractor(
            self._runner,
            members=settings.nested_archives,
            strip=settings.strip_components,
        )
        self._configurator = KernelConfigurator(self._runner, patcher)
        self._dependencies = DependencyInstaller(self._runner)
        self._kernel_release = kernel_release
        self._progress_callback = progress_callback
        self._version: Optional[PlatformVersion] = None

    @property
    def version(self) -> Optional[PlatformVersion]:
        """Detected version, once detect_platform_version has run."""
        return self._version

    def detect_platform_version(self) -> PlatformVersion:
        """Read the L4T version from the release descriptor."""
        self._version = detect_platform_version(self._settings.release_path)
        return self._version

    def download_target(self, version: PlatformVersion) -> DownloadTarget:
        """Download location for a version."""
        return DownloadTarget.for_version(
            version,
            download_base=self._settings.download_base,
            file_name=self._settings.source_file,
        )

    def resolve_existing_installation(
        self,
        force_replace: bool = False,
        force_backup: bool = False
    ) -> InstallationOutcome:
        """Keep, delete or back up previously extracted sources."""
        return self._resolver.resolve(
            self._settings.installation_dir,
            self._context.timestamp,
            force_replace=force_replace,
            force_backup=force_backup,
        )

    def acquire_archive(self, target: DownloadTarget) -> DownloadResult:
        """Reuse or download public_sources.tbz2 into the working directory."""
        label = self._version.label if self._version else ""
        return self._downloader.acquire(
            target,
            self._context.work_dir,
            version_label=label,
            progress_callback=self._progress_callback,
        )

    def extract_archive_set(self, archive_path: Path) -> ExtractionResult:
        """Unpack the nested archives into the kernel source root."""
        return self._extractor.extract(
            archive_path,
            self._context.work_dir,
            self._settings.kernel_root,
        )

    def patch_kernel_config(self) -> KernelConfigResult:
        """Seed .config from the running kernel and set LOCALVERSION."""
        return self._configurator.configure(
            self._settings.kernel_tree,
            self._settings.proc_config_path,
            kernel_release=self._kernel_release,
        )

    def ensure_dependency(self, package: str) -> bool:
        """Install a package if missing; True if it was installed."""
        return self._dependencies.ensure(package)

    def run(
        self,
        force_replace: bool = False,
        force_backup: bool = False
    ) -> ProvisionResult:
        """
        Run the whole pipeline.

        Args:
            force_replace: Delete existing sources without asking
            force_backup: Back up existing sources without asking

        Returns:
            ProvisionResult

        Raises:
            ProvisionError: On the first failing step
        """
        version = self.detect_platform_version()
        target = self.download_target(version)

        logger.info(f"Detected L4T version: {version.label}")
        logger.info(f"Download URL base: {target.base_url}")
        logger.info(f"Kernel sources directory: {self._settings.kernel_root}")

        installation = self.resolve_existing_installation(force_replace, force_backup)
        if not installation.proceed:
            return ProvisionResult(
                status=ProvisionStatus.KEPT_EXISTING,
                version=version,
                installation=installation,
            )

        download = self.acquire_archive(target)
        extraction = self.extract_archive_set(download.path)
        kernel_config = self.patch_kernel_config()

        installed = [
            package for package in self._settings.dependencies
            if self.ensure_dependency(package)
        ]

        logger.info("Kernel source setup complete!")
        return ProvisionResult(
            status=ProvisionStatus.COMPLETED,
            version=version,
            installation=installation,
            download=download,
            extraction=extraction,
            kernel_config=kernel_config,
            installed_packages=installed,
        )

    def close(self) -> None:
        """Clean up resources."""
        self._downloader.close()

    def __enter__(self) -> "SourceProvisioner":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
