"""Command line entry point for Jetson kernel source provisioning.

Downloads, extracts and configures the kernel sources for the installed
Jetson Linux release so the kernel can be built natively.

Usage:
    jetson-kernel-sources [--force-replace] [--force-backup]
"""

import argparse
import sys
from typing import List, Optional

from .config.paths import get_log_file_path
from .config.settings import SettingsManager
from .exceptions import DownloadError, InvalidArgumentError, ProvisionError
from .provisioner import ProvisionStatus, RunContext, SourceProvisioner
from .sources.downloader import DownloadProgress, remediation_lines
from .system.commands import CommandRunner
from .system.privileges import ensure_privileges
from .utils.logging import get_logger, setup_logging


class StrictArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting on bad input."""

    def error(self, message: str):
        raise InvalidArgumentError(message)


def build_parser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    parser = StrictArgumentParser(
        prog="jetson-kernel-sources",
        description=(
            "Download, extract and configure the NVIDIA Jetson kernel sources "
            "for the installed L4T release."
        ),
        allow_abbrev=False,
    )
    parser.add_argument(
        "--force-replace",
        action="store_true",
        help="Delete existing kernel sources and download fresh sources",
    )
    parser.add_argument(
        "--force-backup",
        action="store_true",
        help="Back up existing kernel sources before downloading new ones",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Raises:
        InvalidArgumentError: For any unrecognised argument
    """
    args, extra = build_parser().parse_known_args(argv)
    if extra:
        raise InvalidArgumentError(extra[0])
    return args


class ProgressLogger:
    """Logs download progress every `step` percent."""

    def __init__(self, step: int = 10):
        self._step = step
        self._next = step
        self._logger = get_logger("jetson_sources.progress")

    def __call__(self, progress: DownloadProgress) -> None:
        if progress.total_bytes == 0:
            return
        if progress.percentage >= self._next:
            self._logger.info(
                f"{progress.file_name}: {progress.percentage:.0f}% "
                f"({progress.bytes_downloaded}/{progress.total_bytes} bytes)"
            )
            while self._next <= progress.percentage:
                self._next += self._step


def report_error(error: ProvisionError, context: RunContext) -> None:
    """Print a fatal error, with manual steps for download failures."""
    logger = get_logger()
    logger.error(str(error))
    if isinstance(error, DownloadError):
        for line in remediation_lines(error.file_name, error.version_label, context.work_dir):
            print(line)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the tool.

    Returns:
        0 on success or when existing sources are kept, 1 on any error
    """
    try:
        args = parse_args(argv)
    except InvalidArgumentError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    context = RunContext.current()
    logger = setup_logging(
        log_file=get_log_file_path(context.work_dir, context.timestamp)
    )
    settings = SettingsManager().load()
    runner = CommandRunner()

    try:
        ensure_privileges(runner)
        with SourceProvisioner(
            settings,
            context,
            runner=runner,
            progress_callback=ProgressLogger(),
        ) as provisioner:
            result = provisioner.run(
                force_replace=args.force_replace,
                force_backup=args.force_backup,
            )
    except ProvisionError as e:
        report_error(e, context)
        return 1

    if result.status == ProvisionStatus.KEPT_EXISTING:
        logger.debug("Existing kernel sources kept")
    return 0


if __name__ == "__main__":
    sys.exit(main())
