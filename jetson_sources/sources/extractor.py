"""Nested archive extraction.

public_sources.tbz2 bundles the kernel, out-of-tree modules and display
driver sources as tarballs of their own. They are pulled out into the
working directory first, then unpacked into the kernel source root.
"""

import logging
import shutil
import tarfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Sequence

from jetson_sources.config.paths import NESTED_ARCHIVES, STRIP_COMPONENTS
from jetson_sources.exceptions import CommandError, ExtractionError
from jetson_sources.system.commands import CommandRunner

logger = logging.getLogger("jetson_sources.extractor")


# Log line for each nested archive, keyed by file name
EXTRACT_MESSAGES: Dict[str, str] = {
    "kernel_src.tbz2": "Extracting kernel source...",
    "kernel_oot_modules_src.tbz2": "Extracting NVIDIA out-of-tree kernel modules...",
    "nvidia_kernel_display_driver_source.tbz2": "Extracting NVIDIA display driver source...",
}


def strip_components(member_name: str, count: int) -> PurePosixPath:
    """
    Drop leading path components, like tar --strip-components.

    Raises:
        ValueError: If nothing is left after stripping
    """
    parts = PurePosixPath(member_name).parts[count:]
    if not parts:
        raise ValueError(f"{member_name} has fewer than {count + 1} path components")
    return PurePosixPath(*parts)


@dataclass
class ExtractionResult:
    """What was extracted and where."""
    destination: Path
    nested: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)


class ArchiveExtractor:
    """Extracts the kernel-related archives from public_sources.tbz2."""

    def __init__(
        self,
        runner: CommandRunner,
        members: Sequence[str] = NESTED_ARCHIVES,
        strip: int = STRIP_COMPONENTS
    ):
        """
        Initialize the extractor.

        Args:
            runner: Command runner for privileged extraction
            members: Nested archive member names, in extraction order
            strip: Leading path components removed from member names
        """
        self._runner = runner
        self._members = list(members)
        self._strip = strip

    def extract_nested(self, archive_path: Path, work_dir: Path) -> List[Path]:
        """
        Pull the nested archives out of the top-level archive.

        Args:
            archive_path: public_sources.tbz2
            work_dir: Directory receiving the nested archives

        Returns:
            Paths of the nested archives, in extraction order

        Raises:
            ExtractionError: If the archive is unreadable or a member is missing
        """
        logger.info("Extracting sources...")
        targets = {
            name: work_dir / strip_components(name, self._strip)
            for name in self._members
        }
        found = set()

        try:
            with tarfile.open(archive_path, "r:*") as tar:
                for member in tar:
                    if member.name not in targets or member.name in found:
                        continue
                    if not member.isfile():
                        raise ExtractionError(archive_path, f"{member.name} is not a regular file")
                    target = targets[member.name]
                    target.parent.mkdir(parents=True, exist_ok=True)
                    logger.debug(f"Extracting {member.name} -> {target}")
                    source = tar.extractfile(member)
                    with source, open(target, "wb") as dst:
                        shutil.copyfileobj(source, dst)
                    found.add(member.name)
        except (tarfile.TarError, EOFError, OSError) as e:
            raise ExtractionError(archive_path, "archive is unreadable", e)

        missing = [name for name in self._members if name not in found]
        if missing:
            raise ExtractionError(archive_path, f"missing members: {', '.join(missing)}")

        return [targets[name] for name in self._members]

    def install(self, nested: Sequence[Path], destination: Path) -> None:
        """
        Unpack each nested archive into the kernel source root.

        Raises:
            ExtractionError: If an extraction command fails
        """
        for archive in nested:
            logger.info(EXTRACT_MESSAGES.get(archive.name, f"Extracting {archive.name}..."))
            try:
                self._runner.extract_tarball(archive, destination)
            except CommandError as e:
                raise ExtractionError(archive, "extraction into kernel source root failed", e)

    def extract(
        self,
        archive_path: Path,
        work_dir: Path,
        destination: Path
    ) -> ExtractionResult:
        """
        Extract the archive set and remove all four tarballs.

        Args:
            archive_path: public_sources.tbz2
            work_dir: Directory for the intermediate archives
            destination: Kernel source root

        Returns:
            ExtractionResult

        Raises:
            ExtractionError: If any step fails; nothing is removed then
        """
        nested = self.extract_nested(archive_path, work_dir)
        self.install(nested, destination)

        removed = []
        for path in [*nested, archive_path]:
            try:
                path.unlink()
            except OSError as e:
                raise ExtractionError(path, "cleanup failed", e)
            removed.append(path)

        logger.info(f"Kernel sources and modules extracted to {destination}")
        return ExtractionResult(destination=destination, nested=nested, removed=removed)
