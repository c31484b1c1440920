"""Settings management for Jetson kernel source provisioning.

Provides ProvisionerSettings dataclass and SettingsManager for loading
optional JSON overrides.
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional

from jetson_sources.config import paths
from jetson_sources.config.paths import get_settings_path

logger = logging.getLogger("jetson_sources.settings")


@dataclass
class ProvisionerSettings:
    """Locations and tunables for a provisioning run."""

    # System locations
    release_file: str = str(paths.NV_TEGRA_RELEASE)
    proc_config: str = str(paths.PROC_CONFIG_GZ)
    kernel_src_root: str = str(paths.KERNEL_SRC_ROOT)
    kernel_tree_subdir: str = paths.KERNEL_TREE_SUBDIR

    # Download settings
    download_base: str = paths.DOWNLOAD_BASE
    source_file: str = paths.SOURCE_FILE
    timeout: int = 30

    # Extraction settings
    nested_archives: List[str] = field(
        default_factory=lambda: list(paths.NESTED_ARCHIVES)
    )
    strip_components: int = paths.STRIP_COMPONENTS

    # Packages checked after configuration
    dependencies: List[str] = field(
        default_factory=lambda: list(paths.BUILD_DEPENDENCIES)
    )

    @property
    def release_path(self) -> Path:
        """Path to the L4T release descriptor."""
        return Path(self.release_file)

    @property
    def proc_config_path(self) -> Path:
        """Path to the running kernel's compressed config."""
        return Path(self.proc_config)

    @property
    def kernel_root(self) -> Path:
        """Kernel source root directory."""
        return Path(self.kernel_src_root)

    @property
    def installation_dir(self) -> Path:
        """Directory holding previously extracted kernel sources."""
        return self.kernel_root / paths.KERNEL_DIR_NAME

    @property
    def kernel_tree(self) -> Path:
        """Kernel tree that receives the .config."""
        return self.kernel_root / self.kernel_tree_subdir

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ProvisionerSettings":
        """Create settings from dictionary, ignoring unknown keys."""
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)


class SettingsManager:
    """Loads provisioning settings from an optional JSON file."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            config_path: Optional custom path, defaults to $JETSON_SOURCES_CONFIG
                or the user config directory
        """
        self._config_path = config_path or get_settings_path()
        self._settings: Optional[ProvisionerSettings] = None

    @property
    def config_path(self) -> Path:
        """Path to settings file."""
        return self._config_path

    def load(self) -> ProvisionerSettings:
        """
        Load settings from disk.

        Returns:
            ProvisionerSettings instance (defaults if file not found)
        """
        if self._config_path.exists():
            try:
                with open(self._config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("settings file must contain a JSON object")
                self._settings = ProvisionerSettings.from_dict(data)
                logger.debug(f"Loaded settings from {self._config_path}")
            except (json.JSONDecodeError, ValueError, TypeError, IOError) as e:
                logger.warning(f"Ignoring invalid settings file {self._config_path}: {e}")
                self._settings = ProvisionerSettings()
        else:
            self._settings = ProvisionerSettings()

        return self._settings

    def save(self, settings: ProvisionerSettings) -> None:
        """
        Persist settings to disk.

        Args:
            settings: Settings to save
        """
        self._settings = settings
        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self._config_path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)
