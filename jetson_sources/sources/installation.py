"""Handling of previously extracted kernel sources.

Decides whether an existing installation is kept, deleted or moved to a
timestamped backup, either from force flags or by asking the user.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from jetson_sources.config.paths import BACKUP_NAME_FORMAT, format_timestamp
from jetson_sources.system.commands import CommandRunner

logger = logging.getLogger("jetson_sources.installation")


# Prompt callback type: receives the prompt text, returns the user's answer
PromptCallback = Callable[[str], str]


class InstallAction(Enum):
    """What to do with an existing installation."""
    NONE = "none"          # Nothing installed
    KEEP = "keep"
    REPLACE = "replace"
    BACKUP = "backup"


class InstallationState(Enum):
    """Terminal state of an existing installation."""
    ABSENT = "absent"
    KEPT = "kept"
    DELETED = "deleted"
    BACKED_UP = "backed_up"


@dataclass
class InstallationOutcome:
    """Result of resolving an existing installation."""
    state: InstallationState
    path: Path
    backup_path: Optional[Path] = None

    @property
    def proceed(self) -> bool:
        """True if the pipeline should continue to download."""
        return self.state != InstallationState.KEPT


def backup_path_for(installation_dir: Path, moment: datetime) -> Path:
    """Backup location next to the installation, e.g. /usr/src/kernel_backup_20250101_120000."""
    name = BACKUP_NAME_FORMAT.format(timestamp=format_timestamp(moment))
    return installation_dir.parent / name


def parse_choice(answer: Optional[str]) -> InstallAction:
    """
    Map an interactive answer to an action.

    Answers starting with R replace, answers starting with B back up,
    anything else keeps.
    """
    answer = (answer or "").strip().lower()
    if answer.startswith("r"):
        return InstallAction.REPLACE
    if answer.startswith("b"):
        return InstallAction.BACKUP
    return InstallAction.KEEP


def ask_user(installation_dir: Path, prompt: PromptCallback = input) -> InstallAction:
    """Ask what to do with existing sources; end of input means keep."""
    print(f"Kernel sources already exist at {installation_dir}.")
    print("What would you like to do?")
    print("[K]eep existing sources (default)")
    print("[R]eplace (delete and re-download)")
    print("[B]ackup and download fresh sources")
    try:
        answer = prompt("Enter your choice (K/R/B): ")
    except EOFError:
        answer = ""
    return parse_choice(answer)


def choose_action(
    installation_dir: Path,
    force_replace: bool = False,
    force_backup: bool = False,
    prompt: PromptCallback = input
) -> InstallAction:
    """
    Decide what to do with an existing installation.

    First match wins: no directory, force replace, force backup, then
    the interactive prompt.
    """
    if not installation_dir.is_dir():
        return InstallAction.NONE
    if force_replace:
        return InstallAction.REPLACE
    if force_backup:
        return InstallAction.BACKUP
    return ask_user(installation_dir, prompt)


class InstallationResolver:
    """Applies the keep/replace/backup decision to the kernel source root."""

    def __init__(
        self,
        runner: CommandRunner,
        prompt: Optional[PromptCallback] = None
    ):
        """
        Initialize the resolver.

        Args:
            runner: Command runner for privileged filesystem changes
            prompt: Callback used to ask the user (default: input)
        """
        self._runner = runner
        self._prompt = prompt or input

    def resolve(
        self,
        installation_dir: Path,
        moment: datetime,
        force_replace: bool = False,
        force_backup: bool = False
    ) -> InstallationOutcome:
        """
        Resolve an existing installation.

        Args:
            installation_dir: Directory holding existing sources
            moment: Run timestamp used for the backup name
            force_replace: Delete without asking
            force_backup: Back up without asking

        Returns:
            InstallationOutcome describing the terminal state

        Raises:
            CommandError: If deleting or moving the directory fails
        """
        action = choose_action(installation_dir, force_replace, force_backup, self._prompt)

        if action == InstallAction.NONE:
            return InstallationOutcome(InstallationState.ABSENT, installation_dir)

        if action == InstallAction.REPLACE:
            if force_replace:
                logger.info("Forcing deletion of existing kernel sources...")
            else:
                logger.info("Deleting existing kernel sources...")
            self._runner.remove_tree(installation_dir)
            return InstallationOutcome(InstallationState.DELETED, installation_dir)

        if action == InstallAction.BACKUP:
            backup_dir = backup_path_for(installation_dir, moment)
            if force_backup:
                logger.info(f"Forcing backup of existing kernel sources to {backup_dir}...")
            else:
                logger.info(f"Backing up existing kernel sources to {backup_dir}...")
            self._runner.move(installation_dir, backup_dir)
            return InstallationOutcome(
                InstallationState.BACKED_UP, installation_dir, backup_path=backup_dir
            )

        logger.info("Keeping existing kernel sources. Skipping download.")
        return InstallationOutcome(InstallationState.KEPT, installation_dir)
