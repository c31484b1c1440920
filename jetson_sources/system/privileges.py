"""Privilege checks for Jetson kernel source provisioning."""

import logging

from jetson_sources.exceptions import CommandError, PrivilegeError
from jetson_sources.system.commands import CommandRunner, is_root

logger = logging.getLogger("jetson_sources.privileges")


def ensure_privileges(runner: CommandRunner) -> None:
    """
    Verify elevated privileges are available.

    Root passes immediately. Otherwise `sudo -v` is run so the password
    prompt happens once, before any work is done.

    Raises:
        PrivilegeError: If sudo credentials cannot be obtained
    """
    if is_root():
        return

    try:
        # Interactive: sudo may prompt for a password on the terminal
        runner.run(["sudo", "-v"])
    except CommandError as e:
        raise PrivilegeError(e)
    logger.debug("sudo credentials validated")
