"""Check that required command-line tools are installed."""

import logging
import subprocess
from typing import Iterable

from .errors import DependencyMissingError

logger = logging.getLogger(__name__)


def check_dependencies(commands: Iterable[str]) -> None:
    """Run ``<command> --version`` for each command.

    Raises:
        DependencyMissingError: For the first command that cannot be run.
    """
    for command in commands:
        try:
            subprocess.run([command, "--version"], check=True, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise DependencyMissingError(command) from exc
        logger.info("Found dependency %s", command)
