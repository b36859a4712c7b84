"""Running repository scripts through the system shell."""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class Shell(ABC):
    """Abstract interface for shell execution."""

    @abstractmethod
    def run_script(self, command: str, cwd: Path) -> int:
        """Run a shell command line in `cwd` and return its exit code."""
        ...


class RealShell(Shell):
    """Production implementation using subprocess with the platform shell."""

    def run_script(self, command: str, cwd: Path) -> int:
        logger.debug("Running %r in %s", command, cwd)
        result = subprocess.run(command, shell=True, cwd=cwd, check=False)
        return result.returncode
