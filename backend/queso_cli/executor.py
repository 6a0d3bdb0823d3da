"""Process execution behind a small interface so commands can be faked in tests."""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """A command could not be started or exited non-zero."""


class CommandExecutor(ABC):
    """Runs external commands for the dev environment."""

    @abstractmethod
    def execute(
        self, command: str, args: list[str], cwd: Path | None = None, check: bool = True
    ) -> int:
        """Run a command to completion and return its exit code."""

    @abstractmethod
    def spawn(self, command: str, args: list[str], cwd: Path | None = None) -> None:
        """Start a long-running command in the background."""

    @abstractmethod
    def capture(self, command: str, args: list[str]) -> str:
        """Run a command and return its stdout ("" if it cannot run)."""


class SubprocessExecutor(CommandExecutor):
    """CommandExecutor backed by the subprocess module."""

    def execute(
        self, command: str, args: list[str], cwd: Path | None = None, check: bool = True
    ) -> int:
        logger.debug(f"exec: {command} {' '.join(args)} (cwd={cwd})")
        try:
            result = subprocess.run([command, *args], cwd=cwd)
        except OSError as e:
            raise CommandError(f"Failed to execute {command}: {e}") from e
        if check and result.returncode != 0:
            raise CommandError(f"{command} {' '.join(args)} exited with {result.returncode}")
        return result.returncode

    def spawn(self, command: str, args: list[str], cwd: Path | None = None) -> None:
        logger.debug(f"spawn: {command} {' '.join(args)} (cwd={cwd})")
        try:
            subprocess.Popen([command, *args], cwd=cwd)
        except OSError as e:
            raise CommandError(f"Failed to spawn {command}: {e}") from e

    def capture(self, command: str, args: list[str]) -> str:
        try:
            result = subprocess.run([command, *args], capture_output=True, text=True)
        except OSError:
            return ""
        return result.stdout
