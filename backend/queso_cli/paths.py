"""Locating the project checkout."""

import subprocess
from dataclasses import dataclass
from pathlib import Path

from queso_cli.executor import CommandError


@dataclass(frozen=True)
class ProjectPaths:
    """Directories and files the dev commands operate on."""

    backend: Path
    frontend: Path
    docker_compose: Path


def find_git_root(start: Path | None = None) -> Path:
    """Return the top-level directory of the git checkout containing ``start``.

    Raises:
        CommandError: Not inside a git repository
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=start or Path.cwd(),
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        raise CommandError("Failed to find git repository") from e
    return Path(result.stdout.strip())


def get_project_paths(git_root: Path) -> ProjectPaths:
    return ProjectPaths(
        backend=git_root / "backend",
        frontend=git_root / "frontend",
        docker_compose=git_root / "docker-compose.yml",
    )
