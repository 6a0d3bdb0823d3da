"""Local development environment: Postgres in Docker, the API and the UI."""

import logging
import socket
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass

from queso_cli.executor import CommandError, CommandExecutor
from queso_cli.paths import ProjectPaths

logger = logging.getLogger(__name__)

BACKEND_PORT = 3000
FRONTEND_PORT = 5173
POSTGRES_PORT = 5432

BACKEND_PROCESS_PATTERN = "python.* -m api"
FRONTEND_PROCESS_PATTERN = "bun run dev"


@dataclass
class EnvConfig:
    """How long to wait for Postgres after ``docker compose up``."""

    postgres_wait_seconds: float = 5.0
    postgres_wait_interval: float = 1.0


@dataclass
class ServiceInfo:
    name: str
    url: str
    port: int


def is_port_available(port: int, host: str = "127.0.0.1") -> bool:
    """Return True if nothing is listening on ``port``."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


class EnvironmentManager:
    """Drives docker compose and the dev servers through a CommandExecutor.

    ``prompt``, ``sleep`` and ``port_available`` are injectable so the
    interactive parts can be exercised without a terminal or real ports.
    """

    def __init__(
        self,
        paths: ProjectPaths,
        executor: CommandExecutor,
        config: EnvConfig | None = None,
        prompt: Callable[[str], str] = input,
        sleep: Callable[[float], None] = time.sleep,
        port_available: Callable[[int], bool] = is_port_available,
    ):
        self.paths = paths
        self.executor = executor
        self.config = config or EnvConfig()
        self.prompt = prompt
        self.sleep = sleep
        self.port_available = port_available

    def _compose(self, *args: str) -> None:
        self.executor.execute(
            "docker", ["compose", "-f", str(self.paths.docker_compose), *args]
        )

    def _confirm(self, question: str) -> bool:
        try:
            answer = self.prompt(f"{question} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() == "y"

    def verify_paths(self) -> None:
        """Check the checkout has what the dev commands need.

        Raises:
            CommandError: docker-compose.yml or the backend is missing
        """
        print("Checking project structure...")
        if not self.paths.docker_compose.exists():
            raise CommandError(f"docker-compose.yml not found at: {self.paths.docker_compose}")
        if not self.paths.backend.exists():
            raise CommandError(f"Backend directory not found at: {self.paths.backend}")
        if not self.paths.frontend.exists():
            print(f"! Frontend not found at {self.paths.frontend}, UI will be skipped")
        print("✓ Project structure verified")

    def start_docker(self) -> None:
        print("Starting Docker services...")
        self._compose("up", "-d")
        print("✓ Docker services started")

    def stop_docker(self) -> None:
        print("Stopping Docker services...")
        self._compose("down")
        print("✓ Docker services stopped")

    def remove_docker(self) -> None:
        print("Removing Docker services and volumes...")
        self._compose("down", "-v")
        print("✓ Docker cleanup complete")

    def wait_for_postgres(self) -> int:
        """Give Postgres time to accept connections.

        Sleeps for the configured total in interval steps, always at least
        one step. Returns the number of steps taken.
        """
        interval_ms = max(round(self.config.postgres_wait_interval * 1000), 1)
        total_ms = round(self.config.postgres_wait_seconds * 1000)
        steps = max(total_ms // interval_ms, 1)
        interval = interval_ms / 1000
        print("Waiting for PostgreSQL...")
        for _ in range(steps):
            self.sleep(interval)
        return steps

    def _process_on_port(self, port: int) -> str | None:
        output = self.executor.capture("lsof", ["-t", "-i", f":{port}"]).split()
        return output[0] if output else None

    def ensure_port_free(self, port: int) -> None:
        """Offer to kill whatever holds ``port``.

        Raises:
            CommandError: The port is busy and the user declined
        """
        if self.port_available(port):
            return

        pid = self._process_on_port(port)
        owner = f"process {pid}" if pid else "another process"
        if pid and self._confirm(f"! Port {port} is in use by {owner}. Kill it?"):
            self.executor.execute("kill", [pid])
            return
        raise CommandError(f"Port {port} is already in use")

    def run_migrations(self) -> None:
        print("Running database migrations...")
        self.executor.execute(
            sys.executable, ["-m", "alembic", "upgrade", "head"], cwd=self.paths.backend
        )
        print("✓ Database migrations complete")

    def start_backend(self) -> ServiceInfo:
        print("\nStarting backend server...")
        self.ensure_port_free(BACKEND_PORT)
        self.executor.spawn(
            sys.executable, ["-m", "api", "--port", str(BACKEND_PORT)], cwd=self.paths.backend
        )
        return ServiceInfo("Backend API", f"http://localhost:{BACKEND_PORT}", BACKEND_PORT)

    def start_frontend(self) -> ServiceInfo | None:
        if not self.paths.frontend.exists():
            logger.info(f"No frontend at {self.paths.frontend}, skipping")
            return None

        print("\nSetting up frontend...")
        self.ensure_port_free(FRONTEND_PORT)
        self.executor.execute("bun", ["install"], cwd=self.paths.frontend)
        self.executor.spawn("bun", ["run", "dev"], cwd=self.paths.frontend)
        return ServiceInfo("Frontend", f"http://localhost:{FRONTEND_PORT}", FRONTEND_PORT)

    def stop_servers(self) -> None:
        # pkill exits 1 when nothing matched
        print("Stopping backend server...")
        self.executor.execute("pkill", ["-f", BACKEND_PROCESS_PATTERN], check=False)
        print("Stopping frontend server...")
        self.executor.execute("pkill", ["-f", FRONTEND_PROCESS_PATTERN], check=False)
        print("✓ Servers stopped")

    def display_service_info(self, services: list[ServiceInfo]) -> None:
        print("\nAvailable Services:")
        for service in services:
            print(f"  • {service.name} - {service.url}")
        print()

    def shutdown(self) -> None:
        self.stop_docker()
        self.stop_servers()
        print("\n✓ All services stopped gracefully")

    def wait_for_shutdown(self) -> None:
        """Block until Ctrl+C is confirmed, then stop everything."""
        while True:
            try:
                self.sleep(1)
            except KeyboardInterrupt:
                if self._confirm("\n? Are you sure you want to stop all services?"):
                    self.shutdown()
                    return
                print("i Continuing to run services...")
