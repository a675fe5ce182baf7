"""Docker runtime services for the local development stack."""

import subprocess
import time
from typing import Callable, List

from fireprov.errors import ProvisionError


class DockerRuntimeService:
    """Detects docker compose and drives the stack lifecycle."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"

    def __init__(self, logger, console, subprocess_module=subprocess):
        self.logger = logger
        self.console = console
        self.subprocess = subprocess_module

    def get_docker_compose_cmd(self) -> List[str]:
        try:
            self.subprocess.run(["docker", "compose", "version"], check=True, capture_output=True)
            return ["docker", "compose"]
        except (self.subprocess.CalledProcessError, FileNotFoundError):
            try:
                self.subprocess.run(["docker-compose", "--version"], check=True, capture_output=True)
                return ["docker-compose"]
            except (self.subprocess.CalledProcessError, FileNotFoundError):
                raise ProvisionError(
                    "Docker Compose is not available. Install Docker Compose v2 (`docker compose`) "
                    "or v1 (`docker-compose`) and try again."
                )

    def up(self, compose_cmd: List[str], compose_file: str, run_cmd: Callable):
        self.console.print("[blue]Starting development stack...[/blue]")
        run_cmd(compose_cmd + ["-f", compose_file, "up", "-d"])

    def down(self, compose_cmd: List[str], compose_file: str, run_cmd: Callable, volumes: bool = False):
        self.console.print("[dim]Stopping development stack...[/dim]")
        cmd = compose_cmd + ["-f", compose_file, "down"]
        if volumes:
            cmd.append("-v")
        run_cmd(cmd, check=False, capture_output=True)

    def health_status(self, container_name: str, run_cmd: Callable) -> str:
        result = run_cmd(
            ["docker", "inspect", "--format", "{{.State.Health.Status}}", container_name],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return "missing"
        return (result.stdout or "").strip() or "unknown"

    def wait_healthy(
        self,
        container_name: str,
        run_cmd: Callable,
        max_retries: int = 60,
        interval_seconds: float = 5.0,
    ):
        self.console.print(f"[yellow]Waiting for {container_name} to report healthy...[/yellow]")

        for _ in range(max_retries):
            status = self.health_status(container_name, run_cmd)
            self.logger.debug("%s health: %s", container_name, status)
            if status == self.HEALTHY:
                self.console.print(f"[green]{container_name} is healthy.[/green]")
                return
            if status == self.UNHEALTHY:
                break
            time.sleep(interval_seconds)

        raise ProvisionError(
            f"{container_name} failed to become healthy. Check `docker logs {container_name}`."
        )
