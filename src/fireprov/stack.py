import logging
import os
import subprocess
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table

from .errors import ProvisionError
from .services.command_runner import CommandRunner
from .services.compose_stack import HOST_HEALTH_URLS, ComposeStackService
from .services.docker_runtime import DockerRuntimeService
from .services.health_probe import HealthProbeService
from .services.preflight import COMPOSE_REQUIREMENTS, PreflightService

console = Console()
logger = logging.getLogger("fireprov")


class DevStack:
    """Renders and drives the emulator/API/web development composition."""

    def __init__(
        self,
        compose_file: str = "docker-compose.yml",
        health_retries: int = 60,
        health_interval_seconds: float = 5.0,
    ):
        self.compose_file = os.path.join(os.getcwd(), compose_file)
        self.health_retries = health_retries
        self.health_interval_seconds = health_interval_seconds

        self.command_runner = CommandRunner(logger=logger)
        self.preflight_service = PreflightService(logger=logger, console=console)
        self.compose_stack_service = ComposeStackService(logger=logger)
        self.docker_runtime_service = DockerRuntimeService(
            logger=logger,
            console=console,
            subprocess_module=subprocess,
        )
        self.health_probe_service = HealthProbeService(logger=logger)
        self.stack = self.compose_stack_service.default_stack()
        self._compose_cmd: Optional[List[str]] = None

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(cmd, check=check, capture_output=capture_output)

    def _get_docker_compose_cmd(self) -> List[str]:
        if self._compose_cmd is None:
            self.preflight_service.check(COMPOSE_REQUIREMENTS)
            self._compose_cmd = self.docker_runtime_service.get_docker_compose_cmd()
        return self._compose_cmd

    def render(self) -> str:
        self.compose_stack_service.render(self.stack, self.compose_file)
        console.print(f"[green]Wrote {self.compose_file}[/green]")
        return self.compose_file

    def up(self, wait: bool = True):
        compose_cmd = self._get_docker_compose_cmd()
        order = self.compose_stack_service.startup_order(self.stack)
        if not os.path.exists(self.compose_file):
            self.render()

        self.docker_runtime_service.up(compose_cmd, self.compose_file, self._run_cmd)
        if not wait:
            return

        for name in order:
            self.docker_runtime_service.wait_healthy(
                self.stack.get(name).container_name,
                self._run_cmd,
                max_retries=self.health_retries,
                interval_seconds=self.health_interval_seconds,
            )
        console.print("[bold green]Development stack is healthy.[/bold green]")

    def down(self, volumes: bool = False):
        if not os.path.exists(self.compose_file):
            raise ProvisionError(f"Compose file not found: {self.compose_file}")
        self.docker_runtime_service.down(
            self._get_docker_compose_cmd(),
            self.compose_file,
            self._run_cmd,
            volumes=volumes,
        )

    def status(self) -> Dict[str, bool]:
        results = self.health_probe_service.probe_all(HOST_HEALTH_URLS)

        table = Table(title="Development stack")
        table.add_column("Service")
        table.add_column("URL")
        table.add_column("Status")
        for name, url in HOST_HEALTH_URLS.items():
            label = "[green]up[/green]" if results[name] else "[red]down[/red]"
            table.add_row(name, url, label)
        console.print(table)
        return results
