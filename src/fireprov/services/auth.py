"""Interactive authentication against Firebase and Google Cloud."""

from typing import Callable

from fireprov.errors import ProvisionError
from fireprov.errors_catalog import actionable_error


class AuthService:
    """Runs the browser-based logins and selects the active project."""

    LOGIN_COMMANDS = (
        ("firebase", ["firebase", "login", "--no-localhost"]),
        ("gcloud", ["gcloud", "auth", "login"]),
    )

    def __init__(self, logger, console):
        self.logger = logger
        self.console = console

    def login(self, run_cmd: Callable):
        self.console.print("[blue]Authenticating... this will open your browser.[/blue]")
        for tool, cmd in self.LOGIN_COMMANDS:
            self.logger.info("Starting %s login", tool)
            try:
                run_cmd(cmd)
            except ProvisionError as exc:
                raise ProvisionError(f"{actionable_error('login_failed', tool=tool)}\n{exc}") from exc
        self.console.print("[green]Authenticated.[/green]")

    def select_project(self, project_id: str, run_cmd: Callable):
        self.console.print(f"[blue]Setting project to: {project_id}[/blue]")
        run_cmd(["gcloud", "config", "set", "project", project_id], capture_output=True)
        run_cmd(["firebase", "use", project_id], capture_output=True)
