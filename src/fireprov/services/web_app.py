"""Firebase web app lookup, creation and SDK config download."""

import json
from typing import Callable, Optional

from fireprov.errors import ProvisionError
from fireprov.errors_catalog import actionable_error


class WebAppService:
    """Find-or-create for the project's WEB platform app."""

    def __init__(self, logger, console, filesystem_service):
        self.logger = logger
        self.console = console
        self.filesystem_service = filesystem_service

    def find_web_app_id(self, project_id: str, run_cmd: Callable) -> Optional[str]:
        result = run_cmd(
            ["firebase", "apps:list", "--project", project_id, "--json"],
            capture_output=True,
        )
        return self.parse_web_app_id(result.stdout or "")

    @staticmethod
    def parse_web_app_id(payload: str) -> Optional[str]:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ProvisionError(f"Unexpected `firebase apps:list` output: {exc}") from exc

        apps = data.get("result") if isinstance(data, dict) else None
        for app in apps or []:
            if isinstance(app, dict) and app.get("platform") == "WEB" and app.get("appId"):
                return app["appId"]
        return None

    def ensure_web_app(self, project_id: str, display_name: str, run_cmd: Callable) -> str:
        self.console.print("[blue]Fetching web app configuration...[/blue]")
        app_id = self.find_web_app_id(project_id, run_cmd)
        if app_id:
            self.logger.info("Found web app: %s", app_id)
            return app_id

        self.console.print("[yellow]No web app found. Creating one...[/yellow]")
        run_cmd(
            ["firebase", "apps:create", "WEB", display_name, "--project", project_id],
            capture_output=True,
        )
        app_id = self.find_web_app_id(project_id, run_cmd)
        if not app_id:
            raise ProvisionError(actionable_error("web_app_not_created", project_id=project_id))

        self.logger.info("Created web app: %s", app_id)
        return app_id

    def download_sdk_config(self, project_id: str, app_id: str, dest_path: str, run_cmd: Callable) -> str:
        result = run_cmd(
            ["firebase", "apps:sdkconfig", "WEB", app_id, "--project", project_id],
            capture_output=True,
        )
        self.filesystem_service.write_text(dest_path, result.stdout or "")
        return dest_path
