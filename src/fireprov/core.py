import logging
import os
import subprocess
import tempfile
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from rich.console import Console

from .constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_DIR,
    DEFAULT_CLIENT_ORIGIN,
    DEFAULT_PROJECT_ID,
    DEFAULT_WEB_APP_NAME,
    DEFAULT_WEB_DIR,
    GITIGNORE_PATTERNS,
    KEY_FILE_NAME,
    MANIFEST_FILE_NAME,
    OUTPUT_DIR,
    SERVICE_ACCOUNT_ROLE,
    STATE_FILE_NAME,
)
from .errors import ProvisionError
from .errors_catalog import actionable_error
from .models import ProjectContext, WebAppConfig
from .services.auth import AuthService
from .services.command_runner import CommandRunner
from .services.env_files import EnvFileService
from .services.filesystem import FileSystemService
from .services.manifest import ManifestService
from .services.preflight import PROVISION_REQUIREMENTS, PreflightService
from .services.sdk_config import SdkConfigParser
from .services.service_account import ServiceAccountService
from .services.state import StateService
from .services.web_app import WebAppService

console = Console()
logger = logging.getLogger("fireprov")


class Provisioner:
    """Provisions Firebase web config and an admin service account key."""

    def __init__(
        self,
        project_id: str = DEFAULT_PROJECT_ID,
        web_app_name: str = DEFAULT_WEB_APP_NAME,
        service_account_id: Optional[str] = None,
        web_dir: str = DEFAULT_WEB_DIR,
        api_dir: str = DEFAULT_API_DIR,
        key_file: Optional[str] = None,
        api_base_url: str = DEFAULT_API_BASE_URL,
        client_origin: str = DEFAULT_CLIENT_ORIGIN,
        skip_login: bool = False,
        revoke_previous_key: bool = False,
        resume: bool = False,
        state_file: Optional[str] = None,
        command_timeout: Optional[float] = None,
        retry_count: int = 0,
        retry_backoff_seconds: float = 2.0,
    ):
        if not project_id or not project_id.strip():
            raise ProvisionError("A Firebase project id is required.")

        self.cwd = os.getcwd()
        web_path = os.path.join(self.cwd, web_dir)
        api_path = os.path.join(self.cwd, api_dir)
        self.context = ProjectContext(
            project_id=project_id.strip(),
            web_app_name=web_app_name,
            service_account_id=service_account_id or project_id.strip(),
            service_account_role=SERVICE_ACCOUNT_ROLE,
            web_dir=web_path,
            api_dir=api_path,
            key_file=os.path.join(self.cwd, key_file) if key_file else os.path.join(api_path, KEY_FILE_NAME),
        )
        self.api_base_url = api_base_url
        self.client_origin = client_origin
        self.skip_login = skip_login
        self.revoke_previous_key = revoke_previous_key
        self.resume = resume

        self.output_dir = os.path.join(self.cwd, OUTPUT_DIR)
        self.state_file = state_file or os.path.join(self.output_dir, STATE_FILE_NAME)
        self.manifest_file = os.path.join(self.output_dir, MANIFEST_FILE_NAME)
        self.work_dir: Optional[str] = None
        self.written_files: List[str] = []
        self.state: Optional[Dict[str, Any]] = None

        self.state_service = StateService(state_file=self.state_file, logger=logger)
        self.manifest_service = ManifestService(manifest_file=self.manifest_file, logger=logger)
        self.command_runner = CommandRunner(
            logger=logger,
            default_timeout=command_timeout,
            retry_count=retry_count,
            retry_backoff_seconds=retry_backoff_seconds,
        )
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.preflight_service = PreflightService(logger=logger, console=console)
        self.auth_service = AuthService(logger=logger, console=console)
        self.web_app_service = WebAppService(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
        )
        self.sdk_config_parser = SdkConfigParser(logger=logger)
        self.env_file_service = EnvFileService(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
        )
        self.service_account_service = ServiceAccountService(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
        )

    def _build_metadata(self) -> Dict[str, Any]:
        return {
            "project_id": self.context.project_id,
            "web_app_name": self.context.web_app_name,
            "service_account_id": self.context.service_account_id,
            "key_file": self.context.key_file,
            "resume_enabled": self.resume,
        }

    def _initialize_state(self) -> bool:
        state, resumed = self.state_service.initialize(
            metadata=self._build_metadata(),
            resume=self.resume,
        )
        if resumed and state.get("status") == "success":
            raise ProvisionError(
                "The state file already belongs to a successful run. "
                "Run again without --resume to provision from scratch."
            )
        self.state = state

        if resumed:
            logger.info("Resuming previous run at step '%s'.", state.get("current_step") or "<none>")
            self.state_service.mark_status(state, "running")
        return resumed

    def _run_step(
        self,
        name: str,
        callback,
        *args,
        skip_when_completed: bool = True,
        **kwargs,
    ):
        if (
            self.resume
            and self.state
            and skip_when_completed
            and self.state_service.is_step_completed(self.state, name)
        ):
            logger.info("Skipping completed step from state: %s", name)
            self.manifest_service.step_started(name, details={"resumed": True})
            self.manifest_service.step_finished(name, "skipped", details={"resumed": True})
            return None, True

        if self.state:
            self.state_service.mark_step_started(self.state, name)
        self.manifest_service.step_started(name)

        try:
            result = callback(*args, **kwargs)
        except Exception as exc:
            if self.state:
                self.state_service.mark_step_failed(self.state, name, str(exc))
            self.manifest_service.step_finished(name, "failed", error=str(exc))
            raise

        if self.state:
            self.state_service.mark_step_completed(self.state, name)
        self.manifest_service.step_finished(name, "success")
        return result, False

    def _run_stateful_step(self, name: str, key: str, callback, *args):
        """Runs a step whose result is kept in state so a resumed run can reuse it."""
        result, skipped = self._run_step(name, callback, *args)
        if skipped and self.state:
            return self.state_service.get_value(self.state, key)
        if self.state:
            self.state_service.set_value(self.state, key, result)
        return result

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(cmd, check=check, capture_output=capture_output)

    def _record_files(self, *paths: str):
        for path in paths:
            if path not in self.written_files:
                self.written_files.append(path)

    def preflight(self):
        self.preflight_service.check(PROVISION_REQUIREMENTS)

    def authenticate(self):
        self.auth_service.login(self._run_cmd)

    def select_project(self):
        self.auth_service.select_project(self.context.project_id, self._run_cmd)

    def resolve_web_app(self) -> str:
        app_id = self.web_app_service.ensure_web_app(
            self.context.project_id,
            self.context.web_app_name,
            self._run_cmd,
        )
        console.print(f"[blue]Found web app: {app_id}[/blue]")
        return app_id

    def fetch_sdk_config(self, app_id: str) -> Dict[str, str]:
        if self.work_dir is None:
            self.work_dir = tempfile.mkdtemp(prefix="fireprov-")
        sdk_config_file = os.path.join(self.work_dir, "sdk-config.js")
        self.web_app_service.download_sdk_config(
            self.context.project_id,
            app_id,
            sdk_config_file,
            self._run_cmd,
        )
        with open(sdk_config_file, "r", encoding="utf-8") as file_obj:
            text = file_obj.read()
        config = self.sdk_config_parser.parse(text, self.context.project_id, source=sdk_config_file)
        return asdict(config)

    def write_web_env(self, config: WebAppConfig):
        paths = self.env_file_service.write_web_env(
            self.context.web_dir,
            config,
            self.context.project_id,
            self.api_base_url,
        )
        self._record_files(*paths)
        self.manifest_service.add_artifact("web_env", paths[0])
        self.manifest_service.add_artifact("web_env_copy", paths[1])

    def ensure_service_account(self) -> bool:
        created = self.service_account_service.ensure(self.context, self._run_cmd)
        self.manifest_service.set_resource("service_account_email", self.context.service_account_email)
        return created

    def create_service_account_key(self) -> Optional[str]:
        return self.service_account_service.create_key(self.context, self._run_cmd)

    def revoke_key(self, key_id: str):
        self.service_account_service.revoke_key(self.context, key_id, self._run_cmd)
        self.manifest_service.set_resource("revoked_key_id", key_id)

    def verify_key_file(self) -> bool:
        if not os.path.exists(self.context.key_file):
            message = actionable_error("key_file_missing", path=self.context.key_file)
            console.print(f"[bold red]{message}[/bold red]")
            logger.error(message)
            return False

        self.service_account_service.verify_key_file(self.context)
        key_id = self.service_account_service.read_key_id(self.context.key_file)
        if key_id:
            self.manifest_service.set_resource("service_account_key_id", key_id)
        self._record_files(self.context.key_file)
        self.manifest_service.add_artifact("key_file", self.context.key_file)
        return True

    def write_api_env(self):
        paths = self.env_file_service.write_api_env(
            self.context.api_dir,
            self.context.project_id,
            self.client_origin,
            self.context.key_file,
        )
        self._record_files(*paths)
        self.manifest_service.add_artifact("api_env", paths[0])
        self.manifest_service.add_artifact("api_env_copy", paths[1])

    def print_summary(self, complete: bool = True):
        console.print("")
        if complete:
            console.print("[bold green]Firebase configuration fetched successfully![/bold green]")
        else:
            console.print("[bold yellow]Firebase configuration fetched with errors.[/bold yellow]")
        console.print("")
        console.print("Created files:")
        for path in self.written_files:
            console.print(f"   - {os.path.relpath(path, self.cwd)}")
        console.print("")
        console.print("[yellow]IMPORTANT: Add these files to .gitignore:[/yellow]")
        for pattern in GITIGNORE_PATTERNS:
            console.print(f"   - {pattern}")

    def cleanup(self):
        if self.work_dir:
            self.filesystem_service.cleanup_dir(self.work_dir)
            self.work_dir = None

    def run(self) -> int:
        exit_code = 1
        manifest_status = "failed"
        manifest_error: Optional[str] = None

        try:
            logger.info("Starting fireprov for project %s...", self.context.project_id)

            self._initialize_state()
            self.manifest_service.start_run(metadata=self._build_metadata())

            self._run_step("preflight", self.preflight, skip_when_completed=False)
            if self.skip_login:
                logger.info("Skipping interactive login.")
            else:
                self._run_step("authenticate", self.authenticate)
            self._run_step("select_project", self.select_project)

            app_id = self._run_stateful_step("resolve_web_app", "web_app_id", self.resolve_web_app)
            if not app_id:
                raise ProvisionError("State is missing the web app id. Run again without --resume.")
            self.manifest_service.set_resource("web_app_id", app_id)

            config_data = self._run_stateful_step(
                "fetch_sdk_config", "web_config", self.fetch_sdk_config, app_id
            )
            if not isinstance(config_data, dict):
                raise ProvisionError("State is missing the web config. Run again without --resume.")
            web_config = WebAppConfig(**config_data)

            self._run_step("write_web_env", self.write_web_env, web_config)
            self._run_step("ensure_service_account", self.ensure_service_account)

            previous_key_id, _ = self._run_step(
                "create_service_account_key",
                self.create_service_account_key,
                skip_when_completed=os.path.exists(self.context.key_file),
            )
            if self.revoke_previous_key and previous_key_id:
                self._run_step("revoke_previous_key", self.revoke_key, previous_key_id)

            key_present, _ = self._run_step("verify_key_file", self.verify_key_file, skip_when_completed=False)
            if key_present:
                self._run_step("write_api_env", self.write_api_env)
            else:
                logger.warning("Skipping API environment file because the key file is missing.")

            self.print_summary(complete=bool(key_present))
            if key_present:
                manifest_status = "success"
                exit_code = 0
                if self.state:
                    self.state_service.mark_status(self.state, "success")
            else:
                manifest_error = actionable_error("key_file_missing", path=self.context.key_file)
                if self.state:
                    self.state_service.mark_status(self.state, "failed", manifest_error)
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            if self.state:
                self.state_service.mark_status(self.state, "aborted", "Operation cancelled by user.")
            manifest_status = "aborted"
            manifest_error = "Operation cancelled by user."
            return exit_code
        except ProvisionError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            if self.state:
                self.state_service.mark_status(self.state, "failed", str(exc))
            manifest_error = str(exc)
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            if self.state:
                self.state_service.mark_status(self.state, "failed", str(exc))
            manifest_error = str(exc)
            return exit_code
        finally:
            self.manifest_service.finalize(manifest_status, error=manifest_error)
            self.cleanup()
