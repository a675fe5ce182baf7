"""Service account, role binding and key issuance through gcloud."""

import json
import os
from typing import Callable, Optional

from fireprov.constants import KEY_FILE_MODE, SERVICE_ACCOUNT_DISPLAY_NAME
from fireprov.errors import ProvisionError
from fireprov.errors_catalog import actionable_error
from fireprov.models import ProjectContext


class ServiceAccountService:
    """Existence check, conditional creation and key download."""

    def __init__(self, logger, console, filesystem_service):
        self.logger = logger
        self.console = console
        self.filesystem_service = filesystem_service

    def exists(self, context: ProjectContext, run_cmd: Callable) -> bool:
        result = run_cmd(
            [
                "gcloud",
                "iam",
                "service-accounts",
                "describe",
                context.service_account_email,
                "--project",
                context.project_id,
            ],
            check=False,
            capture_output=True,
        )
        return result.returncode == 0

    def ensure(self, context: ProjectContext, run_cmd: Callable) -> bool:
        """Creates the account and binds its role only when it is absent."""
        if self.exists(context, run_cmd):
            self.logger.info("Service account %s already exists", context.service_account_email)
            return False

        self.console.print("[blue]Creating service account...[/blue]")
        run_cmd(
            [
                "gcloud",
                "iam",
                "service-accounts",
                "create",
                context.service_account_id,
                f"--display-name={SERVICE_ACCOUNT_DISPLAY_NAME}",
                "--project",
                context.project_id,
            ],
            capture_output=True,
        )
        run_cmd(
            [
                "gcloud",
                "projects",
                "add-iam-policy-binding",
                context.project_id,
                f"--member=serviceAccount:{context.service_account_email}",
                f"--role={context.service_account_role}",
            ],
            capture_output=True,
        )
        return True

    def create_key(self, context: ProjectContext, run_cmd: Callable) -> Optional[str]:
        """Issues a new key over ``context.key_file``.

        Returns the ``private_key_id`` of the key that was overwritten, if any.
        """
        previous_key_id = self.read_key_id(context.key_file)

        os.makedirs(os.path.dirname(context.key_file) or ".", exist_ok=True)
        self.console.print(f"[blue]Downloading service account key to: {context.key_file}[/blue]")
        run_cmd(
            [
                "gcloud",
                "iam",
                "service-accounts",
                "keys",
                "create",
                context.key_file,
                f"--iam-account={context.service_account_email}",
                "--key-file-type=json",
            ],
            capture_output=True,
        )
        if os.path.exists(context.key_file):
            self.filesystem_service.set_permissions(context.key_file, KEY_FILE_MODE)
        return previous_key_id

    def revoke_key(self, context: ProjectContext, key_id: str, run_cmd: Callable):
        self.logger.info("Revoking previous key %s", key_id)
        run_cmd(
            [
                "gcloud",
                "iam",
                "service-accounts",
                "keys",
                "delete",
                key_id,
                f"--iam-account={context.service_account_email}",
                "--quiet",
            ],
            capture_output=True,
        )

    @staticmethod
    def read_key_id(key_file: str) -> Optional[str]:
        if not os.path.exists(key_file):
            return None
        try:
            with open(key_file, "r", encoding="utf-8") as file_obj:
                data = json.load(file_obj)
        except (OSError, json.JSONDecodeError):
            return None
        key_id = data.get("private_key_id") if isinstance(data, dict) else None
        return key_id or None

    def verify_key_file(self, context: ProjectContext):
        path = context.key_file
        if not os.path.exists(path):
            raise ProvisionError(actionable_error("key_file_missing", path=path))

        try:
            with open(path, "r", encoding="utf-8") as file_obj:
                data = json.load(file_obj)
        except (OSError, json.JSONDecodeError) as exc:
            raise ProvisionError(
                actionable_error("invalid_key_file", path=path, reason=f"not valid JSON ({exc})")
            ) from exc

        if not isinstance(data, dict) or data.get("type") != "service_account":
            raise ProvisionError(
                actionable_error("invalid_key_file", path=path, reason="type is not service_account")
            )
        if data.get("project_id") != context.project_id:
            raise ProvisionError(
                actionable_error(
                    "invalid_key_file",
                    path=path,
                    reason=f"project_id is {data.get('project_id')!r}, expected {context.project_id!r}",
                )
            )
        for field_name in ("private_key", "client_email"):
            if not data.get(field_name):
                raise ProvisionError(
                    actionable_error("invalid_key_file", path=path, reason=f"{field_name} is empty")
                )

        self.console.print("[green]Service account key downloaded successfully[/green]")
