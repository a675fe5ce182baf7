"""Environment file emission for the web and API components."""

import os
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from fireprov.constants import (
    API_NODE_ENV,
    API_PORT,
    COPY_ENV_NAME,
    ENV_FILE_MODE,
    KEY_FILE_NAME,
    PRIMARY_ENV_NAME,
    STREAM_PLACEHOLDERS,
)
from fireprov.models import WebAppConfig


class EnvFileService:
    """Writes each env file under its primary name, then copies it."""

    def __init__(self, logger, console, filesystem_service, clock: Callable[[], datetime] = datetime.now):
        self.logger = logger
        self.console = console
        self.filesystem_service = filesystem_service
        self.clock = clock

    def _header(self, title: str, project_id: str) -> List[str]:
        return [
            f"# {title} - Auto-generated",
            f"# Generated on: {self.clock().strftime('%Y-%m-%d %H:%M:%S')}",
            f"# Project: {project_id}",
            "",
        ]

    def render_web_env(self, config: WebAppConfig, project_id: str, api_base_url: str) -> str:
        lines = self._header("Firebase Web Configuration", project_id)
        lines.extend(f'{key}="{value}"' for key, value in config.as_env().items())
        lines.extend(
            [
                "",
                "# Disable emulator for production",
                "VITE_USE_FIREBASE_EMULATOR=false",
                "",
                "# API URL (update this for your Cloudflare Worker)",
                f'VITE_API_BASE_URL="{api_base_url}"',
            ]
        )
        return "\n".join(lines) + "\n"

    @staticmethod
    def credentials_path(api_dir: str, key_file: str) -> str:
        """Key file path as the API process sees it, relative to its working directory."""
        relative = os.path.relpath(key_file, api_dir).replace(os.sep, "/")
        if relative.startswith(".."):
            return relative
        return f"./{relative}"

    def render_api_env(
        self,
        project_id: str,
        client_origin: str,
        credentials_path: str = f"./{KEY_FILE_NAME}",
    ) -> str:
        lines = self._header("Firebase API Configuration", project_id)
        lines.extend(
            [
                "# Basic config",
                f"NODE_ENV={API_NODE_ENV}",
                f"PORT={API_PORT}",
                f"CLIENT_ORIGIN={client_origin}",
                "",
                "# Firebase",
                f"FIREBASE_PROJECT_ID={project_id}",
                "FIREBASE_USE_EMULATOR=false",
                "",
                "# Service account path",
                f"GOOGLE_APPLICATION_CREDENTIALS={credentials_path}",
                "",
                "# Stream.io credentials (update these with your actual values)",
            ]
        )
        lines.extend(f"{key}={value}" for key, value in STREAM_PLACEHOLDERS)
        return "\n".join(lines) + "\n"

    def write_pair(self, directory: str, content: str) -> Tuple[str, str]:
        primary = os.path.join(directory, PRIMARY_ENV_NAME)
        copy = os.path.join(directory, COPY_ENV_NAME)
        self.filesystem_service.write_text(primary, content, mode=ENV_FILE_MODE)
        self.filesystem_service.copy_file(primary, copy)
        self.console.print(f"[green]Created {primary} and {copy}[/green]")
        return primary, copy

    def write_web_env(
        self,
        web_dir: str,
        config: WebAppConfig,
        project_id: str,
        api_base_url: str,
    ) -> Tuple[str, str]:
        self.logger.info("Creating web environment file...")
        return self.write_pair(web_dir, self.render_web_env(config, project_id, api_base_url))

    def write_api_env(
        self,
        api_dir: str,
        project_id: str,
        client_origin: str,
        key_file: Optional[str] = None,
    ) -> Tuple[str, str]:
        self.logger.info("Creating API environment file...")
        credentials_path = f"./{KEY_FILE_NAME}" if key_file is None else self.credentials_path(api_dir, key_file)
        return self.write_pair(api_dir, self.render_api_env(project_id, client_origin, credentials_path))
