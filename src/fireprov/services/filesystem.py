"""Filesystem helpers for fireprov."""

import logging
import os
import shutil
import sys
import tempfile
from typing import Optional

from rich.console import Console

from fireprov.errors import ProvisionError


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def write_text(self, path: str, content: str, mode: Optional[int] = None):
        """Atomically replace ``path`` with ``content``."""
        directory = os.path.dirname(path) or "."
        os.makedirs(directory, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(prefix=".fireprov-", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(content)
            os.replace(temp_path, path)
        except OSError as exc:
            raise ProvisionError(f"Could not write {path}: {exc}") from exc
        finally:
            if os.path.exists(temp_path):
                os.remove(temp_path)

        if mode is not None:
            self.set_permissions(path, mode)
        self.logger.debug("Wrote %s", path)

    def copy_file(self, source: str, destination: str):
        try:
            shutil.copy2(source, destination)
        except OSError as exc:
            raise ProvisionError(f"Could not copy {source} to {destination}: {exc}") from exc
        self.logger.debug("Copied %s to %s", source, destination)

    def cleanup_dir(self, path: str):
        if os.path.exists(path):
            try:
                shutil.rmtree(path)
                self.logger.debug("Removed directory: %s", path)
            except OSError as exc:
                message = f"Warning: Could not remove {path}: {exc}"
                self.console.print(f"[yellow]{message}[/yellow]")
                self.logger.warning(message)
