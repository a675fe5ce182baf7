"""Subprocess execution service for fireprov."""

import subprocess
import time
from typing import List, Optional

from fireprov.errors import ProvisionError


class CommandRunner:
    """Runs the wrapped CLIs (firebase, gcloud, docker) with uniform failures."""

    def __init__(
        self,
        logger,
        default_timeout: Optional[float] = None,
        retry_count: int = 0,
        retry_backoff_seconds: float = 0.0,
    ):
        self.logger = logger
        self.default_timeout = default_timeout
        self.retry_count = retry_count
        self.retry_backoff_seconds = retry_backoff_seconds

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = self.default_timeout
        backoff = self.retry_backoff_seconds
        max_attempts = max(1, self.retry_count + 1)

        for attempt in range(1, max_attempts + 1):
            try:
                result = subprocess.run(
                    cmd,
                    text=True,
                    capture_output=capture_output,
                    timeout=effective_timeout,
                )
            except FileNotFoundError as exc:
                raise ProvisionError(
                    f"Required command not found: {cmd[0]}. Please install it and try again."
                ) from exc
            except subprocess.TimeoutExpired as exc:
                if attempt < max_attempts:
                    self.logger.warning(
                        "Command timed out on attempt %s/%s. Retrying in %.1fs: %s",
                        attempt,
                        max_attempts,
                        backoff,
                        cmd_str,
                    )
                    time.sleep(backoff)
                    continue
                raise ProvisionError(f"Command timed out after {effective_timeout}s: {cmd_str}") from exc
            except OSError as exc:
                raise ProvisionError(f"Failed to execute command: {cmd_str}. {exc}") from exc

            if capture_output and result.stdout:
                self.logger.debug("Command output: %s", result.stdout.strip())

            if result.returncode == 0:
                return result

            stderr = (result.stderr or "").strip() if capture_output else ""
            message = f"Command failed ({result.returncode}): {cmd_str}"
            if stderr:
                message = f"{message}\n{stderr}"

            if not check:
                self.logger.debug(message)
                return result

            if attempt < max_attempts:
                self.logger.warning(
                    "Command failed on attempt %s/%s and will be retried in %.1fs.\n%s",
                    attempt,
                    max_attempts,
                    backoff,
                    message,
                )
                time.sleep(backoff)
                continue

            raise ProvisionError(message)

        raise ProvisionError(f"Command failed after retries: {cmd_str}")
