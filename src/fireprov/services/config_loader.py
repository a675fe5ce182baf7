"""Configuration loader for fireprov."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from fireprov.errors import ProvisionError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "project_id",
        "web_app_name",
        "service_account_id",
        "web_dir",
        "api_dir",
        "key_file",
        "api_base_url",
        "client_origin",
        "skip_login",
        "revoke_previous_key",
        "verbose",
        "log_file",
        "resume",
        "state_file",
        "command_timeout",
        "retry_count",
        "retry_backoff_seconds",
        "compose_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ProvisionError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ProvisionError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ProvisionError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            raise ProvisionError(f"Unknown configuration keys: {', '.join(unknown)}")

        return parsed
