"""Provisioning state persistence for step skipping on resume."""

import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from fireprov.errors import ProvisionError


class StateService:
    """Persists completed steps and resolved values between runs."""

    SCHEMA_VERSION = 1
    RESUME_KEYS = ("project_id", "service_account_id", "key_file")

    def __init__(self, state_file: str, logger):
        self.state_file = state_file
        self.logger = logger

    def load(self) -> Optional[Dict[str, Any]]:
        if not os.path.exists(self.state_file):
            return None

        try:
            with open(self.state_file, "r", encoding="utf-8") as file_obj:
                data = json.load(file_obj)
        except (OSError, json.JSONDecodeError) as exc:
            raise ProvisionError(f"Could not read state file '{self.state_file}': {exc}") from exc

        if not isinstance(data, dict):
            raise ProvisionError(f"State file '{self.state_file}' has invalid format.")

        return data

    def save(self, state: Dict[str, Any]):
        state_dir = os.path.dirname(self.state_file) or "."
        os.makedirs(state_dir, exist_ok=True)
        state["schema_version"] = self.SCHEMA_VERSION
        state["updated_at"] = self._now()

        fd, temp_path = tempfile.mkstemp(prefix="provision-state-", suffix=".json", dir=state_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(state, file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.state_file)
        except OSError as exc:
            raise ProvisionError(f"Could not write state file '{self.state_file}': {exc}") from exc
        finally:
            if os.path.exists(temp_path):
                os.remove(temp_path)

    def initialize(self, metadata: Dict[str, Any], resume: bool) -> Tuple[Dict[str, Any], bool]:
        existing_state = self.load()

        if resume and existing_state:
            self._validate_resume_compatibility(existing_state, metadata)
            return existing_state, True

        state = {
            "schema_version": self.SCHEMA_VERSION,
            "created_at": self._now(),
            "updated_at": self._now(),
            "status": "running",
            "metadata": metadata,
            "completed_steps": [],
            "current_step": None,
            "data": {},
            "last_error": None,
        }
        self.save(state)
        return state, False

    def mark_step_started(self, state: Dict[str, Any], step_name: str):
        state["current_step"] = step_name
        self.save(state)

    def mark_step_completed(self, state: Dict[str, Any], step_name: str):
        if step_name not in state["completed_steps"]:
            state["completed_steps"].append(step_name)
        state["current_step"] = None
        self.save(state)

    def mark_step_failed(self, state: Dict[str, Any], step_name: str, error: str):
        state["current_step"] = step_name
        state["status"] = "failed"
        state["last_error"] = error
        self.save(state)

    def mark_status(self, state: Dict[str, Any], status: str, error: Optional[str] = None):
        state["status"] = status
        if error:
            state["last_error"] = error
        self.save(state)

    def is_step_completed(self, state: Dict[str, Any], step_name: str) -> bool:
        return step_name in state.get("completed_steps", [])

    def set_value(self, state: Dict[str, Any], key: str, value: Any):
        state.setdefault("data", {})[key] = value
        self.save(state)

    def get_value(self, state: Dict[str, Any], key: str, default: Any = None) -> Any:
        return state.get("data", {}).get(key, default)

    def _validate_resume_compatibility(self, state: Dict[str, Any], metadata: Dict[str, Any]):
        existing_meta = state.get("metadata", {})
        mismatches = [key for key in self.RESUME_KEYS if existing_meta.get(key) != metadata.get(key)]
        if mismatches:
            raise ProvisionError(
                "Cannot resume run with different inputs. "
                f"Mismatched fields: {', '.join(mismatches)}."
            )

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
