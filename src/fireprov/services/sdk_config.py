"""Extraction of the Firebase web SDK config from `apps:sdkconfig` output.

The CLI has printed several shapes over time: a bare JSON object, a
``const firebaseConfig = {...};`` snippet, or ``firebase.initializeApp({...});``
wrapped in ``//`` comments. The structured path handles all of them; a plain
regex scan over the same text is used only when it finds nothing.
"""

import json
import re
from typing import Any, Dict, Optional

import yaml

from fireprov.errors import ProvisionError
from fireprov.errors_catalog import actionable_error
from fireprov.models import WebAppConfig

SDK_FIELDS = (
    ("apiKey", "api_key"),
    ("authDomain", "auth_domain"),
    ("projectId", "project_id"),
    ("storageBucket", "storage_bucket"),
    ("messagingSenderId", "messaging_sender_id"),
    ("appId", "app_id"),
)
REQUIRED_FIELDS = ("apiKey", "appId")

_OBJECT_PATTERNS = (
    re.compile(r"firebaseConfig\s*=\s*(\{.*?\})\s*;?", re.DOTALL),
    re.compile(r"initializeApp\(\s*(\{.*?\})\s*\)", re.DOTALL),
)


class SdkConfigParser:
    def __init__(self, logger):
        self.logger = logger

    def parse(self, text: str, default_project_id: str, source: str = "<sdk config>") -> WebAppConfig:
        values = self.extract_structured(text)
        if values:
            self.logger.debug("Parsed SDK config from %s with the structured parser", source)
        else:
            self.logger.warning("Failed to parse Firebase config. Using manual extraction...")
            values = self.extract_fallback(text)
            if not values.get("projectId"):
                values["projectId"] = default_project_id

        missing = [key for key in REQUIRED_FIELDS if not values.get(key)]
        if missing:
            self.logger.debug("SDK config is missing required fields: %s", ", ".join(missing))
            raise ProvisionError(actionable_error("sdk_config_unparseable", path=source))

        return WebAppConfig(**{attr: values.get(key, "") for key, attr in SDK_FIELDS})

    def extract_structured(self, text: str) -> Dict[str, str]:
        """Returns the six fields, or an empty dict when no config object parses."""
        cleaned = "\n".join(
            line for line in text.splitlines() if not line.lstrip().startswith("//")
        ).strip()

        mapping = self._load_mapping(cleaned)
        if mapping is None:
            for pattern in _OBJECT_PATTERNS:
                match = pattern.search(cleaned)
                if match:
                    mapping = self._load_mapping(match.group(1))
                if mapping is not None:
                    break

        if not mapping:
            return {}

        # `apps:sdkconfig --json` nests the object under result.sdkConfig
        nested = mapping.get("result")
        if isinstance(nested, dict) and isinstance(nested.get("sdkConfig"), dict):
            mapping = nested["sdkConfig"]

        values = {key: self._as_text(mapping.get(key)) for key, _ in SDK_FIELDS}
        return values if any(values.values()) else {}

    def extract_fallback(self, text: str) -> Dict[str, str]:
        values = {}
        for key, _ in SDK_FIELDS:
            pattern = rf"[\"']?{key}[\"']?\s*:\s*[\"']([^\"']*)[\"']"
            match = re.search(pattern, text)
            values[key] = match.group(1) if match else ""
        return values

    @staticmethod
    def _load_mapping(candidate: str) -> Optional[Dict[str, Any]]:
        if not candidate.startswith("{"):
            return None

        for loader in (json.loads, yaml.safe_load):
            try:
                data = loader(candidate)
            except (ValueError, yaml.YAMLError):
                continue
            if isinstance(data, dict):
                return data
        return None

    @staticmethod
    def _as_text(value: Any) -> str:
        if value is None:
            return ""
        return str(value)
