"""Local tooling preflight for fireprov."""

import re
import shutil
from typing import Callable, Dict, Iterable, List, Optional

from packaging import version

from fireprov.constants import MIN_FIREBASE_TOOLS_VERSION
from fireprov.errors import ProvisionError
from fireprov.errors_catalog import actionable_error
from fireprov.models import ToolRequirement

FIREBASE_TOOLS = ToolRequirement(
    label="firebase-tools",
    binary="firebase",
    install_hint="npm install -g firebase-tools",
)
GOOGLE_CLOUD_SDK = ToolRequirement(
    label="Google Cloud SDK",
    binary="gcloud",
    install_hint="https://cloud.google.com/sdk/docs/install",
)
DOCKER = ToolRequirement(
    label="Docker",
    binary="docker",
    install_hint="https://docs.docker.com/get-docker/",
)

# jq is not required: CLI JSON output is parsed in-process.
PROVISION_REQUIREMENTS = (FIREBASE_TOOLS, GOOGLE_CLOUD_SDK)
COMPOSE_REQUIREMENTS = (DOCKER,)
ALL_REQUIREMENTS = PROVISION_REQUIREMENTS + COMPOSE_REQUIREMENTS

VERSION_COMMANDS = {
    "firebase": ["firebase", "--version"],
    "gcloud": ["gcloud", "--version"],
    "docker": ["docker", "--version"],
}

_VERSION_PATTERN = re.compile(r"(\d+\.\d+(?:\.\d+)?)")


class PreflightService:
    """Checks that the wrapped CLIs are installed before anything runs."""

    def __init__(self, logger, console, which: Callable[[str], Optional[str]] = shutil.which):
        self.logger = logger
        self.console = console
        self.which = which

    def find_missing(self, requirements: Iterable[ToolRequirement]) -> List[ToolRequirement]:
        missing = []
        for requirement in requirements:
            location = self.which(requirement.binary)
            if location:
                self.logger.debug("Found %s at %s", requirement.binary, location)
            else:
                missing.append(requirement)
        return missing

    def check(self, requirements: Iterable[ToolRequirement]):
        """Raises once with every missing tool listed."""
        missing = self.find_missing(requirements)
        if not missing:
            return

        tools = ", ".join(requirement.label for requirement in missing)
        hints = "\n".join(f"  {req.label}: {req.install_hint}" for req in missing)
        raise ProvisionError(actionable_error("missing_dependencies", tools=tools, hints=hints))

    def tool_versions(self, requirements: Iterable[ToolRequirement], run_cmd: Callable) -> Dict[str, str]:
        versions = {}
        for requirement in requirements:
            cmd = VERSION_COMMANDS.get(requirement.binary)
            if not cmd:
                continue
            result = run_cmd(cmd, check=False, capture_output=True)
            versions[requirement.binary] = self.parse_version(result.stdout or "") or "unknown"
        return versions

    @staticmethod
    def parse_version(output: str) -> Optional[str]:
        match = _VERSION_PATTERN.search(output)
        return match.group(1) if match else None

    def warn_outdated_firebase(self, firebase_version: str) -> bool:
        try:
            outdated = version.parse(firebase_version) < version.parse(MIN_FIREBASE_TOOLS_VERSION)
        except version.InvalidVersion:
            self.logger.debug("Unrecognized firebase-tools version: %s", firebase_version)
            return False

        if outdated:
            self.logger.warning(
                "firebase-tools %s is older than %s; `apps:sdkconfig` output may not parse.",
                firebase_version,
                MIN_FIREBASE_TOOLS_VERSION,
            )
        return outdated
