"""Shared domain models for fireprov."""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class ProjectContext:
    """Identifiers and output locations for one provisioning target."""

    project_id: str
    web_app_name: str
    service_account_id: str
    service_account_role: str
    web_dir: str
    api_dir: str
    key_file: str

    @property
    def service_account_email(self) -> str:
        return f"{self.service_account_id}@{self.project_id}.iam.gserviceaccount.com"


@dataclass(frozen=True)
class WebAppConfig:
    """The Firebase web SDK fields consumed by the web env file."""

    api_key: str
    auth_domain: str
    project_id: str
    storage_bucket: str
    messaging_sender_id: str
    app_id: str

    ENV_KEYS = (
        ("api_key", "VITE_FIREBASE_API_KEY"),
        ("auth_domain", "VITE_FIREBASE_AUTH_DOMAIN"),
        ("project_id", "VITE_FIREBASE_PROJECT_ID"),
        ("storage_bucket", "VITE_FIREBASE_STORAGE_BUCKET"),
        ("messaging_sender_id", "VITE_FIREBASE_MESSAGING_SENDER_ID"),
        ("app_id", "VITE_FIREBASE_APP_ID"),
    )

    def as_env(self) -> Dict[str, str]:
        return {env_key: getattr(self, attr) for attr, env_key in self.ENV_KEYS}


@dataclass(frozen=True)
class ToolRequirement:
    label: str
    binary: str
    install_hint: str


@dataclass(frozen=True)
class HealthCheck:
    """HTTP endpoints probed concurrently from inside a container."""

    urls: Tuple[str, ...]
    interval: str = "30s"
    timeout: str = "10s"
    retries: int = 3
    start_period: str = "10s"


@dataclass(frozen=True)
class ServiceDefinition:
    name: str
    container_name: str
    ports: Tuple[str, ...]
    image: Optional[str] = None
    build: Optional[Dict[str, str]] = None
    working_dir: Optional[str] = None
    command: Optional[object] = None
    volumes: Tuple[str, ...] = ()
    env_file: Tuple[str, ...] = ()
    depends_on_healthy: Tuple[str, ...] = ()
    healthcheck: Optional[HealthCheck] = None


@dataclass(frozen=True)
class ComposeStack:
    services: Tuple[ServiceDefinition, ...]
    network: str = "platform_net"
    volumes: Tuple[str, ...] = field(default_factory=tuple)

    def get(self, name: str) -> ServiceDefinition:
        for service in self.services:
            if service.name == name:
                return service
        raise KeyError(name)
