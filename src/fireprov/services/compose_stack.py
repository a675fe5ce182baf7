"""Local development composition: emulator suite, API and web frontend."""

from typing import Any, Dict, List, Tuple

import yaml

from fireprov.errors import ProvisionError
from fireprov.errors_catalog import actionable_error
from fireprov.models import ComposeStack, HealthCheck, ServiceDefinition

EMULATOR_PORTS = (
    "4000:4000",  # UI
    "5010:5000",  # Hosting
    "5001:5001",  # Functions
    "5002:5002",  # App Hosting
    "8080:8080",  # Firestore
    "8085:8085",  # Pub/Sub
    "9000:9000",  # Realtime Database
    "9099:9099",  # Auth
    "9299:9299",  # Eventarc
    "9199:9199",  # Storage
)

HOST_HEALTH_URLS = {
    "emulators": "http://localhost:4000",
    "api": "http://localhost:3001/api/v1/health",
    "web": "http://localhost:5173",
}


def probe_command(urls: Tuple[str, ...]) -> List[str]:
    """Node one-liner that GETs every URL concurrently and exits 0 only if all return 200."""
    checks = ", ".join(f"check('{url}')" for url in urls)
    script = (
        "const http = require('http'); "
        "const check = (url) => new Promise((res) => "
        "http.get(url, r => res(r.statusCode === 200)).on('error', () => res(false))); "
        f"Promise.all([{checks}]).then(results => process.exit(results.every(Boolean) ? 0 : 1));"
    )
    return ["CMD", "node", "-e", script]


class ComposeStackService:
    """Builds, orders and renders the three-service stack."""

    def __init__(self, logger):
        self.logger = logger

    def default_stack(self) -> ComposeStack:
        emulators = ServiceDefinition(
            name="emulators",
            image="andreysenov/firebase-tools",
            container_name="firebase-emulator",
            working_dir="/usr/src/app",
            ports=EMULATOR_PORTS,
            volumes=(".:/usr/src/app", "firestore_data:/usr/src/app/firebase-data"),
            command=[
                "firebase",
                "emulators:start",
                "--project=demo-project",
                "--import=./firebase-data",
            ],
            healthcheck=HealthCheck(urls=("http://localhost:4000",)),
        )
        api = ServiceDefinition(
            name="api",
            build={"context": "./api", "target": "development"},
            container_name="platform-api",
            command=(
                "sh -c \"apk update && apk add --no-cache curl && "
                "echo 'Curl installed, starting server...' && pnpm run start:dev\""
            ),
            ports=("3001:3001", "9229:9229"),
            volumes=("./api:/usr/src/app/api", "/usr/src/app/api/node_modules"),
            env_file=("./api/.env",),
            depends_on_healthy=("emulators",),
            healthcheck=HealthCheck(
                urls=(
                    "http://localhost:3001/api/v1/health",
                    "http://emulators:8080",
                    "http://emulators:9099",
                )
            ),
        )
        web = ServiceDefinition(
            name="web",
            build={"context": ".", "dockerfile": "./web/Dockerfile", "target": "development"},
            container_name="platform-web",
            working_dir="/usr/src/app/web",
            command='sh -c "pnpm install --no-frozen-lockfile && pnpm dev --host"',
            ports=("5173:5173",),
            volumes=("./web:/usr/src/app/web", "/usr/src/app/web/node_modules"),
            depends_on_healthy=("api",),
            healthcheck=HealthCheck(urls=("http://localhost:5173", "http://api:3001/api/v1/health")),
        )
        return ComposeStack(services=(emulators, api, web), volumes=("firestore_data",))

    def startup_order(self, stack: ComposeStack) -> List[str]:
        """Topological order over health-gated dependencies, declaration order on ties."""
        names = [service.name for service in stack.services]
        for service in stack.services:
            for dependency in service.depends_on_healthy:
                if dependency not in names:
                    raise ProvisionError(
                        f"Service '{service.name}' depends on unknown service '{dependency}'."
                    )

        ordered: List[str] = []
        remaining = list(stack.services)
        while remaining:
            ready = [svc for svc in remaining if all(dep in ordered for dep in svc.depends_on_healthy)]
            if not ready:
                cycle = ", ".join(svc.name for svc in remaining)
                raise ProvisionError(actionable_error("compose_dependency_cycle", services=cycle))
            ordered.append(ready[0].name)
            remaining.remove(ready[0])
        return ordered

    def host_ports(self, stack: ComposeStack) -> List[int]:
        return [int(mapping.split(":")[0]) for service in stack.services for mapping in service.ports]

    def to_compose_dict(self, stack: ComposeStack) -> Dict[str, Any]:
        self.startup_order(stack)

        services: Dict[str, Any] = {}
        for service in stack.services:
            entry: Dict[str, Any] = {}
            if service.image:
                entry["image"] = service.image
            if service.build:
                entry["build"] = dict(service.build)
            entry["container_name"] = service.container_name
            if service.working_dir:
                entry["working_dir"] = service.working_dir
            if service.command:
                entry["command"] = service.command
            entry["ports"] = list(service.ports)
            if service.volumes:
                entry["volumes"] = list(service.volumes)
            if service.env_file:
                entry["env_file"] = list(service.env_file)
            if service.depends_on_healthy:
                entry["depends_on"] = {
                    dependency: {"condition": "service_healthy"}
                    for dependency in service.depends_on_healthy
                }
            if service.healthcheck:
                check = service.healthcheck
                entry["healthcheck"] = {
                    "test": probe_command(check.urls),
                    "interval": check.interval,
                    "timeout": check.timeout,
                    "retries": check.retries,
                    "start_period": check.start_period,
                }
            entry["networks"] = [stack.network]
            services[service.name] = entry

        return {
            "services": services,
            "networks": {stack.network: {"driver": "bridge"}},
            "volumes": {name: None for name in stack.volumes},
        }

    def render(self, stack: ComposeStack, path: str):
        content = yaml.safe_dump(self.to_compose_dict(stack), sort_keys=False, default_flow_style=False)
        with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
            file_obj.write(content)
        self.logger.info("Wrote compose file %s", path)
