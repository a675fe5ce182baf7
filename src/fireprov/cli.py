import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler

from .constants import (
    CONFIG_FILE_NAME,
    DEFAULT_API_BASE_URL,
    DEFAULT_API_DIR,
    DEFAULT_CLIENT_ORIGIN,
    DEFAULT_PROJECT_ID,
    DEFAULT_WEB_APP_NAME,
    DEFAULT_WEB_DIR,
)
from .core import Provisioner
from .errors import ProvisionError
from .services.command_runner import CommandRunner
from .services.config_loader import ConfigLoader
from .services.preflight import ALL_REQUIREMENTS, PreflightService
from .stack import DevStack


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def _configure_logging(verbose: bool, log_file):
    logger = logging.getLogger("fireprov")
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


@click.group()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {CONFIG_FILE_NAME} if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.pass_context
def main(ctx, config, verbose, log_file):
    """Provision Firebase credentials and run the local development stack."""
    try:
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), CONFIG_FILE_NAME)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = ConfigLoader().load(resolved_config)
    except ProvisionError as exc:
        raise click.ClickException(str(exc)) from exc

    _configure_logging(
        bool(_resolve_option(verbose, config_values, "verbose", default=False)),
        _resolve_option(log_file, config_values, "log_file"),
    )
    ctx.obj = config_values


@main.command()
@click.option("--project-id", required=False, help=f"Firebase project id (default: {DEFAULT_PROJECT_ID}).")
@click.option("--web-app-name", required=False, help="Display name used when the web app is created.")
@click.option(
    "--service-account-id",
    required=False,
    help="Service account id (default: the project id).",
)
@click.option("--web-dir", required=False, type=click.Path(), help="Web component directory.")
@click.option("--api-dir", required=False, type=click.Path(), help="API component directory.")
@click.option(
    "--key-file",
    required=False,
    type=click.Path(),
    help="Service account key path (default: <api-dir>/service-account-key.json).",
)
@click.option("--api-base-url", required=False, help="VITE_API_BASE_URL written to the web env file.")
@click.option("--client-origin", required=False, help="CLIENT_ORIGIN written to the API env file.")
@click.option(
    "--skip-login",
    is_flag=True,
    default=None,
    help="Skip the interactive firebase/gcloud logins (already authenticated).",
)
@click.option(
    "--revoke-previous-key",
    is_flag=True,
    default=None,
    help="Delete the key that the new service account key replaces.",
)
@click.option(
    "--resume",
    is_flag=True,
    default=None,
    help="Skip steps completed by a previous interrupted run.",
)
@click.option(
    "--state-file",
    required=False,
    type=click.Path(),
    help="Path to the run state file (default: output/provision-state.json).",
)
@click.option(
    "--command-timeout",
    required=False,
    type=float,
    default=None,
    help="Timeout in seconds for each external command.",
)
@click.option(
    "--retry-count",
    required=False,
    type=int,
    default=None,
    help="Number of retries for failed external commands.",
)
@click.option(
    "--retry-backoff-seconds",
    required=False,
    type=float,
    default=None,
    help="Backoff time in seconds between retries.",
)
@click.pass_obj
def provision(
    config_values,
    project_id,
    web_app_name,
    service_account_id,
    web_dir,
    api_dir,
    key_file,
    api_base_url,
    client_origin,
    skip_login,
    revoke_previous_key,
    resume,
    state_file,
    command_timeout,
    retry_count,
    retry_backoff_seconds,
):
    """Fetch the web SDK config, issue a service account key and write env files."""
    command_timeout = _resolve_option(command_timeout, config_values, "command_timeout")
    try:
        provisioner = Provisioner(
            project_id=str(_resolve_option(project_id, config_values, "project_id", DEFAULT_PROJECT_ID)),
            web_app_name=_resolve_option(web_app_name, config_values, "web_app_name", DEFAULT_WEB_APP_NAME),
            service_account_id=_resolve_option(service_account_id, config_values, "service_account_id"),
            web_dir=_resolve_option(web_dir, config_values, "web_dir", DEFAULT_WEB_DIR),
            api_dir=_resolve_option(api_dir, config_values, "api_dir", DEFAULT_API_DIR),
            key_file=_resolve_option(key_file, config_values, "key_file"),
            api_base_url=_resolve_option(api_base_url, config_values, "api_base_url", DEFAULT_API_BASE_URL),
            client_origin=_resolve_option(client_origin, config_values, "client_origin", DEFAULT_CLIENT_ORIGIN),
            skip_login=bool(_resolve_option(skip_login, config_values, "skip_login", default=False)),
            revoke_previous_key=bool(
                _resolve_option(revoke_previous_key, config_values, "revoke_previous_key", default=False)
            ),
            resume=bool(_resolve_option(resume, config_values, "resume", default=False)),
            state_file=_resolve_option(state_file, config_values, "state_file"),
            command_timeout=float(command_timeout) if command_timeout is not None else None,
            retry_count=int(_resolve_option(retry_count, config_values, "retry_count", default=0)),
            retry_backoff_seconds=float(
                _resolve_option(retry_backoff_seconds, config_values, "retry_backoff_seconds", default=2.0)
            ),
        )
    except ProvisionError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(provisioner.run())


@main.command()
def doctor():
    """Check that firebase, gcloud and docker are installed."""
    logger = logging.getLogger("fireprov")
    console = Console()
    preflight = PreflightService(logger=logger, console=console)

    try:
        preflight.check(ALL_REQUIREMENTS)
        versions = preflight.tool_versions(ALL_REQUIREMENTS, CommandRunner(logger=logger).run)
    except ProvisionError as exc:
        raise click.ClickException(str(exc)) from exc

    for binary, found_version in versions.items():
        console.print(f"[green]{binary}[/green] {found_version}")
    if "firebase" in versions:
        preflight.warn_outdated_firebase(versions["firebase"])


@main.group()
def compose():
    """Manage the emulator/API/web development stack."""


def _dev_stack(config_values, compose_file) -> DevStack:
    return DevStack(
        compose_file=_resolve_option(compose_file, config_values, "compose_file", "docker-compose.yml")
    )


@compose.command("render")
@click.option("--compose-file", required=False, type=click.Path(), help="Output path for the compose file.")
@click.pass_obj
def compose_render(config_values, compose_file):
    """Write docker-compose.yml for the development stack."""
    try:
        _dev_stack(config_values, compose_file).render()
    except ProvisionError as exc:
        raise click.ClickException(str(exc)) from exc


@compose.command("up")
@click.option("--compose-file", required=False, type=click.Path(), help="Compose file to start.")
@click.option("--no-wait", is_flag=True, default=False, help="Do not wait for health checks.")
@click.pass_obj
def compose_up(config_values, compose_file, no_wait):
    """Start the stack and wait for every health gate."""
    try:
        _dev_stack(config_values, compose_file).up(wait=not no_wait)
    except ProvisionError as exc:
        raise click.ClickException(str(exc)) from exc


@compose.command("down")
@click.option("--compose-file", required=False, type=click.Path(), help="Compose file to stop.")
@click.option("--volumes", is_flag=True, default=False, help="Also remove the emulator data volume.")
@click.pass_obj
def compose_down(config_values, compose_file, volumes):
    """Stop the stack."""
    try:
        _dev_stack(config_values, compose_file).down(volumes=volumes)
    except ProvisionError as exc:
        raise click.ClickException(str(exc)) from exc


@compose.command("status")
@click.pass_obj
def compose_status(config_values):
    """Probe the published health endpoints."""
    results = _dev_stack(config_values, None).status()
    if not all(results.values()):
        raise SystemExit(1)


if __name__ == "__main__":
    main()
