"""Actionable error catalog for fireprov."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_dependencies": {
        "what": "Missing dependencies: {tools}.",
        "next": "Install them and retry.\n{hints}",
    },
    "login_failed": {
        "what": "Interactive login with {tool} failed.",
        "next": "Complete the browser login, or rerun with `--skip-login` if already authenticated.",
    },
    "web_app_not_created": {
        "what": "No web app found for project {project_id}, even after creating one.",
        "next": "Check `firebase apps:list --project {project_id}` and your project permissions.",
    },
    "sdk_config_unparseable": {
        "what": "Could not extract the Firebase web config from {path}.",
        "next": "Run `firebase apps:sdkconfig WEB <app id>` manually and inspect the output.",
    },
    "key_file_missing": {
        "what": "Failed to download service account key: {path} does not exist.",
        "next": "Check your IAM permissions on the service account and rerun with `--resume`.",
    },
    "invalid_key_file": {
        "what": "Service account key {path} is invalid: {reason}.",
        "next": "Delete the file and rerun provisioning to issue a new key.",
    },
    "compose_dependency_cycle": {
        "what": "Service dependencies form a cycle: {services}.",
        "next": "Remove one of the `depends_on` edges.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
