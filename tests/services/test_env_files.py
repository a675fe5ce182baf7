from datetime import datetime

from rich.console import Console

from fireprov.models import WebAppConfig
from fireprov.services.env_files import EnvFileService
from fireprov.services.filesystem import FileSystemService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


CONFIG = WebAppConfig(
    api_key="AIzaSyExample",
    auth_domain="kerflow-app.firebaseapp.com",
    project_id="kerflow-app",
    storage_bucket="kerflow-app.appspot.com",
    messaging_sender_id="123456789012",
    app_id="1:123456789012:web:abcdef",
)


def _service():
    logger = DummyLogger()
    return EnvFileService(
        logger=logger,
        console=DummyConsole(),
        filesystem_service=FileSystemService(logger=logger, console=Console()),
        clock=lambda: datetime(2026, 1, 2, 3, 4, 5),
    )


def _assignments(content: str):
    lines = [line for line in content.splitlines() if line and not line.startswith("#")]
    return dict(line.split("=", 1) for line in lines)


def test_render_web_env_contains_fields_and_fixed_defaults():
    content = _service().render_web_env(CONFIG, "kerflow-app", "https://api-kerflow.workers.dev")

    assert content.startswith("# Firebase Web Configuration - Auto-generated\n")
    assert "# Generated on: 2026-01-02 03:04:05\n" in content
    assert "# Project: kerflow-app\n" in content
    assert _assignments(content) == {
        "VITE_FIREBASE_API_KEY": '"AIzaSyExample"',
        "VITE_FIREBASE_AUTH_DOMAIN": '"kerflow-app.firebaseapp.com"',
        "VITE_FIREBASE_PROJECT_ID": '"kerflow-app"',
        "VITE_FIREBASE_STORAGE_BUCKET": '"kerflow-app.appspot.com"',
        "VITE_FIREBASE_MESSAGING_SENDER_ID": '"123456789012"',
        "VITE_FIREBASE_APP_ID": '"1:123456789012:web:abcdef"',
        "VITE_USE_FIREBASE_EMULATOR": "false",
        "VITE_API_BASE_URL": '"https://api-kerflow.workers.dev"',
    }


def test_render_api_env_contains_fixed_defaults():
    content = _service().render_api_env("kerflow-app", "https://kerflow-app.pages.dev")

    assert content.startswith("# Firebase API Configuration - Auto-generated\n")
    assert _assignments(content) == {
        "NODE_ENV": "production",
        "PORT": "3000",
        "CLIENT_ORIGIN": "https://kerflow-app.pages.dev",
        "FIREBASE_PROJECT_ID": "kerflow-app",
        "FIREBASE_USE_EMULATOR": "false",
        "GOOGLE_APPLICATION_CREDENTIALS": "./service-account-key.json",
        "STREAM_API_KEY": "your-stream-key",
        "STREAM_API_SECRET": "your-stream-secret",
        "STREAM_APP_ID": "your-stream-app-id",
    }


def test_write_web_env_writes_identical_pair(tmp_path):
    primary, copy = _service().write_web_env(
        str(tmp_path / "web"), CONFIG, "kerflow-app", "https://api-kerflow.workers.dev"
    )

    assert primary.endswith(".env.firebase-prod")
    assert copy.endswith(".env.production")
    assert (tmp_path / "web" / ".env.production").read_text(encoding="utf-8") == (
        tmp_path / "web" / ".env.firebase-prod"
    ).read_text(encoding="utf-8")


def test_write_api_env_overwrites_previous_content(tmp_path):
    api_dir = tmp_path / "api"
    api_dir.mkdir()
    (api_dir / ".env.firebase-prod").write_text("STALE=1\n", encoding="utf-8")
    (api_dir / ".env.production").write_text("STALE=1\n", encoding="utf-8")

    _service().write_api_env(str(api_dir), "kerflow-app", "https://kerflow-app.pages.dev")

    for name in (".env.firebase-prod", ".env.production"):
        content = (api_dir / name).read_text(encoding="utf-8")
        assert "STALE" not in content
        assert "PORT=3000" in content


def test_write_api_env_points_at_configured_key_file(tmp_path):
    api_dir = tmp_path / "api"

    _service().write_api_env(
        str(api_dir),
        "kerflow-app",
        "https://kerflow-app.pages.dev",
        key_file=str(api_dir / "keys" / "admin.json"),
    )

    content = (api_dir / ".env.firebase-prod").read_text(encoding="utf-8")
    assert _assignments(content)["GOOGLE_APPLICATION_CREDENTIALS"] == "./keys/admin.json"


def test_credentials_path_outside_api_dir_is_relative():
    assert EnvFileService.credentials_path("/work/api", "/work/secrets/sa.json") == "../secrets/sa.json"
