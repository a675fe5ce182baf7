"""Fixed defaults shared across fireprov services."""

DEFAULT_PROJECT_ID = "kerflow-app"
DEFAULT_WEB_APP_NAME = "Kerflow Web App"
SERVICE_ACCOUNT_DISPLAY_NAME = "Firebase Admin SDK Service Account"
SERVICE_ACCOUNT_ROLE = "roles/firebase.admin"

DEFAULT_WEB_DIR = "web"
DEFAULT_API_DIR = "api"
KEY_FILE_NAME = "service-account-key.json"
PRIMARY_ENV_NAME = ".env.firebase-prod"
COPY_ENV_NAME = ".env.production"

DEFAULT_API_BASE_URL = "https://api-kerflow.workers.dev"
DEFAULT_CLIENT_ORIGIN = "https://kerflow-app.pages.dev"
API_PORT = 3000
API_NODE_ENV = "production"
STREAM_PLACEHOLDERS = (
    ("STREAM_API_KEY", "your-stream-key"),
    ("STREAM_API_SECRET", "your-stream-secret"),
    ("STREAM_APP_ID", "your-stream-app-id"),
)

OUTPUT_DIR = "output"
STATE_FILE_NAME = "provision-state.json"
MANIFEST_FILE_NAME = "provision-manifest.json"
CONFIG_FILE_NAME = ".fireprov.yml"

KEY_FILE_MODE = 0o600
ENV_FILE_MODE = 0o600

MIN_FIREBASE_TOOLS_VERSION = "9.0.0"

GITIGNORE_PATTERNS = ("*.env.firebase-prod", "*.env.production", KEY_FILE_NAME)
