"""Static configuration for sponsormatch.

All user-editable settings (store, account, swipe, retries, notifications,
logging) live in a single JSON file for quick edits without touching Python.
Secrets stay in the environment; see client.py.
"""

import json
import os

from sponsormatch.core.config import NotificationConfig, RetryConfig, SwipeConfig
from sponsormatch.core.models import ROLE_BRAND, ROLES

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# SPONSORMATCH_CONFIG points at an alternative config file (handy for demos).
CONFIG_PATH = os.getenv("SPONSORMATCH_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _project_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Store backend switches adapters without changing core logic.
# - STORE_BACKEND: "sqlite" (local file) or "supabase" (hosted)
_store = _CONFIG.get("store", {})
STORE_BACKEND = _store.get("backend", "sqlite")
SQLITE_PATH = _project_path(_store.get("sqlite_path", "sponsormatch.db"))
MEDIA_DIR = _project_path(_store.get("media_dir", "media"))
MEDIA_BUCKET = _store.get("media_bucket", "media")

# The signed-in account; the hosted backend enforces what it may touch.
_account = _CONFIG.get("account", {})
ACCOUNT_ID = str(_account.get("id", ""))
ACCOUNT_ROLE = _account.get("role", ROLE_BRAND)
if ACCOUNT_ROLE not in ROLES:
    raise ValueError(f"account.role must be one of {', '.join(ROLES)}")

_swipe = _CONFIG.get("swipe", {})
SWIPE = SwipeConfig(
    threshold=float(_swipe.get("threshold", 100)),
    units_per_cell=float(_swipe.get("units_per_cell", 10)),
)

_retry = _CONFIG.get("retry", {})
RETRY = RetryConfig(transient_retries=int(_retry.get("transient_retries", 1)))

# Notification method and message format used by notifier adapters.
_notifications = _CONFIG.get("notifications", {})
NOTIFICATIONS = NotificationConfig(
    method=_notifications.get("method", "log"),
    format=_notifications.get("format", "markdown"),
    banner_seconds=float(_notifications.get("banner_seconds", 5)),
)
# Webhook URL is only required when notifications.method=webhook.
WEBHOOK_URL = _notifications.get("webhook_url")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
