"""Store and notifier factories for sponsormatch.

The backend is picked from config.json; credentials are read from the
environment via python-dotenv to keep secrets out of the repo.
"""

from __future__ import annotations

import logging
import os
from typing import Union

from dotenv import load_dotenv
from supabase import create_client

from sponsormatch import settings
from sponsormatch.adapters.log_notifier import LogNotifier
from sponsormatch.adapters.sqlite_store import SQLiteStore
from sponsormatch.adapters.supabase_store import SupabaseStore
from sponsormatch.adapters.webhook_notifier import WebhookNotifier

LOGGER = logging.getLogger(__name__)


def build_sqlite_store() -> SQLiteStore:
    store = SQLiteStore(settings.SQLITE_PATH, media_dir=settings.MEDIA_DIR)
    store.init_db()
    return store


def build_store() -> Union[SQLiteStore, SupabaseStore]:
    """Create the configured store adapter.

    For the hosted backend SUPABASE_URL and SUPABASE_KEY are required; we
    fail fast instead of letting the first query fail with a vague error.
    """

    if settings.STORE_BACKEND == "sqlite":
        LOGGER.info("Using SQLite store at %s", settings.SQLITE_PATH)
        return build_sqlite_store()
    if settings.STORE_BACKEND != "supabase":
        raise RuntimeError("store.backend must be 'sqlite' or 'supabase'")

    load_dotenv()
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_KEY")
    if not url or not key:
        raise RuntimeError("Missing SUPABASE_URL or SUPABASE_KEY in environment")

    LOGGER.info("Initializing Supabase client")
    return SupabaseStore(create_client(url, key), media_bucket=settings.MEDIA_BUCKET)


def build_notifier() -> Union[LogNotifier, WebhookNotifier]:
    """Create the configured notifier adapter."""

    config = settings.NOTIFICATIONS
    if config.method == "log":
        return LogNotifier(mode=config.format)
    if config.method != "webhook":
        raise RuntimeError("notifications.method must be 'log' or 'webhook'")

    load_dotenv()
    if not settings.WEBHOOK_URL:
        raise RuntimeError("notifications.webhook_url is required for webhook notifications")
    LOGGER.info("Selected notification method - webhook")
    return WebhookNotifier(settings.WEBHOOK_URL, token=os.getenv("WEBHOOK_TOKEN"), mode=config.format)
