"""Application entry point for the sponsorship dashboards."""

from __future__ import annotations

import argparse
import json
import logging
import os
from typing import Optional

from art import tprint
from dotenv import load_dotenv

from sponsormatch import settings
from sponsormatch.client import build_notifier, build_sqlite_store, build_store
from sponsormatch.core.errors import SponsorMatchError
from sponsormatch.logs import configure_logging

NAME = "SPONSORMATCH"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _setup_logging(console: bool = True) -> None:
    # Secrets to mask may live only in .env.
    load_dotenv()
    configure_logging(settings.LOGGING or {}, settings.PROJECT_ROOT, console=console)


def _dashboard() -> None:
    _print_banner()
    _setup_logging(console=False)
    logger = logging.getLogger(__name__)

    if not settings.ACCOUNT_ID:
        raise RuntimeError("account.id is required in config.json")

    store = build_store()
    notifier = build_notifier()
    logger.info("Starting dashboard for %s %s", settings.ACCOUNT_ROLE, settings.ACCOUNT_ID)

    from sponsormatch.frontend.app import SponsorMatchApp

    SponsorMatchApp(
        store=store,
        notifier=notifier,
        account_id=settings.ACCOUNT_ID,
        role=settings.ACCOUNT_ROLE,
        swipe_config=settings.SWIPE,
        retry=settings.RETRY,
        notifications=settings.NOTIFICATIONS,
    ).run()


def _init_db() -> None:
    _setup_logging()
    build_sqlite_store()
    print(f"SQLite schema ready at {settings.SQLITE_PATH}")


def _seed(path: str) -> None:
    _setup_logging()
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)

    store = build_sqlite_store()
    try:
        counts = store.load_fixtures(payload)
    except SponsorMatchError as exc:
        raise SystemExit(f"Seed failed: {exc}") from exc
    summary = ", ".join(f"{table}={count}" for table, count in counts.items())
    logging.getLogger(__name__).info("Seed loaded from %s: %s", path, summary)
    print(f"Seeded {summary}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="sponsormatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("dashboard", help="Launch the dashboard for the configured account")
    subparsers.add_parser("init-db", help="Create the local SQLite schema")
    seed_parser = subparsers.add_parser("seed", help="Load demo data into the local SQLite store")
    seed_parser.add_argument("path", nargs="?", default="seed.json", help="Seed JSON file")

    args = parser.parse_args(argv)
    if args.command == "init-db":
        _init_db()
        return
    if args.command == "seed":
        _seed(args.path)
        return
    _dashboard()


if __name__ == "__main__":
    main()
