"""Logging setup for the CLI commands.

Handlers come from the ``logging`` block of config.json. Every handler shares
one formatter that masks secret env values (store keys, webhook tokens) and,
when ``mask_emails`` is on, the contact addresses that notification bodies
carry into the log file.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from typing import Iterable, List, Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MASK = "***"
DEFAULT_LOG_PATH = "logs/sponsormatch.log"

_EMAIL = re.compile(r"\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")


class MaskingFormatter(logging.Formatter):
    """Formatter that hides secrets and, optionally, e-mail local parts."""

    def __init__(
        self,
        secrets: Iterable[str] = (),
        mask_emails: bool = False,
        fmt: str = LOG_FORMAT,
        datefmt: Optional[str] = DATE_FORMAT,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first, so a secret that contains another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)
        self._mask_emails = mask_emails

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        for secret in self._secrets:
            text = text.replace(secret, MASK)
        if self._mask_emails:
            text = _EMAIL.sub(lambda m: f"{m.group(1)}{MASK}@{m.group(2)}", text)
        return text


def secret_values(redact: Mapping, environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """Values of the env vars named under ``redact.env_vars`` that are set."""

    if not redact.get("enabled", False):
        return []
    environ = os.environ if environ is None else environ
    return [environ[name] for name in redact.get("env_vars", []) if environ.get(name)]


def log_path(file_cfg: Mapping, root: str) -> str:
    path = file_cfg.get("path") or DEFAULT_LOG_PATH
    return path if os.path.isabs(path) else os.path.join(root, path)


def build_handlers(
    config: Mapping,
    root: str,
    console: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> List[logging.Handler]:
    """Create the handlers the config asks for; nothing is attached yet."""

    if not config.get("enabled", False):
        return []

    level = logging.getLevelName(str(config.get("level", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    formatter = MaskingFormatter(
        secret_values(config.get("redact", {}), environ),
        mask_emails=bool(config.get("redact", {}).get("mask_emails", False)),
    )

    handlers: List[logging.Handler] = []
    # The dashboard owns the terminal, so it asks for file output only.
    if console and config.get("console", True):
        handlers.append(logging.StreamHandler())

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = log_path(file_cfg, root)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def configure_logging(config: Mapping, root: str, console: bool = True) -> None:
    handlers = build_handlers(config, root, console=console)
    if handlers:
        logging.basicConfig(level=min(handler.level for handler in handlers), handlers=handlers)
