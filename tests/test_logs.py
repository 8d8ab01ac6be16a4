from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from sponsormatch.logs import MaskingFormatter, build_handlers, log_path, secret_values


def _record(message: str, *args) -> logging.LogRecord:
    return logging.LogRecord("sponsormatch.test", logging.INFO, __file__, 1, message, args, None)


def test_secret_values_reads_only_named_set_vars() -> None:
    environ = {"SUPABASE_KEY": "service-key", "WEBHOOK_TOKEN": "", "OTHER": "x"}
    redact = {"enabled": True, "env_vars": ["SUPABASE_KEY", "WEBHOOK_TOKEN", "MISSING"]}

    assert secret_values(redact, environ) == ["service-key"]
    assert secret_values({"enabled": False, "env_vars": ["SUPABASE_KEY"]}, environ) == []


def test_formatter_masks_longest_secret_first() -> None:
    formatter = MaskingFormatter(["abc", "abc123"], fmt="%(message)s")

    text = formatter.format(_record("key=%s short=%s", "abc123", "abc"))

    assert text == "key=*** short=***"


def test_formatter_masks_contact_emails_when_enabled() -> None:
    masked = MaskingFormatter(mask_emails=True, fmt="%(message)s")
    plain = MaskingFormatter(fmt="%(message)s")
    record = _record("Interest from jane.doe@acme.example (match m-1)")

    assert masked.format(record) == "Interest from j***@acme.example (match m-1)"
    assert plain.format(record) == "Interest from jane.doe@acme.example (match m-1)"


def test_build_handlers_honours_console_and_file_settings(tmp_path) -> None:
    config = {
        "enabled": True,
        "level": "warning",
        "console": True,
        "file": {"enabled": True, "path": "logs/app.log", "max_bytes": 1024, "backup_count": 2},
        "redact": {"enabled": True, "env_vars": ["SUPABASE_KEY"]},
    }

    handlers = build_handlers(config, str(tmp_path), console=False, environ={"SUPABASE_KEY": "k-1"})
    try:
        assert len(handlers) == 1
        handler = handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.level == logging.WARNING
        assert handler.maxBytes == 1024 and handler.backupCount == 2
        assert (tmp_path / "logs").is_dir()
        assert handler.format(_record("token k-1")).endswith("token ***")
    finally:
        for handler in handlers:
            handler.close()


def test_disabled_logging_builds_nothing(tmp_path) -> None:
    assert build_handlers({"enabled": False, "console": True}, str(tmp_path)) == []


def test_log_path_keeps_absolute_paths(tmp_path) -> None:
    absolute = str(tmp_path / "x.log")

    assert log_path({"path": absolute}, "/srv") == absolute
    assert log_path({}, "/srv") == "/srv/logs/sponsormatch.log"
