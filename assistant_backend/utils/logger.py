"""Root logging setup: console lines for humans, rotating JSON lines for machines.

Every record carries the id of the HTTP request that produced it, when there is one.
"""
from __future__ import annotations

import contextvars
import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s%(rid_suffix)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"

request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)

# LogRecord attributes that are not caller-supplied ``extra`` keys
_RECORD_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message", "asctime", "request_id", "rid_suffix",
}


def set_request_id(rid: Optional[str]) -> None:
    request_id.set(rid)


def clear_request_id() -> None:
    request_id.set(None)


class RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id.get()
        return True


def _jsonable(value):
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)
    return value


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra={...}`` keys become top-level fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
            "request_id": getattr(record, "request_id", None),
        }
        entry.update(
            (key, _jsonable(value))
            for key, value in vars(record).items()
            if key not in _RECORD_FIELDS
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        rid = getattr(record, "request_id", None)
        record.rid_suffix = f" [rid={rid}]" if rid else ""
        return super().format(record)


def init_logging(
    *,
    level: Union[int, str] = logging.INFO,
    file_logging: bool = True,
    log_dir: Union[str, Path] = "logs",
    filename: str = "app.log",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Replace the root handlers. Calling it again reconfigures rather than duplicates."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(level)

    rid_filter = RequestIDFilter()
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ConsoleFormatter(CONSOLE_FORMAT, CONSOLE_DATEFMT))
    console.addFilter(rid_filter)
    root.addHandler(console)

    if not file_logging:
        return

    path = Path(log_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            path / filename, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8",
        )
    except OSError:
        root.warning("Cannot write logs under %s, console only", path, exc_info=True)
        return
    rotating.setFormatter(JsonFormatter())
    rotating.addFilter(rid_filter)
    root.addHandler(rotating)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
