"""
Logging setup for the store publisher.

Pipeline stages log through `get_logger(__name__)` and attach context with
``extra=`` (bundle label, file path, byte size, part count). Two output modes:

- console: one line per record, context appended as ``key=value`` pairs so a
  failed bundle or an oversized file is visible without JSON tooling;
- json: one object per line for CI log collectors, context promoted to
  top-level keys.

Usage:
    from store_publisher.utils.logging import configure_logging, get_logger

    configure_logging(level="INFO", json_logs=False)
    log = get_logger(__name__)
    log.warning("package redirected", extra={"bundle": "dev/repo/app", "size": 104857601})
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
CONSOLE_DATEFMT = "%H:%M:%S"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "extra",
}


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    """The ``extra=`` fields of a record, plus a nested ``record.extra`` dict."""
    context = {key: value for key, value in vars(record).items() if key not in _RESERVED}
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        context.update(nested)
    return context


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as one JSON line."""
    payload: Dict[str, Any] = {
        "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(_context(record))
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


class ContextFormatter(logging.Formatter):
    """Human-readable line with the record's context appended."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def _dict_config(level: str, formatter: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"()": ContextFormatter, "fmt": CONSOLE_FORMAT, "datefmt": CONSOLE_DATEFMT},
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": formatter,
                "level": level,
            }
        },
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Configure root logging for a CLI run.

    Parameters
    ----------
    level : str
        Level name ("DEBUG", "INFO", ...); applies to the root logger and handler.
    json_logs : bool
        Emit one JSON object per line instead of console lines.
    force : bool
        Replace existing handlers. With False, an already-configured root
        logger is left alone.
    """
    if not force and logging.getLogger().handlers:
        return
    logging.config.dictConfig(_dict_config(level.upper(), "json" if json_logs else "console"))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["ContextFormatter", "JsonFormatter", "configure_logging", "get_logger"]
