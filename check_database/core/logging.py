"""Diagnostic logging to stderr, keeping stdout free for plugin output."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import TextIO

LOG_LEVEL_ENV = "CHECK_DATABASE_LOG_LEVEL"
LOG_FORMAT_ENV = "CHECK_DATABASE_LOG_FORMAT"
DEFAULT_LEVEL = logging.WARNING
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Attributes passed through ``extra=`` that describe the check being run
CHECK_FIELDS = ("query", "database", "result", "severity")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with the check context when a record carries it."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CHECK_FIELDS:
            if hasattr(record, field):
                entry[field] = getattr(record, field)
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def parse_level(name: str | None) -> int:
    """Resolve a level name or number, falling back to WARNING."""
    if not name:
        return DEFAULT_LEVEL
    if name.isdigit():
        return int(name)
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else DEFAULT_LEVEL


def setup_logging(
    level: str | None = None,
    json_output: bool | None = None,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a single stderr handler on the root logger and return it.

    ``level`` and ``json_output`` default to the CHECK_DATABASE_LOG_LEVEL and
    CHECK_DATABASE_LOG_FORMAT (``json`` or ``text``) environment variables.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV)
    if json_output is None:
        json_output = os.environ.get(LOG_FORMAT_ENV, "text").lower() == "json"

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(parse_level(level))
    return handler
