"""Logging formatters and setup for the exporter.

Log records carry structured fields through ``extra=``; the formatters render
them next to the message as logfmt pairs or JSON keys.
"""

import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from typing import Any, TextIO

# Attributes every LogRecord has; anything else came in through extra=
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime"}

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

LOG_FORMATS = ("logfmt", "json")


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Collect timestamp, level, caller, message and extra fields of a record."""
    fields: dict[str, Any] = {
        "ts": datetime.fromtimestamp(record.created, UTC).isoformat(
            timespec="milliseconds"
        ),
        "level": record.levelname.lower(),
        "caller": f"{record.module}:{record.lineno}",
        "logger": record.name,
        "msg": record.getMessage(),
    }

    fields.update(
        (key, value)
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and isinstance(value, (str, int, float, bool))
    )

    if record.exc_info and record.exc_info[1] is not None:
        err = record.exc_info[1]
        fields["exc_type"] = type(err).__name__
        fields["exc_message"] = str(err)
        fields["exc_traceback"] = "".join(traceback.format_exception(err))
    return fields


def _logfmt_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if text == "" or any(c in text for c in ' ="\n\t'):
        return json.dumps(text)
    return text


class LogfmtFormatter(logging.Formatter):
    """Formats records as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        fields = _record_fields(record)
        return " ".join(f"{key}={_logfmt_value(value)}" for key, value in fields.items())


class JsonFormatter(logging.Formatter):
    """Formats records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(_record_fields(record), default=str)


def configure_logging(
    level: str = "info",
    fmt: str = "logfmt",
    stream: TextIO | None = None,
) -> logging.Logger:
    """Install a single stream handler on the package logger.

    Args:
        level: One of debug, info, warn, error.
        fmt: logfmt or json.
        stream: Output stream (default: stderr).

    Returns:
        The configured package logger.

    Raises:
        ValueError: Unknown level or format.
    """
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level: {level!r}")
    if fmt not in LOG_FORMATS:
        raise ValueError(f"unknown log format: {fmt!r}")

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter() if fmt == "json" else LogfmtFormatter())

    logger = logging.getLogger("mastodon_exporter")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVELS[level])
    logger.propagate = False
    return logger
