"""Structured JSON logging for the metric store.

Records are rendered as canonical JSON payloads. When the collector daemon
hands the plugin a log callback, :func:`configure_logging` installs a sink
handler that forwards each payload to it instead of writing to ``stderr``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

__all__ = ["StructuredLogFormatter", "configure_logging"]

_RESERVED_LOG_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}

# Never forwarded to a sink, even when passed through ``extra``.
_SENSITIVE_FIELDS = {"password", "db_password", "dbpasswd"}


class StructuredLogFormatter(logging.Formatter):
    """Format log records into canonical JSON payloads."""

    def format(self, record: logging.LogRecord) -> str:
        payload = self.format_to_dict(record)
        return json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str)

    def format_to_dict(self, record: logging.LogRecord) -> dict[str, Any]:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        payload: dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_LOG_FIELDS or key in _SENSITIVE_FIELDS:
                continue
            if key == "message":
                continue
            payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return payload


class _StructuredSinkHandler(logging.Handler):
    """Handler that forwards structured log payloads to a callable sink."""

    def __init__(
        self, sink: Callable[[dict[str, Any]], None], formatter: StructuredLogFormatter
    ) -> None:
        super().__init__()
        self._sink = sink
        self.formatter = formatter

    def emit(
        self, record: logging.LogRecord
    ) -> None:  # pragma: no cover - errors handled by logging
        try:
            payload = self.formatter.format_to_dict(record)
            self._sink(payload)
        except Exception:
            self.handleError(record)


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.upper())
    if isinstance(numeric, int):
        return numeric
    raise ValueError(f"Unknown log level: {level}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    sink: Callable[[dict[str, Any]], None] | None = None,
    logger_name: str | None = None,
) -> logging.Logger:
    """Configure a logger to emit structured logs.

    Parameters
    ----------
    level:
        Logging level expressed as an integer or human readable string.
    sink:
        Optional callable that receives the structured payload for each log record.
        When omitted, logs are written to ``sys.stderr`` using JSON formatting.
    logger_name:
        Logger to configure. Defaults to the root logger; a plugin embedded in
        a host process passes its own package name so the host's logging is
        left alone.
    """

    numeric_level = _resolve_level(level)
    formatter = StructuredLogFormatter()

    target = logging.getLogger(logger_name)
    target.setLevel(numeric_level)

    for handler in list(target.handlers):
        target.removeHandler(handler)

    if sink is None:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(formatter)
    else:
        handler = _StructuredSinkHandler(sink, formatter)

    target.addHandler(handler)
    if logger_name is not None:
        target.propagate = False
    return target
