"""Process-level logging setup for Courier hosts.

A host calls ``configure_logging_from_settings`` once at startup (``ApiClient.
from_settings`` does this by default). Records go to a single stream handler
and carry the call correlation fields bound through ``log_context``, either as
one JSON object per line or as ``key=value`` pairs after a plain message.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO, Any, Iterable

from packages.courier_shared.config import CourierSettings, LoggingSettings

from . import fields
from .context import bind_context, get_context

# httpx and httpcore log every request at INFO; the pipeline already does.
TRANSPORT_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")


class ContextFilter(logging.Filter):
    """Copy the active log context onto each record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = get_context()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: core fields, then context, then exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }
        payload.update(getattr(record, "context", None) or {})
        if record.exc_info and record.exc_info[0] is not None:
            payload["exception_type"] = record.exc_info[0].__name__
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Console formatter: ``time level logger message key=value ...``."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None) or {}
        if context:
            line += " " + " ".join(f"{key}={context[key]}" for key in sorted(context))
        return line


def configure_logging(
    settings: LoggingSettings,
    *,
    environment: str | None = None,
    stream: IO[str] | None = None,
    quiet_loggers: Iterable[str] = TRANSPORT_LOGGERS,
) -> logging.Handler:
    """Install one handler on the root logger and return it.

    Existing root handlers are replaced, so calling this twice never doubles
    output. ``service`` and ``environment`` are bound into the log context of
    the calling task. Transport loggers are held at WARNING unless the level
    is DEBUG.
    """
    level = settings.level
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(level)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if settings.json_output else PlainFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    transport_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(transport_level)

    bind_context(**{fields.SERVICE: settings.service, fields.ENVIRONMENT: environment})
    return handler


def configure_logging_from_settings(
    settings: CourierSettings,
    *,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Configure logging from the ``logging`` block and ``environment`` of settings."""
    return configure_logging(
        settings.logging,
        environment=settings.environment,
        stream=stream,
    )
