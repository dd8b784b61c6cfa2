"""Public logging API for Courier.

Standard-library ``logging`` with a contextvars-backed context for call
correlation fields and a one-call stdout setup driven by ``CourierSettings``.
"""

from . import fields
from .config import (
    ContextFilter,
    JsonFormatter,
    PlainFormatter,
    configure_logging,
    configure_logging_from_settings,
)
from .context import bind_context, clear_context, get_context, log_context

__all__ = [
    "ContextFilter",
    "JsonFormatter",
    "PlainFormatter",
    "bind_context",
    "clear_context",
    "configure_logging",
    "configure_logging_from_settings",
    "fields",
    "get_context",
    "log_context",
]
