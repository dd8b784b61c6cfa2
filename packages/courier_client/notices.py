"""Failure and success reporting for presentation collaborators.

These helpers turn call outcomes into ``Notice`` values and the matching
``call-failed`` / ``call-succeeded`` signals. They never render anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from packages.courier_shared.errors import ErrorDetails, ErrorSeverity
from packages.courier_shared.logging import fields, log_context

from .signals import CALL_FAILED, CALL_SUCCEEDED, SignalBus

logger = logging.getLogger(__name__)

FAILURE_NOTICE_MS = 5000
SUCCESS_NOTICE_MS = 3000
PERSISTENT = 0


@dataclass(frozen=True)
class Notice:
    """A user-facing notice; ``duration_ms == 0`` means it stays until dismissed."""

    title: str
    description: str
    variant: str
    duration_ms: int


def notice_duration_ms(severity: ErrorSeverity) -> int:
    """Critical failures persist; everything else auto-dismisses."""
    if severity is ErrorSeverity.CRITICAL:
        return PERSISTENT
    return FAILURE_NOTICE_MS


def report_failure(
    signals: SignalBus,
    details: ErrorDetails,
    *,
    custom_message: str | None = None,
) -> Notice:
    """Log one terminal failure, emit ``call-failed`` and return its notice."""
    with log_context(details.to_log_fields()):
        logger.error("API error: %s", details.message)
    signals.emit(CALL_FAILED, details)
    return Notice(
        title="Error",
        description=custom_message or details.user_message,
        variant="destructive",
        duration_ms=notice_duration_ms(details.severity),
    )


def report_success(signals: SignalBus, message: str, data: Any = None) -> Notice:
    """Emit ``call-succeeded`` with a short description and return its notice."""
    with log_context({fields.EVENT: fields.CALL_SUCCEEDED_EVENT}):
        logger.debug("API success: %s", message)
    signals.emit(CALL_SUCCEEDED, {"message": message, "data": data})
    return Notice(
        title="Success",
        description=message,
        variant="default",
        duration_ms=SUCCESS_NOTICE_MS,
    )
