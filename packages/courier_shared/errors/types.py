"""Canonical error types for Courier API calls.

This module defines the transport-agnostic taxonomy every failed call is
classified into. Presentation code keys off ``category`` and ``severity`` and
only ever displays ``user_message``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ErrorCategory(str, Enum):
    """High-level failure categories surfaced to callers."""

    NETWORK = "network"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    SERVER = "server"
    CLIENT = "client"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """Coarse priority signal used to drive notice urgency."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ErrorDetails:
    """Structured record surfaced on any terminal call failure.

    ``message`` and ``debug_info`` are for logs only. ``user_message`` is the
    only text safe to show an end user.
    """

    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    retryable: bool
    timestamp: str
    code: str | None = None
    status_code: int | None = None
    request_id: str | None = None
    retry_after_seconds: float | None = None
    field_errors: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    debug_info: Mapping[str, Any] | None = None

    def to_log_fields(self) -> dict[str, object]:
        """Return a flat mapping suitable for structured log context."""
        return {
            "error_category": self.category.value,
            "error_severity": self.severity.value,
            "error_code": self.code,
            "status_code": self.status_code,
            "retryable": self.retryable,
            "request_id": self.request_id,
        }
