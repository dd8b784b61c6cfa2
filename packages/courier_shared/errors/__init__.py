"""Public shared error API for Courier packages."""

from . import codes, messages
from .types import ErrorCategory, ErrorDetails, ErrorSeverity

__all__ = [
    "ErrorCategory",
    "ErrorDetails",
    "ErrorSeverity",
    "codes",
    "messages",
]
