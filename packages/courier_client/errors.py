"""Exceptions raised by the ``ApiClient`` facade."""

from __future__ import annotations

from dataclasses import dataclass

from packages.courier_shared.errors import ErrorCategory, ErrorDetails


@dataclass(frozen=True)
class ApiCallError(Exception):
    """Terminal failure of one API call, carrying its classified details."""

    details: ErrorDetails

    def __str__(self) -> str:
        """Return the technical message, for logs."""
        return self.details.message

    @property
    def category(self) -> ErrorCategory:
        return self.details.category

    @property
    def user_message(self) -> str:
        return self.details.user_message

    @property
    def status_code(self) -> int | None:
        return self.details.status_code

    @property
    def retryable(self) -> bool:
        return self.details.retryable
