"""Deterministic classification of failed attempts into ``ErrorDetails``.

Rules are checked in order:

0. Request could not be built (nothing sent) -> ``client``, never retried.
1. No response (connection failure or timeout) -> ``network``, retryable.
2. 401 -> ``authentication``, never retried.
3. 403 -> ``authorization``.
4. 422 -> ``validation``.
5. 408 / 429 -> ``client`` but retryable (transient).
6. Other 4xx -> ``client``.
7. 5xx -> ``server``, retryable; ``critical`` for exactly 500.
8. Anything else -> ``unknown``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any, Mapping

from packages.courier_shared.errors import (
    ErrorCategory,
    ErrorDetails,
    ErrorSeverity,
    codes,
    messages,
)

from .calls import FailedAttempt

TRANSIENT_CLIENT_STATUSES: frozenset[int] = frozenset({408, 429})


def classify_failure(
    attempt: FailedAttempt,
    *,
    include_debug: bool = False,
    now: datetime | None = None,
) -> ErrorDetails:
    """Map one failed attempt to a structured ``ErrorDetails`` record."""
    moment = _utc(now)
    category, severity, retryable = _categorize(attempt)
    envelope = _error_envelope(attempt.body)
    api_message = _str_or_none(envelope.get("message"))

    return ErrorDetails(
        category=category,
        severity=severity,
        message=_technical_message(attempt, api_message),
        user_message=user_message_for(
            category,
            status_code=attempt.status_code,
            timed_out=attempt.timed_out,
            api_message=api_message,
        ),
        retryable=retryable,
        timestamp=moment.isoformat(),
        code=_str_or_none(envelope.get("error_code")) or _default_code(attempt, category),
        status_code=attempt.status_code,
        request_id=_str_or_none(envelope.get("request_id")) or attempt.request_id,
        retry_after_seconds=parse_retry_after(
            _header(attempt.headers, "retry-after"), now=moment
        ),
        field_errors=_field_errors(envelope.get("errors")),
        debug_info=_debug_info(attempt, envelope) if include_debug else None,
    )


def _categorize(attempt: FailedAttempt) -> tuple[ErrorCategory, ErrorSeverity, bool]:
    if attempt.not_sent:
        return ErrorCategory.CLIENT, ErrorSeverity.MEDIUM, False
    status = attempt.status_code
    if status is None:
        return ErrorCategory.NETWORK, ErrorSeverity.MEDIUM, True
    if status == 401:
        return ErrorCategory.AUTHENTICATION, ErrorSeverity.HIGH, False
    if status == 403:
        return ErrorCategory.AUTHORIZATION, ErrorSeverity.MEDIUM, False
    if status == 422:
        return ErrorCategory.VALIDATION, ErrorSeverity.LOW, False
    if status in TRANSIENT_CLIENT_STATUSES:
        return ErrorCategory.CLIENT, ErrorSeverity.LOW, True
    if 400 <= status < 500:
        return ErrorCategory.CLIENT, ErrorSeverity.LOW, False
    if status >= 500:
        severity = ErrorSeverity.CRITICAL if status == 500 else ErrorSeverity.HIGH
        return ErrorCategory.SERVER, severity, True
    return ErrorCategory.UNKNOWN, ErrorSeverity.MEDIUM, False


def is_user_safe_message(message: str) -> bool:
    """Return ``True`` when ``message`` carries no implementation jargon."""
    lowered = message.lower()
    return not any(term in lowered for term in messages.TECHNICAL_TERMS)


def user_message_for(
    category: ErrorCategory,
    *,
    status_code: int | None = None,
    timed_out: bool = False,
    api_message: str | None = None,
) -> str:
    """Return text safe to display for one classified failure.

    A server-provided message wins when it is user safe; otherwise a canned
    message for the category is used.
    """
    if api_message and is_user_safe_message(api_message):
        return api_message

    if category is ErrorCategory.NETWORK:
        return messages.TIMEOUT_ERROR if timed_out else messages.NETWORK_ERROR
    if category is ErrorCategory.AUTHENTICATION:
        return messages.UNAUTHORIZED if status_code == 401 else messages.INVALID_CREDENTIALS
    if category is ErrorCategory.AUTHORIZATION:
        return messages.FORBIDDEN
    if category is ErrorCategory.VALIDATION:
        return messages.VALIDATION_FAILED
    if category is ErrorCategory.SERVER:
        if status_code == 503:
            return messages.SERVICE_UNAVAILABLE
        return messages.SERVER_ERROR
    if category is ErrorCategory.CLIENT:
        if status_code == 408:
            return messages.TIMEOUT_ERROR
        return messages.OPERATION_FAILED
    return messages.UNKNOWN_ERROR


def parse_retry_after(value: str | None, *, now: datetime | None = None) -> float | None:
    """Parse a ``Retry-After`` header given as delta-seconds or an HTTP-date."""
    if value is None or value.strip() == "":
        return None
    candidate = value.strip()
    try:
        return max(0.0, float(int(candidate)))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(candidate)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max(0.0, (when - _utc(now)).total_seconds())


def _default_code(attempt: FailedAttempt, category: ErrorCategory) -> str:
    if attempt.not_sent:
        return codes.INVALID_REQUEST
    if category is ErrorCategory.NETWORK:
        return codes.TIMEOUT if attempt.timed_out else codes.NETWORK_ERROR
    status = attempt.status_code
    if status == 401:
        return codes.UNAUTHORIZED
    if status == 403:
        return codes.FORBIDDEN
    if status == 422:
        return codes.VALIDATION_FAILED
    if status == 408:
        return codes.REQUEST_TIMEOUT
    if status == 429:
        return codes.RATE_LIMITED
    if category is ErrorCategory.CLIENT:
        return codes.CLIENT_ERROR
    if status == 503:
        return codes.SERVICE_UNAVAILABLE
    if category is ErrorCategory.SERVER:
        return codes.SERVER_ERROR
    return codes.UNKNOWN_ERROR


def _technical_message(attempt: FailedAttempt, api_message: str | None) -> str:
    if api_message and api_message not in attempt.message:
        return f"{attempt.message}: {api_message}"
    return attempt.message


def _error_envelope(body: Any) -> Mapping[str, Any]:
    """Return the server error envelope when the body is a JSON object."""
    if isinstance(body, Mapping):
        return body
    return {}


def _field_errors(value: Any) -> dict[str, tuple[str, ...]]:
    """Normalize ``{"field": ["msg", ...]}`` validation detail."""
    if not isinstance(value, Mapping):
        return {}
    output: dict[str, tuple[str, ...]] = {}
    for key, items in value.items():
        if isinstance(items, (list, tuple)):
            output[str(key)] = tuple(str(item) for item in items)
        elif items is not None:
            output[str(key)] = (str(items),)
    return output


def _debug_info(attempt: FailedAttempt, envelope: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "method": attempt.method,
        "url": attempt.url,
        "transport_code": attempt.transport_code,
        "response": dict(envelope) if envelope else attempt.body,
        "server_debug": envelope.get("debug_info"),
    }


def _header(headers: Mapping[str, str], name: str) -> str | None:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _utc(value: datetime | None) -> datetime:
    if value is None:
        return datetime.now(UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
