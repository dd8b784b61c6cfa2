"""Unit tests for failed-attempt classification."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from packages.courier_client import (
    FailedAttempt,
    classify_failure,
    is_user_safe_message,
    parse_retry_after,
)
from packages.courier_shared.errors import ErrorCategory, ErrorSeverity, codes, messages

NOW = datetime(2026, 1, 5, 12, 0, 0, tzinfo=UTC)


def _attempt(status: int | None, **overrides: object) -> FailedAttempt:
    values: dict[str, object] = {
        "method": "GET",
        "url": "https://api.test/api/things",
        "message": f"HTTP {status} for GET https://api.test/api/things",
        "status_code": status,
        "request_id": "req_local",
    }
    values.update(overrides)
    return FailedAttempt(**values)


@pytest.mark.parametrize(
    ("status", "category", "severity", "retryable"),
    [
        (None, ErrorCategory.NETWORK, ErrorSeverity.MEDIUM, True),
        (401, ErrorCategory.AUTHENTICATION, ErrorSeverity.HIGH, False),
        (403, ErrorCategory.AUTHORIZATION, ErrorSeverity.MEDIUM, False),
        (422, ErrorCategory.VALIDATION, ErrorSeverity.LOW, False),
        (408, ErrorCategory.CLIENT, ErrorSeverity.LOW, True),
        (429, ErrorCategory.CLIENT, ErrorSeverity.LOW, True),
        (400, ErrorCategory.CLIENT, ErrorSeverity.LOW, False),
        (404, ErrorCategory.CLIENT, ErrorSeverity.LOW, False),
        (500, ErrorCategory.SERVER, ErrorSeverity.CRITICAL, True),
        (502, ErrorCategory.SERVER, ErrorSeverity.HIGH, True),
        (503, ErrorCategory.SERVER, ErrorSeverity.HIGH, True),
        (304, ErrorCategory.UNKNOWN, ErrorSeverity.MEDIUM, False),
    ],
)
def test_classification_rules(
    status: int | None,
    category: ErrorCategory,
    severity: ErrorSeverity,
    retryable: bool,
) -> None:
    """Each status maps to one category, severity and retry eligibility."""
    details = classify_failure(_attempt(status), now=NOW)

    assert details.category is category
    assert details.severity is severity
    assert details.retryable is retryable
    assert details.status_code == status
    assert details.timestamp == NOW.isoformat()


def test_server_envelope_fields_are_carried() -> None:
    """Server ``message``, ``error_code`` and ``request_id`` flow into details."""
    details = classify_failure(
        _attempt(
            403,
            body={
                "success": False,
                "message": "Only instructors can publish quizzes.",
                "error_code": "ROLE_REQUIRED",
                "request_id": "srv-42",
            },
        ),
        now=NOW,
    )

    assert details.user_message == "Only instructors can publish quizzes."
    assert details.code == "ROLE_REQUIRED"
    assert details.request_id == "srv-42"
    assert "Only instructors can publish quizzes." in details.message


def test_local_request_id_is_used_without_server_id() -> None:
    details = classify_failure(_attempt(404), now=NOW)

    assert details.request_id == "req_local"
    assert details.code == codes.CLIENT_ERROR
    assert details.user_message == messages.OPERATION_FAILED


def test_network_timeout_uses_timeout_message() -> None:
    details = classify_failure(_attempt(None, timed_out=True, transport_code="ReadTimeout"), now=NOW)

    assert details.code == codes.TIMEOUT
    assert details.user_message == messages.TIMEOUT_ERROR


def test_network_failure_uses_connection_message() -> None:
    details = classify_failure(_attempt(None, transport_code="ConnectError"), now=NOW)

    assert details.code == codes.NETWORK_ERROR
    assert details.user_message == messages.NETWORK_ERROR


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (401, messages.UNAUTHORIZED),
        (403, messages.FORBIDDEN),
        (422, messages.VALIDATION_FAILED),
        (408, messages.TIMEOUT_ERROR),
        (500, messages.SERVER_ERROR),
        (503, messages.SERVICE_UNAVAILABLE),
        (302, messages.UNKNOWN_ERROR),
    ],
)
def test_canned_user_messages(status: int, expected: str) -> None:
    assert classify_failure(_attempt(status), now=NOW).user_message == expected


@pytest.mark.parametrize(
    "message",
    [
        "Unhandled exception in handler",
        "Database connection lost",
        "SQL error near WHERE",
        "Stack trace: at line 4",
        "Call to undefined method User::foo()",
    ],
)
def test_technical_messages_are_not_user_safe(message: str) -> None:
    assert is_user_safe_message(message) is False
    details = classify_failure(_attempt(500, body={"message": message}), now=NOW)
    assert details.user_message == messages.SERVER_ERROR


def test_plain_messages_are_user_safe() -> None:
    assert is_user_safe_message("Quiz is closed for submissions.") is True


def test_field_errors_are_normalized() -> None:
    details = classify_failure(
        _attempt(422, body={"errors": {"title": ["required", "too short"], "due": "invalid"}}),
        now=NOW,
    )

    assert details.field_errors == {"title": ("required", "too short"), "due": ("invalid",)}


def test_retry_after_header_is_parsed() -> None:
    details = classify_failure(_attempt(429, headers={"retry-after": "12"}), now=NOW)

    assert details.retry_after_seconds == 12.0
    assert details.code == codes.RATE_LIMITED


def test_debug_info_only_when_requested() -> None:
    attempt = _attempt(500, body={"message": "boom", "debug_info": {"file": "x.php"}})

    assert classify_failure(attempt, now=NOW).debug_info is None
    debug = classify_failure(attempt, include_debug=True, now=NOW).debug_info
    assert debug["server_debug"] == {"file": "x.php"}
    assert debug["url"] == "https://api.test/api/things"


def test_non_json_body_is_ignored_for_envelope_fields() -> None:
    details = classify_failure(_attempt(502, body="<html>Bad Gateway</html>"), now=NOW)

    assert details.user_message == messages.SERVER_ERROR
    assert details.code == codes.SERVER_ERROR


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, None),
        ("", None),
        ("30", 30.0),
        ("-5", 0.0),
        ("Mon, 05 Jan 2026 12:00:45 GMT", 45.0),
        ("Mon, 05 Jan 2026 11:00:00 GMT", 0.0),
        ("soon", None),
    ],
)
def test_parse_retry_after(value: str | None, expected: float | None) -> None:
    assert parse_retry_after(value, now=NOW) == expected


def test_unsent_request_is_terminal_client_failure() -> None:
    details = classify_failure(
        _attempt(
            None,
            message="Request could not be built for POST /events: TypeError: not serializable",
            transport_code="TypeError",
            not_sent=True,
        ),
        now=NOW,
    )

    assert details.category is ErrorCategory.CLIENT
    assert details.severity is ErrorSeverity.MEDIUM
    assert details.retryable is False
    assert details.code == codes.INVALID_REQUEST
    assert details.user_message == messages.OPERATION_FAILED
