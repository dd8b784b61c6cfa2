"""Canonical logging field names for Courier.

Keeping names centralized prevents drift between the pipeline, the facade and
any log shipping configured downstream.
"""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EVENT = "event"

# Call correlation fields.
REQUEST_ID = "request_id"
METHOD = "method"
PATH = "path"
ATTEMPT = "attempt"
MAX_RETRIES = "max_retries"

# Outcome fields.
STATUS_CODE = "status_code"
DURATION_MS = "duration_ms"
DELAY_MS = "delay_ms"
ERROR_CATEGORY = "error_category"
ERROR_SEVERITY = "error_severity"
ERROR_CODE = "error_code"
RETRYABLE = "retryable"
SIGNAL = "signal"

# Event names.
CALL_RETRY_SCHEDULED_EVENT = "call_retry_scheduled"
CALL_RATE_LIMITED_EVENT = "call_rate_limited"
CALL_FAILED_EVENT = "call_failed"
CALL_SUCCEEDED_EVENT = "call_succeeded"
CALL_SLOW_EVENT = "call_slow"
SESSION_ENDED_EVENT = "session_ended"
SIGNAL_HANDLER_FAILURE_EVENT = "signal_handler_failure"

# Common process-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"
