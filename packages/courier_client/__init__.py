"""Public API for the Courier resilient API client core."""

from .calls import (
    READ_METHODS,
    CallMetadata,
    CallResult,
    FailedAttempt,
    OutgoingCall,
    ResponseMeta,
)
from .classify import classify_failure, is_user_safe_message, parse_retry_after, user_message_for
from .client import ApiClient, unwrap_envelope
from .credentials import CredentialStore, InMemoryCredentialStore
from .dedup import RequestDeduplicator
from .errors import ApiCallError
from .identity import call_dedup_key, dedup_key, new_request_id, stable_serialize
from .notices import Notice, notice_duration_ms, report_failure, report_success
from .pipeline import RequestPipeline
from .retry import RetryDecision, RetryPolicy, compute_backoff_delay_seconds, decide_retry
from .signals import (
    CALL_FAILED,
    CALL_SUCCEEDED,
    SESSION_ENDED,
    SLOW_CALL,
    Signal,
    SignalBus,
)
from .transforms import (
    PostReceiveTransform,
    PreparedRequest,
    PreSendTransform,
    ReceivedResponse,
    annotate_payload_meta,
    bearer_credentials,
    default_headers,
    request_id_header,
)

__all__ = [
    "CALL_FAILED",
    "CALL_SUCCEEDED",
    "READ_METHODS",
    "SESSION_ENDED",
    "SLOW_CALL",
    "ApiCallError",
    "ApiClient",
    "CallMetadata",
    "CallResult",
    "CredentialStore",
    "FailedAttempt",
    "InMemoryCredentialStore",
    "Notice",
    "OutgoingCall",
    "PostReceiveTransform",
    "PreSendTransform",
    "PreparedRequest",
    "ReceivedResponse",
    "RequestDeduplicator",
    "RequestPipeline",
    "ResponseMeta",
    "RetryDecision",
    "RetryPolicy",
    "Signal",
    "SignalBus",
    "annotate_payload_meta",
    "bearer_credentials",
    "call_dedup_key",
    "classify_failure",
    "compute_backoff_delay_seconds",
    "decide_retry",
    "dedup_key",
    "default_headers",
    "is_user_safe_message",
    "new_request_id",
    "notice_duration_ms",
    "parse_retry_after",
    "report_failure",
    "report_success",
    "request_id_header",
    "stable_serialize",
    "unwrap_envelope",
    "user_message_for",
]
