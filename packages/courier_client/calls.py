"""Value types flowing through the request pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, TypeVar

from packages.courier_shared.errors import ErrorDetails

T = TypeVar("T")

READ_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})


@dataclass(frozen=True)
class OutgoingCall:
    """One caller-initiated request, constructed by the caller.

    ``timeout_seconds`` overrides the configured per-attempt timeout.
    ``skip_retry`` limits the call to one attempt and ``skip_dedup`` forces a
    read onto its own transport call.
    """

    method: str
    path: str
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None
    requires_auth: bool = True
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_seconds: float | None = None
    skip_retry: bool = False
    skip_dedup: bool = False

    @property
    def verb(self) -> str:
        """Return the upper-cased HTTP method."""
        return self.method.upper()

    @property
    def is_read(self) -> bool:
        """Return ``True`` for side-effect free methods."""
        return self.verb in READ_METHODS


@dataclass(frozen=True)
class CallMetadata:
    """Per-attempt bookkeeping owned by the pipeline for one logical call."""

    request_id: str
    started_at_ms: int
    attempt_count: int = 0


@dataclass(frozen=True)
class ResponseMeta:
    """Annotation attached to every successful result."""

    timestamp: str
    duration_ms: int
    request_id: str

    def as_dict(self) -> dict[str, object]:
        """Return the wire shape used for ``_meta`` payload annotation."""
        return {
            "timestamp": self.timestamp,
            "duration": self.duration_ms,
            "requestId": self.request_id,
        }


@dataclass(frozen=True)
class FailedAttempt:
    """Raw outcome of one failed transport attempt, input to classification."""

    method: str
    url: str
    message: str
    status_code: int | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    timed_out: bool = False
    transport_code: str | None = None
    request_id: str | None = None
    # Set when the request could not be built, so nothing reached the wire.
    not_sent: bool = False

    @property
    def has_response(self) -> bool:
        """Return ``True`` when the server answered with a status."""
        return self.status_code is not None


@dataclass(frozen=True)
class CallResult(Generic[T]):
    """Outcome of one logical call: a payload or classified ``ErrorDetails``."""

    payload: T | None = None
    error: ErrorDetails | None = None
    status_code: int | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    meta: ResponseMeta | None = None
    attempts: int = 1

    @property
    def ok(self) -> bool:
        """Return ``True`` when the call resolved successfully."""
        return self.error is None

    @classmethod
    def success(
        cls,
        payload: T | None,
        *,
        status_code: int,
        headers: Mapping[str, str],
        meta: ResponseMeta,
        attempts: int,
    ) -> CallResult[T]:
        """Build a successful result."""
        return cls(
            payload=payload,
            status_code=status_code,
            headers=dict(headers),
            meta=meta,
            attempts=attempts,
        )

    @classmethod
    def failure(cls, error: ErrorDetails, *, attempts: int) -> CallResult[T]:
        """Build a failed result carrying the final ``ErrorDetails``."""
        return cls(error=error, status_code=error.status_code, attempts=attempts)
