"""Retry and backoff decisions for failed attempts.

The controller holds no state across calls. The pipeline passes the freshly
classified ``ErrorDetails`` and the number of retries already made, and gets
back a ``RetryDecision``.
"""

from __future__ import annotations

from dataclasses import dataclass

from packages.courier_shared.config import ApiSettings, get_settings
from packages.courier_shared.errors import ErrorDetails


@dataclass(frozen=True)
class RetryPolicy:
    """Retry ceiling and backoff configuration."""

    max_retries: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0.")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0.")
        if self.max_delay_seconds is not None and self.max_delay_seconds < 0:
            raise ValueError("max_delay_seconds must be >= 0.")

    @staticmethod
    def from_settings(api: ApiSettings | None = None) -> RetryPolicy:
        """Build a retry policy from API settings."""
        resolved = api or get_settings().api
        return RetryPolicy(
            max_retries=resolved.max_retries,
            base_delay_seconds=resolved.base_delay_seconds,
            max_delay_seconds=resolved.max_delay_seconds,
        )


@dataclass(frozen=True)
class RetryDecision:
    """Whether to resubmit, after how long, and as which attempt."""

    should_retry: bool
    delay_seconds: float = 0.0
    next_attempt: int = 0
    rate_limited: bool = False
    reason: str = ""


def compute_backoff_delay_seconds(retry_count: int, policy: RetryPolicy) -> float:
    """Return ``base * 2^(retry_count - 1)``, capped by ``max_delay_seconds``."""
    if retry_count <= 0:
        raise ValueError("retry_count must be >= 1.")
    delay = policy.base_delay_seconds * (2 ** (retry_count - 1))
    if policy.max_delay_seconds is not None:
        return min(delay, policy.max_delay_seconds)
    return delay


def decide_retry(
    details: ErrorDetails,
    attempt_count: int,
    policy: RetryPolicy,
) -> RetryDecision:
    """Decide whether a failed attempt is resubmitted.

    ``attempt_count`` is the number of retries already made for the logical
    call (0 after the first attempt). A ``Retry-After`` hint replaces the
    computed backoff for this one attempt and is not capped.
    """
    if not details.retryable:
        return RetryDecision(
            should_retry=False,
            reason=f"{details.category.value} failures are not retryable",
        )
    if attempt_count >= policy.max_retries:
        return RetryDecision(
            should_retry=False,
            reason=f"retry limit reached ({attempt_count}/{policy.max_retries})",
        )

    next_attempt = attempt_count + 1
    if details.retry_after_seconds is not None:
        return RetryDecision(
            should_retry=True,
            delay_seconds=details.retry_after_seconds,
            next_attempt=next_attempt,
            rate_limited=True,
            reason="server supplied Retry-After",
        )
    return RetryDecision(
        should_retry=True,
        delay_seconds=compute_backoff_delay_seconds(next_attempt, policy),
        next_attempt=next_attempt,
        reason="exponential backoff",
    )
