"""Request pipeline: the single path every API call takes.

One logical call runs as a loop of attempts. Each attempt is shaped by the
pre-send transforms, sent over httpx, and either annotated by the post-receive
transforms or classified into ``ErrorDetails``. Classified failures are fed to
the retry controller until the call succeeds, fails terminally, or exhausts
its retries. Concurrent identical reads share one loop via the deduplicator.

``execute`` never raises for a classified failure; the failure is returned in
the ``CallResult``. Only ``asyncio.CancelledError`` propagates. A request that
cannot be built (unencodable body, non-ASCII header value, malformed URL) is
returned as a non-retryable ``client`` failure without touching the network.
Any status outside 2xx, including redirects, is a failure.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import UTC, datetime
from typing import Any, Awaitable, Callable, Sequence

import httpx

from packages.courier_shared.config import ApiSettings, get_settings
from packages.courier_shared.errors import ErrorCategory, ErrorDetails
from packages.courier_shared.logging import fields, log_context

from . import signals as signal_names
from .calls import CallMetadata, CallResult, FailedAttempt, OutgoingCall, ResponseMeta
from .classify import classify_failure
from .credentials import CredentialStore, InMemoryCredentialStore
from .dedup import RequestDeduplicator
from .identity import call_dedup_key, new_request_id
from .retry import RetryDecision, RetryPolicy, decide_retry
from .signals import SignalBus
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

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RequestPipeline:
    """Orchestrates identity, dedup, transport, classification and retries.

    The credential store, signal bus and deduplicator are injected so each
    pipeline (and each test) owns isolated state. ``pre_send`` and
    ``post_receive`` transforms run after the built-in ones, in order.
    """

    def __init__(
        self,
        *,
        settings: ApiSettings | None = None,
        credentials: CredentialStore | None = None,
        signals: SignalBus | None = None,
        deduplicator: RequestDeduplicator | None = None,
        retry_policy: RetryPolicy | None = None,
        pre_send: Sequence[PreSendTransform] = (),
        post_receive: Sequence[PostReceiveTransform] = (),
        include_debug: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        root = get_settings() if settings is None or include_debug is None else None
        self._settings = settings if settings is not None else root.api
        self._include_debug = include_debug if include_debug is not None else root.is_development
        self.credentials = credentials if credentials is not None else InMemoryCredentialStore()
        self.signals = signals if signals is not None else SignalBus()
        self.deduplicator = deduplicator if deduplicator is not None else RequestDeduplicator()
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self._settings)
        self._pre_send: tuple[PreSendTransform, ...] = (
            default_headers(self._settings.default_headers),
            request_id_header(self._settings.request_id_header),
            bearer_credentials(self.credentials),
            *pre_send,
        )
        self._post_receive: tuple[PostReceiveTransform, ...] = (
            annotate_payload_meta,
            *post_receive,
        )
        self._sleep = sleep
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close underlying transport resources when owned."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RequestPipeline:
        """Enter async context manager scope."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Exit async context manager scope and close client."""
        await self.aclose()

    async def execute(self, call: OutgoingCall) -> CallResult[Any]:
        """Run one logical call to resolution.

        Reads with an identical call already in flight join it and receive the
        same ``CallResult`` object. Writes never collapse; they detach pending
        reads for their path so later reads observe the write.
        """
        if not call.is_read:
            self.deduplicator.invalidate(call.path)

        key = call_dedup_key(call)
        if key is None:
            return await self._run(call)
        return await self.deduplicator.acquire(key, lambda: self._run(call), path=call.path)

    async def _run(self, call: OutgoingCall) -> CallResult[Any]:
        request_id = new_request_id()
        attempt_count = 0
        with log_context(
            {
                fields.REQUEST_ID: request_id,
                fields.METHOD: call.verb,
                fields.PATH: call.path,
            }
        ):
            while True:
                metadata = CallMetadata(
                    request_id=request_id,
                    started_at_ms=_epoch_ms(),
                    attempt_count=attempt_count,
                )
                with log_context({fields.ATTEMPT: attempt_count + 1}):
                    outcome = await self._attempt(call, metadata)
                if isinstance(outcome, CallResult):
                    return outcome

                details = classify_failure(outcome, include_debug=self._include_debug)
                attempts = attempt_count + 1

                if details.category is ErrorCategory.AUTHENTICATION:
                    self._end_session(details)
                    return CallResult.failure(details, attempts=attempts)

                if call.skip_retry:
                    decision = RetryDecision(should_retry=False, reason="retries disabled for call")
                else:
                    decision = decide_retry(details, attempt_count, self.retry_policy)

                if not decision.should_retry:
                    self._log_terminal_failure(details, attempts=attempts, reason=decision.reason)
                    return CallResult.failure(details, attempts=attempts)

                self._log_retry(details, decision)
                await self._sleep(decision.delay_seconds)
                attempt_count = decision.next_attempt

    async def _attempt(
        self, call: OutgoingCall, metadata: CallMetadata
    ) -> CallResult[Any] | FailedAttempt:
        """Send one attempt and return a success result or the raw failure."""
        try:
            request = self._prepare(call, metadata)
            outgoing = self._client.build_request(
                request.method,
                request.path,
                params=dict(request.params) or None,
                headers=dict(request.headers),
                timeout=request.timeout_seconds,
                **_body_kwargs(request.body),
            )
        except (TypeError, ValueError, httpx.InvalidURL) as exc:
            # UnicodeEncodeError (non-ASCII header values) is a ValueError.
            return _unsendable(call, metadata, exc)

        started = time.monotonic()
        try:
            response = await self._client.send(outgoing)
        except httpx.TimeoutException as exc:
            return self._transport_failure(request, metadata, exc, timed_out=True)
        except httpx.RequestError as exc:
            return self._transport_failure(request, metadata, exc, timed_out=False)

        duration_ms = int(round((time.monotonic() - started) * 1000))
        payload = _decode_body(response)

        if not response.is_success:
            return FailedAttempt(
                method=request.method,
                url=str(response.request.url),
                message=f"HTTP {response.status_code} for {request.method} {response.request.url}",
                status_code=response.status_code,
                headers=dict(response.headers.items()),
                body=payload,
                request_id=metadata.request_id,
            )

        received = ReceivedResponse(
            status_code=response.status_code,
            headers=dict(response.headers.items()),
            payload=payload,
            meta=ResponseMeta(
                timestamp=datetime.now(UTC).isoformat(),
                duration_ms=duration_ms,
                request_id=metadata.request_id,
            ),
        )
        for transform in self._post_receive:
            received = transform(received, metadata)

        if duration_ms > self._settings.slow_call_threshold_seconds * 1000:
            self._report_slow_call(call, received.meta)

        return CallResult.success(
            received.payload,
            status_code=received.status_code,
            headers=received.headers,
            meta=received.meta,
            attempts=metadata.attempt_count + 1,
        )

    def _prepare(self, call: OutgoingCall, metadata: CallMetadata) -> PreparedRequest:
        request = PreparedRequest(
            method=call.verb,
            path=call.path,
            timeout_seconds=call.timeout_seconds or self._settings.timeout_seconds,
            params={key: value for key, value in call.query.items() if value is not None},
            headers=dict(call.headers),
            body=call.body,
        )
        for transform in self._pre_send:
            request = transform(request, call, metadata)
        return request

    def _transport_failure(
        self,
        request: PreparedRequest,
        metadata: CallMetadata,
        exc: httpx.RequestError,
        *,
        timed_out: bool,
    ) -> FailedAttempt:
        url = str(exc.request.url) if _has_request(exc) else request.path
        kind = "timed out" if timed_out else "failed"
        return FailedAttempt(
            method=request.method,
            url=url,
            message=f"HTTP request {kind} for {request.method} {url}: {type(exc).__name__}",
            timed_out=timed_out,
            transport_code=type(exc).__name__,
            request_id=metadata.request_id,
        )

    def _end_session(self, details: ErrorDetails) -> None:
        """Clear credentials and announce the session end, once per call."""
        with log_context({fields.EVENT: fields.SESSION_ENDED_EVENT, **details.to_log_fields()}):
            logger.warning("Credential rejected; ending session")
            try:
                self.credentials.clear()
            except Exception:  # noqa: BLE001
                logger.exception("Failed to clear stored credentials")
        self.signals.emit(
            signal_names.SESSION_ENDED,
            {"request_id": details.request_id, "status_code": details.status_code},
        )

    def _report_slow_call(self, call: OutgoingCall, meta: ResponseMeta) -> None:
        with log_context({fields.EVENT: fields.CALL_SLOW_EVENT, fields.DURATION_MS: meta.duration_ms}):
            level = logging.WARNING if self._include_debug else logging.DEBUG
            logger.log(level, "Slow API call (%dms)", meta.duration_ms)
        self.signals.emit(
            signal_names.SLOW_CALL,
            {
                "method": call.verb,
                "path": call.path,
                "duration": meta.duration_ms,
                "request_id": meta.request_id,
            },
        )

    def _log_retry(self, details: ErrorDetails, decision: RetryDecision) -> None:
        event = fields.CALL_RATE_LIMITED_EVENT if decision.rate_limited else fields.CALL_RETRY_SCHEDULED_EVENT
        with log_context(
            {
                fields.EVENT: event,
                fields.ATTEMPT: decision.next_attempt,
                fields.MAX_RETRIES: self.retry_policy.max_retries,
                fields.DELAY_MS: int(decision.delay_seconds * 1000),
                **details.to_log_fields(),
            }
        ):
            logger.warning(
                "Retrying request (%d/%d) after %dms",
                decision.next_attempt,
                self.retry_policy.max_retries,
                int(decision.delay_seconds * 1000),
            )

    def _log_terminal_failure(self, details: ErrorDetails, *, attempts: int, reason: str) -> None:
        with log_context(
            {
                fields.EVENT: fields.CALL_FAILED_EVENT,
                fields.ATTEMPT: attempts,
                **details.to_log_fields(),
            }
        ):
            logger.error("API call failed after %d attempt(s): %s (%s)", attempts, details.message, reason)


def _body_kwargs(body: Any) -> dict[str, Any]:
    if body is None:
        return {}
    if isinstance(body, (bytes, str)):
        return {"content": body}
    return {"json": body}


def _unsendable(call: OutgoingCall, metadata: CallMetadata, exc: Exception) -> FailedAttempt:
    return FailedAttempt(
        method=call.verb,
        url=call.path,
        message=f"Request could not be built for {call.verb} {call.path}: {type(exc).__name__}: {exc}",
        transport_code=type(exc).__name__,
        request_id=metadata.request_id,
        not_sent=True,
    )


def _decode_body(response: httpx.Response) -> Any:
    """Return JSON when the body parses, raw text otherwise, ``None`` when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _has_request(exc: httpx.RequestError) -> bool:
    try:
        exc.request
    except RuntimeError:
        return False
    return True


def _epoch_ms() -> int:
    return int(time.time() * 1000)
