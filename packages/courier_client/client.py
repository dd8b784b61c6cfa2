"""High-level API client facade over ``RequestPipeline``.

Verb helpers unwrap the success envelope ``{"success", "message", "data"}`` into
``data`` and raise ``ApiCallError`` on terminal failure, so callers write
plain ``try``/``except`` code while the pipeline itself stays value-based.
"""

from __future__ import annotations

from typing import Any, Mapping

from packages.courier_shared.config import CourierSettings, get_settings
from packages.courier_shared.logging import configure_logging_from_settings

from .calls import CallResult, OutgoingCall
from .errors import ApiCallError
from .notices import Notice, report_failure, report_success
from .pipeline import RequestPipeline


def unwrap_envelope(payload: Any) -> Any:
    """Return ``payload["data"]`` for success envelopes, else ``payload`` unchanged."""
    if isinstance(payload, Mapping) and "success" in payload and "data" in payload:
        return payload["data"]
    return payload


class ApiClient:
    """Caller-facing client: builds ``OutgoingCall`` values and raises on failure."""

    def __init__(
        self,
        pipeline: RequestPipeline | None = None,
        *,
        report_failures: bool = True,
    ) -> None:
        self._owns_pipeline = pipeline is None
        self.pipeline = pipeline or RequestPipeline()
        self._report_failures = report_failures

    @classmethod
    def from_settings(
        cls,
        settings: CourierSettings | None = None,
        *,
        configure_logs: bool = True,
        report_failures: bool = True,
        **pipeline_options: Any,
    ) -> ApiClient:
        """Startup entry point: configure logging and build an owned pipeline.

        ``settings`` defaults to the process-wide ``get_settings()``. Extra
        keyword arguments (credentials, signals, transport, ...) are passed
        to ``RequestPipeline``.
        """
        root = settings if settings is not None else get_settings()
        if configure_logs:
            configure_logging_from_settings(root)
        pipeline = RequestPipeline(
            settings=root.api,
            include_debug=root.is_development,
            **pipeline_options,
        )
        client = cls(pipeline, report_failures=report_failures)
        client._owns_pipeline = True
        return client

    async def aclose(self) -> None:
        """Close the pipeline when owned."""
        if self._owns_pipeline:
            await self.pipeline.aclose()

    async def __aenter__(self) -> ApiClient:
        """Enter async context manager scope."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Exit async context manager scope and close the owned pipeline."""
        await self.aclose()

    async def call(self, call: OutgoingCall) -> CallResult[Any]:
        """Run one call and return its ``CallResult`` without raising."""
        return await self.pipeline.execute(call)

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        requires_auth: bool = True,
        timeout_seconds: float | None = None,
        skip_retry: bool = False,
        skip_dedup: bool = False,
        notify: bool | None = None,
        unwrap: bool = True,
    ) -> Any:
        """Issue one request and return its (unwrapped) payload.

        Raises ``ApiCallError`` with the final ``ErrorDetails`` on terminal
        failure. ``asyncio.CancelledError`` propagates unchanged.
        """
        result = await self.pipeline.execute(
            OutgoingCall(
                method=method,
                path=path,
                query=dict(query or {}),
                body=body,
                headers=dict(headers or {}),
                requires_auth=requires_auth,
                timeout_seconds=timeout_seconds,
                skip_retry=skip_retry,
                skip_dedup=skip_dedup,
            )
        )
        if result.error is not None:
            should_report = self._report_failures if notify is None else notify
            if should_report:
                report_failure(self.pipeline.signals, result.error)
            raise ApiCallError(details=result.error)
        return unwrap_envelope(result.payload) if unwrap else result.payload

    async def get(self, path: str, **kwargs: Any) -> Any:
        """Issue one GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Issue one POST request."""
        return await self.request("POST", path, body=body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Issue one PUT request."""
        return await self.request("PUT", path, body=body, **kwargs)

    async def patch(self, path: str, body: Any = None, **kwargs: Any) -> Any:
        """Issue one PATCH request."""
        return await self.request("PATCH", path, body=body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        """Issue one DELETE request."""
        return await self.request("DELETE", path, **kwargs)

    def report_success(self, message: str, data: Any = None) -> Notice:
        """Announce a completed user action on the ``call-succeeded`` signal."""
        return report_success(self.pipeline.signals, message, data)
