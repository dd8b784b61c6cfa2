"""Ordered pre-send and post-receive transforms applied by the pipeline.

Pre-send transforms shape the outbound request for one attempt. Post-receive
transforms shape a successful response once its metadata is known. Each is a
plain function so the chain stays independent of the HTTP library.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping

from .calls import CallMetadata, OutgoingCall, ResponseMeta
from .credentials import CredentialStore

META_KEY = "_meta"


@dataclass(frozen=True)
class PreparedRequest:
    """Outbound request for one attempt."""

    method: str
    path: str
    timeout_seconds: float
    params: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None


@dataclass(frozen=True)
class ReceivedResponse:
    """Successful response for one attempt."""

    status_code: int
    headers: Mapping[str, str]
    payload: Any
    meta: ResponseMeta


PreSendTransform = Callable[[PreparedRequest, OutgoingCall, CallMetadata], PreparedRequest]
PostReceiveTransform = Callable[[ReceivedResponse, CallMetadata], ReceivedResponse]


def with_headers(request: PreparedRequest, headers: Mapping[str, str]) -> PreparedRequest:
    """Return ``request`` with ``headers`` merged over its current headers."""
    return replace(request, headers={**request.headers, **headers})


def default_headers(headers: Mapping[str, str]) -> PreSendTransform:
    """Attach static headers, letting per-call headers win."""
    static = dict(headers)

    def transform(
        request: PreparedRequest, call: OutgoingCall, metadata: CallMetadata
    ) -> PreparedRequest:
        return replace(request, headers={**static, **request.headers})

    return transform


def request_id_header(name: str) -> PreSendTransform:
    """Attach the call's request id under ``name``."""

    def transform(
        request: PreparedRequest, call: OutgoingCall, metadata: CallMetadata
    ) -> PreparedRequest:
        return with_headers(request, {name: metadata.request_id})

    return transform


def bearer_credentials(store: CredentialStore) -> PreSendTransform:
    """Attach ``Authorization: Bearer`` when the call requires auth and a token exists."""

    def transform(
        request: PreparedRequest, call: OutgoingCall, metadata: CallMetadata
    ) -> PreparedRequest:
        if not call.requires_auth:
            return request
        token = store.get()
        if not token:
            return request
        return with_headers(request, {"Authorization": f"Bearer {token}"})

    return transform


def annotate_payload_meta(response: ReceivedResponse, metadata: CallMetadata) -> ReceivedResponse:
    """Add ``_meta`` with timestamp, duration and request id to object payloads."""
    if not isinstance(response.payload, dict):
        return response
    payload = {**response.payload, META_KEY: response.meta.as_dict()}
    return replace(response, payload=payload)
