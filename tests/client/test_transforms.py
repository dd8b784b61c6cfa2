"""Unit tests for pre-send and post-receive transforms."""

from __future__ import annotations

from packages.courier_client import (
    CallMetadata,
    InMemoryCredentialStore,
    OutgoingCall,
    PreparedRequest,
    ReceivedResponse,
    ResponseMeta,
    annotate_payload_meta,
    bearer_credentials,
    default_headers,
    request_id_header,
)

METADATA = CallMetadata(request_id="req_abc", started_at_ms=1_700_000_000_000)


def _request(**headers: str) -> PreparedRequest:
    return PreparedRequest(method="GET", path="/x", timeout_seconds=5.0, headers=headers)


def test_default_headers_do_not_override_call_headers() -> None:
    transform = default_headers({"Accept": "application/json", "X-Requested-With": "XMLHttpRequest"})

    result = transform(_request(Accept="text/csv"), OutgoingCall("GET", "/x"), METADATA)

    assert result.headers == {"Accept": "text/csv", "X-Requested-With": "XMLHttpRequest"}


def test_request_id_header_uses_metadata() -> None:
    result = request_id_header("X-Request-ID")(_request(), OutgoingCall("GET", "/x"), METADATA)

    assert result.headers["X-Request-ID"] == "req_abc"


def test_bearer_credentials_only_when_required_and_present() -> None:
    store = InMemoryCredentialStore()
    transform = bearer_credentials(store)

    assert "Authorization" not in transform(_request(), OutgoingCall("GET", "/x"), METADATA).headers

    store.set("tok")
    authed = transform(_request(), OutgoingCall("GET", "/x"), METADATA)
    public = transform(_request(), OutgoingCall("GET", "/x", requires_auth=False), METADATA)

    assert authed.headers["Authorization"] == "Bearer tok"
    assert "Authorization" not in public.headers


def test_annotate_payload_meta_only_touches_objects() -> None:
    meta = ResponseMeta(timestamp="2026-01-01T00:00:00+00:00", duration_ms=12, request_id="req_abc")
    original = {"success": True, "data": [1]}

    annotated = annotate_payload_meta(
        ReceivedResponse(status_code=200, headers={}, payload=original, meta=meta), METADATA
    )
    listing = annotate_payload_meta(
        ReceivedResponse(status_code=200, headers={}, payload=[1, 2], meta=meta), METADATA
    )

    assert annotated.payload["_meta"] == {
        "timestamp": "2026-01-01T00:00:00+00:00",
        "duration": 12,
        "requestId": "req_abc",
    }
    assert "_meta" not in original
    assert listing.payload == [1, 2]
