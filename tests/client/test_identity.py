"""Unit tests for request ids and dedup keys."""

from __future__ import annotations

from packages.courier_client import (
    OutgoingCall,
    call_dedup_key,
    dedup_key,
    new_request_id,
    stable_serialize,
)


def test_request_ids_are_unique_and_prefixed() -> None:
    ids = {new_request_id() for _ in range(500)}

    assert len(ids) == 500
    assert all(value.startswith("req_") for value in ids)


def test_stable_serialize_ignores_key_order_and_none_values() -> None:
    assert stable_serialize({"b": 2, "a": 1}) == stable_serialize({"a": 1, "b": 2, "c": None})
    assert stable_serialize({}) == ""
    assert stable_serialize(None) == ""


def test_dedup_key_for_reads() -> None:
    assert dedup_key("get", "/users", {"page": 2, "q": "ada"}) == 'GET:/users:{"page":2,"q":"ada"}'
    assert dedup_key("GET", "/users") == "GET:/users:"


def test_dedup_key_is_undefined_for_writes() -> None:
    for method in ("POST", "PUT", "PATCH", "DELETE"):
        assert dedup_key(method, "/users") is None


def test_call_dedup_key_honours_skip_dedup() -> None:
    assert call_dedup_key(OutgoingCall("GET", "/users")) == "GET:/users:"
    assert call_dedup_key(OutgoingCall("GET", "/users", skip_dedup=True)) is None
