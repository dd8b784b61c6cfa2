"""Request identity: unique request ids and dedup keys."""

from __future__ import annotations

import json
from typing import Any, Mapping

from packages.courier_shared.ids import generate_ulid_str

from .calls import READ_METHODS, OutgoingCall

REQUEST_ID_PREFIX = "req_"


def new_request_id() -> str:
    """Return a collision-resistant, time-ordered request id."""
    return f"{REQUEST_ID_PREFIX}{generate_ulid_str().lower()}"


def stable_serialize(query: Mapping[str, Any] | None) -> str:
    """Serialize query params so equal mappings produce equal strings.

    ``None`` values are dropped, matching how they are omitted on the wire.
    """
    if not query:
        return ""
    normalized = {str(key): value for key, value in query.items() if value is not None}
    if not normalized:
        return ""
    return json.dumps(normalized, sort_keys=True, separators=(",", ":"), default=str)


def dedup_key(method: str, path: str, query: Mapping[str, Any] | None = None) -> str | None:
    """Return ``METHOD:path:query`` for reads, ``None`` for anything with side effects."""
    verb = method.upper()
    if verb not in READ_METHODS:
        return None
    return f"{verb}:{path}:{stable_serialize(query)}"


def call_dedup_key(call: OutgoingCall) -> str | None:
    """Return the dedup key for one call, honouring ``skip_dedup``."""
    if call.skip_dedup:
        return None
    return dedup_key(call.verb, call.path, call.query)
