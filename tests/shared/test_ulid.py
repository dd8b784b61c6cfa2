"""Tests for shared ULID encoding and ordering semantics."""

from __future__ import annotations

import pytest

from packages.courier_shared.ids import generate_ulid_bytes, generate_ulid_str, ulid_bytes_to_str


def test_ulid_string_is_canonical_base32() -> None:
    """Generated strings must be 26 Crockford Base32 characters."""
    value = generate_ulid_str()

    assert len(value) == 26
    assert set(value) <= set("0123456789ABCDEFGHJKMNPQRSTVWXYZ")


def test_ulid_timestamp_prefix_is_stable() -> None:
    """Identical timestamps must share the 10-character time prefix."""
    first = generate_ulid_str(timestamp_ms=1_700_000_000_000)
    second = generate_ulid_str(timestamp_ms=1_700_000_000_000)

    assert first[:10] == second[:10]
    assert first != second


def test_ulid_lexicographic_order_matches_big_endian_binary() -> None:
    """Sorting canonical strings must match sorting binary big-endian ULIDs."""
    values = [generate_ulid_bytes(timestamp_ms=1_700_000_000_000) for _ in range(300)]

    assert sorted(values) == sorted(values, key=ulid_bytes_to_str)


def test_ulid_rejects_out_of_range_input() -> None:
    with pytest.raises(ValueError):
        generate_ulid_bytes(timestamp_ms=-1)
    with pytest.raises(ValueError):
        ulid_bytes_to_str(b"short")
