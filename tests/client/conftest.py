"""Shared fixtures for API client core tests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import httpx
import pytest

from packages.courier_client import (
    CALL_FAILED,
    CALL_SUCCEEDED,
    SESSION_ENDED,
    SLOW_CALL,
    InMemoryCredentialStore,
    RequestDeduplicator,
    RequestPipeline,
    Signal,
    SignalBus,
)
from packages.courier_shared.config import ApiSettings

BASE_URL = "https://api.test/api"


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def api_settings() -> ApiSettings:
    return ApiSettings(
        base_url=BASE_URL,
        timeout_seconds=5.0,
        max_retries=3,
        base_delay_seconds=0.5,
        max_delay_seconds=30.0,
        slow_call_threshold_seconds=2.0,
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def credentials() -> InMemoryCredentialStore:
    return InMemoryCredentialStore(token="tok-123", user={"id": 7, "name": "Ada"})


@pytest.fixture
def signal_bus() -> SignalBus:
    return SignalBus()


@pytest.fixture
def signal_log(signal_bus: SignalBus) -> dict[str, list[Signal]]:
    """Record every signal the core emits, keyed by signal name."""
    received: dict[str, list[Signal]] = {}
    for name in (SESSION_ENDED, CALL_FAILED, CALL_SUCCEEDED, SLOW_CALL):
        received[name] = []
        signal_bus.subscribe(name, received[name].append)
    return received


@pytest.fixture
def make_pipeline(
    api_settings: ApiSettings,
    recording_sleep: RecordingSleep,
    credentials: InMemoryCredentialStore,
    signal_bus: SignalBus,
) -> Callable[..., RequestPipeline]:
    """Build a pipeline over ``httpx.MockTransport`` with isolated state."""

    def build(handler: Callable[[httpx.Request], Any], **overrides: Any) -> RequestPipeline:
        options: dict[str, Any] = {
            "settings": api_settings,
            "credentials": credentials,
            "signals": signal_bus,
            "deduplicator": RequestDeduplicator(),
            "include_debug": False,
            "sleep": recording_sleep,
            "transport": httpx.MockTransport(handler),
        }
        options.update(overrides)
        return RequestPipeline(**options)

    return build
