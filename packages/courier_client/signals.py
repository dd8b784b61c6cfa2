"""Fire-and-forget signals consumed by session and notice collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Callable

from packages.courier_shared.logging import fields, log_context

logger = logging.getLogger(__name__)

SESSION_ENDED = "session-ended"
CALL_FAILED = "call-failed"
CALL_SUCCEEDED = "call-succeeded"
SLOW_CALL = "slow-call"


@dataclass(frozen=True)
class Signal:
    """One emitted signal."""

    name: str
    timestamp: str
    payload: Any = None


SignalHandler = Callable[[Signal], None]


class SignalBus:
    """Synchronous multi-subscriber dispatcher.

    A failing handler is logged and skipped; it never affects the emitter or
    the remaining handlers.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[SignalHandler]] = {}

    def subscribe(self, name: str, handler: SignalHandler) -> Callable[[], None]:
        """Register ``handler`` for ``name`` and return an unsubscribe callable."""
        self._handlers.setdefault(name, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(name, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, name: str, payload: Any = None) -> Signal:
        """Deliver one signal to every current subscriber of ``name``."""
        signal = Signal(name=name, timestamp=datetime.now(UTC).isoformat(), payload=payload)
        for handler in list(self._handlers.get(name, ())):
            try:
                handler(signal)
            except Exception:  # noqa: BLE001
                with log_context(
                    {
                        fields.EVENT: fields.SIGNAL_HANDLER_FAILURE_EVENT,
                        fields.SIGNAL: name,
                    }
                ):
                    logger.warning("Signal handler failed", exc_info=True)
        return signal
