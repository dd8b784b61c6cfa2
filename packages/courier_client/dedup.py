"""Collapse concurrent identical reads into one in-flight transport call."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestDeduplicator:
    """Registry of in-flight read calls keyed by dedup key.

    The first caller for a key (the leader) starts the call; concurrent callers
    for the same key await the leader's task and observe the same result
    object. An entry is removed as soon as its task settles, whether it
    succeeded, failed or was cancelled.

    Cancelling the leader cancels the shared task, so every waiter receives
    ``asyncio.CancelledError``. Cancelling a waiter only abandons that waiter.
    """

    def __init__(self) -> None:
        self._entries: dict[str, asyncio.Task[Any]] = {}
        self._paths: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def pending_keys(self) -> list[str]:
        """Return keys with a call currently in flight."""
        return list(self._entries)

    async def acquire(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
        *,
        path: str | None = None,
    ) -> T:
        """Join the in-flight call for ``key`` or start one with ``factory``.

        ``path`` records which resource the call reads so ``invalidate`` can
        find it; entries registered without one are never invalidated.
        """
        existing = self._entries.get(key)
        if existing is not None and not existing.done():
            logger.debug("Joining in-flight call for %s", key)
            return await asyncio.shield(existing)

        # No await between the lookup above and the insert below.
        awaitable = factory()
        task: asyncio.Task[T] = asyncio.ensure_future(self._run(key, awaitable))
        self._entries[key] = task
        if path is not None:
            self._paths[key] = path
        task.add_done_callback(lambda done: self._release(key, done))
        return await task

    def invalidate(self, path: str) -> list[str]:
        """Detach pending entries registered for exactly ``path``.

        Nothing is cancelled: callers already waiting keep their in-flight
        result, and the next read for the path starts a fresh call.
        """
        detached = [key for key, registered in self._paths.items() if registered == path]
        for key in detached:
            del self._paths[key]
            self._entries.pop(key, None)
        if detached:
            logger.debug("Invalidated %d pending read(s) for %s", len(detached), path)
        return detached

    async def _run(self, key: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        finally:
            self._release(key, asyncio.current_task())

    def _release(self, key: str, task: asyncio.Future[Any] | None) -> None:
        if task is not None and self._entries.get(key) is task:
            del self._entries[key]
            self._paths.pop(key, None)
