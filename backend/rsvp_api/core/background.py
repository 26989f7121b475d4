# backend/rsvp_api/core/background.py
from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional, Set

logger = logging.getLogger("rsvp.background")


class BackgroundTaskRegistry:
    """
    Supervised fire-and-forget tasks.

    Request handlers (sync ones run in the threadpool) hand coroutines to
    spawn(); they run on the application's event loop, stay referenced until
    they settle, and have their failures logged instead of raised. The
    lifespan shutdown calls drain() so in-flight work finishes before the
    worker exits.
    """

    def __init__(self) -> None:
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Set[concurrent.futures.Future] = set()
        self._lock = threading.Lock()
        self.completed = 0
        self.failed = 0

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> concurrent.futures.Future:
        if self._loop is None or self._loop.is_closed():
            coro.close()
            raise RuntimeError("BackgroundTaskRegistry.spawn() called before start()")

        future = asyncio.run_coroutine_threadsafe(self._supervise(coro, name), self._loop)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future: concurrent.futures.Future) -> None:
        with self._lock:
            self._pending.discard(future)

    async def _supervise(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            logger.warning("background task cancelled name=%s", name)
            raise
        except Exception:
            self.failed += 1
            logger.exception("background task failed name=%s", name)
        else:
            self.completed += 1

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for every pending task. Returns False if the timeout hit first.
        """
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True

        logger.info("draining background tasks count=%s", len(pending))
        _, not_done = await asyncio.wait(
            [asyncio.wrap_future(f) for f in pending],
            timeout=timeout,
        )
        if not_done:
            logger.warning("background drain timed out remaining=%s", len(not_done))
            return False
        return True
